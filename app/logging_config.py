# app/logging_config.py
import logging
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler

from app.core.config import get_settings

LOG_LEVEL = get_settings().LOG_LEVEL    # INFO en producción

# Crear el directorio de logs si no existe
LOGS_DIR = Path(__file__).parent.parent / "logs"
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = LOGS_DIR / "mercado_bot.log"

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(),                                 # consola
        TimedRotatingFileHandler(LOG_FILE, when="midnight", interval=1, backupCount=30, encoding='utf-8'),  # rotación diaria, 30 días
    ],
    force=True,    # sobreescribe config que ponga uvicorn
)

# httpx loguea cada request en INFO; los clientes propios ya lo hacen en DEBUG
logging.getLogger("httpx").setLevel(logging.WARNING)
