from functools import lru_cache
from pathlib import Path
from dotenv import load_dotenv
import os

load_dotenv(Path(__file__).resolve().parents[2] / ".env")

class Settings:
    # WhatsApp Cloud API settings
    META_TOKEN: str = os.getenv("META_BOT_TOKEN", "")
    PHONE_ID: str = os.getenv("META_NUMBER_ID", "")
    VERIFY_TOKEN: str = os.getenv("META_VERIFY_TOKEN", "")
    GRAPH_API_VERSION: str = os.getenv("META_VERSION", "v22.0")
    BASE_URL: str = f"https://graph.facebook.com/{GRAPH_API_VERSION}"

    # Marketplace backend API settings
    MARKETPLACE_API_URL: str = os.getenv("MARKETPLACE_API_URL", "http://localhost:3000/api/v1")
    MARKETPLACE_API_TOKEN: str = os.getenv("MARKETPLACE_API_TOKEN", "")

    # Sesiones de conversación
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    SESSION_BACKEND: str = os.getenv("SESSION_BACKEND", "redis")   # "redis" | "memory"
    SESSION_PREFIX: str = os.getenv("SESSION_PREFIX", "session:")
    SESSION_LOCK_TTL_MS: int = int(os.getenv("SESSION_LOCK_TTL_MS", "60000"))
    SESSION_TIMEOUT_MINUTES: int = int(os.getenv("SESSION_TIMEOUT_MINUTES", "30"))

    # General
    TIMEZONE: str = os.getenv("TIMEZONE", "America/Bogota")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG")

@lru_cache
def get_settings() -> Settings:
    return Settings()
