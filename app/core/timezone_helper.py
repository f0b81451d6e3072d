import logging
from datetime import date, datetime, timedelta
from typing import Optional
import pytz

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Timezone del negocio (por defecto Colombia, UTC-5)
BUSINESS_TZ = pytz.timezone(get_settings().TIMEZONE)

# Plazos ofrecidos al crear un acuerdo
DUE_DATE_OFFSETS = {
    "1week": timedelta(weeks=1),
    "2weeks": timedelta(weeks=2),
    "1month": timedelta(days=30),
    "3months": timedelta(days=90),
    "6months": timedelta(days=180),
}

CUSTOM_TIME_FORMAT = "%d/%m/%Y %H:%M"

class TimezoneHelper:
    """
    Helper para manejar fechas en el timezone del negocio.
    Responsabilidad única: cálculos y formatos de fecha usados por los flujos.
    """

    @staticmethod
    def get_now() -> datetime:
        """Obtiene la fecha y hora actual en el timezone del negocio."""
        return datetime.now(BUSINESS_TZ)

    @staticmethod
    def due_date_from_selection(selection: str) -> Optional[date]:
        """
        Convierte la opción de plazo elegida en una fecha.

        Args:
            selection: Id de la opción ("1week", "1month", ..., "none")

        Returns:
            Optional[date]: Fecha límite o None si no tiene plazo
        """
        offset = DUE_DATE_OFFSETS.get(selection)
        if offset is None:
            return None
        return (TimezoneHelper.get_now() + offset).date()

    @staticmethod
    def schedule_to_datetime(schedule: str) -> Optional[datetime]:
        """
        Resuelve las opciones fijas de programación de una oferta relámpago.

        "now" y "custom" devuelven None: el primero se lanza de inmediato y
        el segundo usa la hora que escribe el usuario.
        """
        now = TimezoneHelper.get_now()
        if schedule == "today_6pm":
            return now.replace(hour=18, minute=0, second=0, microsecond=0)
        if schedule == "tomorrow_10am":
            tomorrow = now + timedelta(days=1)
            return tomorrow.replace(hour=10, minute=0, second=0, microsecond=0)
        return None

    @staticmethod
    def parse_custom_time(text: str) -> Optional[datetime]:
        """
        Parsea una hora escrita como "dd/mm/aaaa hh:mm" en el timezone del negocio.

        Returns:
            Optional[datetime]: Fecha localizada o None si el formato no es válido
        """
        try:
            naive = datetime.strptime(text.strip(), CUSTOM_TIME_FORMAT)
        except ValueError:
            return None
        return BUSINESS_TZ.localize(naive)

    @staticmethod
    def format_date_for_whatsapp(value: Optional[str]) -> str:
        """
        Convierte fecha ISO a formato para WhatsApp.

        Args:
            value: Fecha ISO "2025-05-27" o datetime ISO

        Returns:
            str: "27/05/2025", o "Sin fecha" si no hay valor
        """
        if not value:
            return "Sin fecha"
        try:
            return datetime.fromisoformat(value).strftime("%d/%m/%Y")
        except ValueError:
            logger.debug(f"[TIMEZONE] Fecha no reconocida: {value}")
            return value
