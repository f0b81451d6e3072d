import logging
from typing import Optional

from app.core.timezone_helper import TimezoneHelper
from app.schemas.flash_deal_schema import (
    SCHEDULE_OPTIONS,
    TARGET_CLAIM_OPTIONS,
    TIME_LIMIT_OPTIONS,
    DiscountCapSchema,
    DiscountSchema,
    TitleSchema,
)
from app.services.conversation.flows.validation import ValidationResult, validate_with_schema

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
NO_CAP_CHOICES = ("flash_no_cap", "0", "sin tope", "no")


class FlashDealValidators:
    """
    Responsabilidad única: Validaciones de los datos de una oferta relámpago.
    """

    @staticmethod
    def validate_title(text: Optional[str]) -> ValidationResult:
        return validate_with_schema(TitleSchema, "title", text or "")

    @staticmethod
    def validate_image(media_id: Optional[str], mime_type: Optional[str]) -> ValidationResult:
        if not media_id:
            return ValidationResult.fail("Envía una imagen de la oferta")
        if (mime_type or "").split(";")[0].strip() not in ALLOWED_IMAGE_TYPES:
            return ValidationResult.fail("La imagen debe ser JPG, PNG o WEBP")
        return ValidationResult.ok(media_id)

    @staticmethod
    def validate_discount(text: Optional[str]) -> ValidationResult:
        return validate_with_schema(DiscountSchema, "discount", text or "")

    @staticmethod
    def validate_discount_cap(choice: Optional[str]) -> ValidationResult:
        if choice in NO_CAP_CHOICES:
            return ValidationResult.ok(0)
        return validate_with_schema(DiscountCapSchema, "cap", choice or "")

    @staticmethod
    def validate_target(choice: Optional[str]) -> ValidationResult:
        value = _option_number(choice, "target_")
        if value not in TARGET_CLAIM_OPTIONS:
            return ValidationResult.fail("Elige una meta de la lista: 10, 20, 30 o 50 reclamos")
        return ValidationResult.ok(value)

    @staticmethod
    def validate_time_limit(choice: Optional[str]) -> ValidationResult:
        value = _option_number(choice, "time_")
        if value not in TIME_LIMIT_OPTIONS:
            return ValidationResult.fail("Elige una duración de la lista: 15, 30, 60 o 120 minutos")
        return ValidationResult.ok(value)

    @staticmethod
    def validate_schedule(choice: Optional[str]) -> ValidationResult:
        if choice not in SCHEDULE_OPTIONS:
            return ValidationResult.fail("Elige cuándo lanzar la oferta")
        return ValidationResult.ok(choice)

    @staticmethod
    def validate_custom_time(text: Optional[str]) -> ValidationResult:
        """
        Returns:
            ValidationResult: value = fecha ISO en el timezone del negocio
        """
        scheduled = TimezoneHelper.parse_custom_time(text or "")
        if scheduled is None:
            return ValidationResult.fail("Usa el formato dd/mm/aaaa hh:mm, por ejemplo 25/12/2026 18:00")
        if scheduled <= TimezoneHelper.get_now():
            logger.debug(f"Hora programada en el pasado: {scheduled}")
            return ValidationResult.fail("La hora debe ser en el futuro")
        return ValidationResult.ok(scheduled.isoformat())


def _option_number(choice: Optional[str], prefix: str) -> Optional[int]:
    """ "target_20" o "20" -> 20 """
    if not choice:
        return None
    raw = choice[len(prefix):] if choice.startswith(prefix) else choice
    return int(raw) if raw.isdigit() else None
