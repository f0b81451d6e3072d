import logging
import re
from typing import Optional

from app.core.timezone_helper import TimezoneHelper
from app.schemas.agreement_schema import (
    AGREEMENT_DIRECTIONS,
    AGREEMENT_PURPOSES,
    DUE_DATE_OPTIONS,
    AmountSchema,
    DescriptionSchema,
    NameSchema,
    PhoneSchema,
)
from app.services.conversation.flows.validation import ValidationResult, validate_with_schema

logger = logging.getLogger(__name__)

# Sinónimos escritos para las opciones de lista
DIRECTION_WORDS = {
    "giving": ("giving", "dar", "presto", "prestar", "yo presto"),
    "receiving": ("receiving", "recibir", "recibo", "me prestan"),
}
PURPOSE_WORDS = {
    "loan": ("loan", "prestamo", "préstamo"),
    "advance": ("advance", "anticipo", "adelanto"),
    "deposit": ("deposit", "deposito", "depósito"),
    "business": ("business", "negocio"),
    "personal": ("personal",),
    "other": ("other", "otro"),
}


class AgreementValidators:
    """
    Responsabilidad única: Validaciones de los datos de un acuerdo.
    Encapsula la lógica de validación usando Pydantic schemas.
    """

    @staticmethod
    def validate_direction(choice: Optional[str]) -> ValidationResult:
        direction = _match_option(choice, DIRECTION_WORDS)
        if direction not in AGREEMENT_DIRECTIONS:
            return ValidationResult.fail("Elige si vas a prestar o a recibir dinero")
        return ValidationResult.ok(direction)

    @staticmethod
    def validate_amount(text: Optional[str]) -> ValidationResult:
        return validate_with_schema(AmountSchema, "amount", text or "")

    @staticmethod
    def validate_name(text: Optional[str]) -> ValidationResult:
        return validate_with_schema(NameSchema, "name", text or "")

    @staticmethod
    def validate_phone(text: Optional[str], own_phone: str) -> ValidationResult:
        """
        Valida el teléfono de la otra parte.

        Args:
            text: Teléfono escrito por el usuario
            own_phone: Teléfono de quien crea el acuerdo
        """
        result = validate_with_schema(PhoneSchema, "phone", text or "")
        if not result.is_valid:
            return result
        if result.value == re.sub(r'\D', '', own_phone):
            logger.debug("Teléfono de la otra parte igual al propio")
            return ValidationResult.fail("No puedes crear un acuerdo contigo mismo")
        return result

    @staticmethod
    def validate_purpose(choice: Optional[str]) -> ValidationResult:
        purpose = _match_option(choice, PURPOSE_WORDS)
        if purpose not in AGREEMENT_PURPOSES:
            return ValidationResult.fail("Elige un propósito de la lista")
        return ValidationResult.ok(purpose)

    @staticmethod
    def validate_description(text: Optional[str]) -> ValidationResult:
        return validate_with_schema(DescriptionSchema, "description", text or "")

    @staticmethod
    def validate_due_date(choice: Optional[str]) -> ValidationResult:
        """
        Returns:
            ValidationResult: value = (selección, fecha ISO o None)
        """
        if choice not in DUE_DATE_OPTIONS:
            return ValidationResult.fail("Elige un plazo de la lista")
        due_date = TimezoneHelper.due_date_from_selection(choice)
        return ValidationResult.ok((choice, due_date.isoformat() if due_date else None))


def _match_option(choice: Optional[str], words: dict) -> Optional[str]:
    if not choice:
        return None
    for option, synonyms in words.items():
        if choice in synonyms:
            return option
    return None
