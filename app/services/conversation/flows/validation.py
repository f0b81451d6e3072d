import logging
from typing import Any, NamedTuple, Type

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ValidationResult(NamedTuple):
    """
    Resultado de validar la entrada de un paso.
    Un fallo de validación es un valor de retorno, no una excepción.
    """
    is_valid: bool
    error: str = ""
    value: Any = None

    @classmethod
    def ok(cls, value: Any) -> "ValidationResult":
        return cls(True, "", value)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(False, error, None)


def validate_with_schema(schema: Type[BaseModel], field: str, raw: Any) -> ValidationResult:
    """
    Valida un único campo con un schema de Pydantic.

    Args:
        schema: Schema con el campo a validar
        field: Nombre del campo
        raw: Valor recibido del usuario

    Returns:
        ValidationResult: (is_valid, error_message, cleaned_value)
    """
    try:
        cleaned = getattr(schema(**{field: raw}), field)
        logger.debug(f"{schema.__name__} validado exitosamente")
        return ValidationResult.ok(cleaned)
    except ValidationError as e:
        error_msg = e.errors()[0]['msg']
        logger.debug(f"{schema.__name__} inválido: {error_msg}")
        return ValidationResult.fail(error_msg)
