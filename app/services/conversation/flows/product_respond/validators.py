import logging
import re
from typing import Optional

from pydantic import ValidationError

from app.schemas.product_response_schema import PriceSchema
from app.services.conversation.flows.validation import ValidationResult

logger = logging.getLogger(__name__)

# "1500", "$1.500", "1500, modelo Samsung"
PRICE_PATTERN = re.compile(r'^\s*\$?\s*(\d[\d. ]*?)\s*(?:[,\-]\s*(.*))?$')

ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/png", "image/webp")


class ProductResponseValidators:
    """
    Responsabilidad única: Validaciones de la respuesta de una tienda
    a una solicitud de producto.
    """

    @staticmethod
    def validate_price(text: Optional[str]) -> ValidationResult:
        """
        Valida el precio con detalles opcionales separados por coma.

        Returns:
            ValidationResult: value = (precio, detalles o None)
        """
        match = PRICE_PATTERN.match(text or "")
        if not match:
            return ValidationResult.fail("Escribe un precio válido. Ej: 1500 o 1500, modelo Samsung")
        try:
            schema = PriceSchema(price=match.group(1), details=match.group(2))
            logger.debug(f"Precio validado exitosamente: {schema.price}")
            return ValidationResult.ok((schema.price, schema.details))
        except ValidationError as e:
            error_msg = e.errors()[0]['msg']
            logger.debug(f"Precio inválido: {error_msg}")
            return ValidationResult.fail(error_msg)

    @staticmethod
    def validate_photo(media_id: Optional[str], mime_type: Optional[str]) -> ValidationResult:
        if not media_id:
            return ValidationResult.fail("Envía una foto del producto o toca Omitir")
        if mime_type and mime_type.split(";")[0].strip() not in ALLOWED_PHOTO_TYPES:
            return ValidationResult.fail("La foto debe ser JPG, PNG o WEBP")
        return ValidationResult.ok(media_id)
