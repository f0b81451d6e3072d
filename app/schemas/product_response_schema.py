from typing import Optional

from pydantic import BaseModel, field_validator
from pydantic_core import PydanticCustomError

MAX_RESPONSE_PRICE = 100_000_000


class PriceSchema(BaseModel):
    """Schema para validar el precio y los detalles opcionales de una respuesta"""
    price: int
    details: Optional[str] = None

    @field_validator('price', mode='before')
    def validate_price(cls, v):
        cleaned = str(v).replace('.', '').replace(' ', '')
        if not cleaned.isdigit() or not 0 < int(cleaned) <= MAX_RESPONSE_PRICE:
            raise PydanticCustomError(
                'price_invalid',
                'Escribe un precio válido. Ej: 1500 o 1500, modelo Samsung'
            )
        return int(cleaned)

    @field_validator('details')
    def validate_details(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) > 200:
            raise PydanticCustomError(
                'details_too_long',
                'Los detalles pueden tener máximo 200 caracteres'
            )
        return v or None
