from pydantic import BaseModel, field_validator
from pydantic_core import PydanticCustomError
import re

MAX_AGREEMENT_AMOUNT = 100_000_000

AGREEMENT_DIRECTIONS = ("giving", "receiving")
AGREEMENT_PURPOSES = ("loan", "advance", "deposit", "business", "personal", "other")
DUE_DATE_OPTIONS = ("1week", "2weeks", "1month", "3months", "6months", "none")


class AmountSchema(BaseModel):
    """Schema para validar solo el monto"""
    amount: int

    @field_validator('amount', mode='before')
    def validate_amount(cls, v):
        cleaned = re.sub(r'[\s$,.]', '', str(v))
        if not cleaned.isdigit():
            raise PydanticCustomError(
                'amount_invalid',
                'El monto debe ser un número, por ejemplo 50000'
            )
        amount = int(cleaned)
        if amount <= 0 or amount > MAX_AGREEMENT_AMOUNT:
            raise PydanticCustomError(
                'amount_out_of_range',
                'El monto debe ser mayor a 0 y máximo 100.000.000'
            )
        return amount


class NameSchema(BaseModel):
    """Schema para validar el nombre de la otra parte"""
    name: str

    @field_validator('name')
    def validate_name(cls, v):
        v = ' '.join(v.split())
        if len(v) < 2 or len(v) > 100:
            raise PydanticCustomError(
                'name_invalid',
                'El nombre debe tener entre 2 y 100 caracteres'
            )
        return v


class PhoneSchema(BaseModel):
    """Schema para validar el teléfono de la otra parte"""
    phone: str

    @field_validator('phone')
    def validate_phone(cls, v):
        digits = re.sub(r'[\s+\-()]', '', v)
        if not re.match(r'^\d{10,15}$', digits):
            raise PydanticCustomError(
                'phone_invalid',
                'El teléfono debe tener entre 10 y 15 dígitos, con código de país'
            )
        return digits


class DescriptionSchema(BaseModel):
    """Schema para validar la descripción opcional"""
    description: str

    @field_validator('description')
    def validate_description(cls, v):
        v = v.strip()
        if not v:
            raise PydanticCustomError(
                'description_empty',
                'Escribe una descripción o toca Omitir'
            )
        if len(v) > 500:
            raise PydanticCustomError(
                'description_too_long',
                'La descripción puede tener máximo 500 caracteres'
            )
        return v
