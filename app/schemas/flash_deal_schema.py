from pydantic import BaseModel, field_validator
from pydantic_core import PydanticCustomError

TARGET_CLAIM_OPTIONS = (10, 20, 30, 50)
TIME_LIMIT_OPTIONS = (15, 30, 60, 120)
SCHEDULE_OPTIONS = ("now", "today_6pm", "tomorrow_10am", "custom")


class TitleSchema(BaseModel):
    """Schema para validar el título de la oferta"""
    title: str

    @field_validator('title')
    def validate_title(cls, v):
        v = ' '.join(v.split())
        if len(v) < 5 or len(v) > 100:
            raise PydanticCustomError(
                'title_invalid',
                'El título debe tener entre 5 y 100 caracteres'
            )
        return v


class DiscountSchema(BaseModel):
    """Schema para validar el porcentaje de descuento"""
    discount: int

    @field_validator('discount', mode='before')
    def validate_discount(cls, v):
        cleaned = str(v).strip().rstrip('%').strip()
        if not cleaned.isdigit() or not 5 <= int(cleaned) <= 90:
            raise PydanticCustomError(
                'discount_invalid',
                'El descuento debe ser un número entre 5 y 90'
            )
        return int(cleaned)


class DiscountCapSchema(BaseModel):
    """Schema para validar el tope de descuento. 0 significa sin tope"""
    cap: int

    @field_validator('cap', mode='before')
    def validate_cap(cls, v):
        cleaned = str(v).strip().lstrip('$').replace('.', '').replace(',', '')
        if not cleaned.isdigit():
            raise PydanticCustomError(
                'cap_invalid',
                'El tope debe ser un número entre 50 y 10000, o 0 para no tener tope'
            )
        cap = int(cleaned)
        if cap != 0 and not 50 <= cap <= 10000:
            raise PydanticCustomError(
                'cap_out_of_range',
                'El tope debe estar entre 50 y 10000, o 0 para no tener tope'
            )
        return cap
