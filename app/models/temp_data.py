"""
Datos temporales tipados por flujo.

Los flujos trabajan con estos modelos; el almacén de sesiones solo ve el
diccionario genérico (temp_data) que resulta de serializarlos.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class FlowData(BaseModel):
    # Ignora claves de otros flujos o versiones anteriores
    model_config = ConfigDict(extra="ignore")


class AgreementListData(FlowData):
    view_agreement_id: Optional[int] = None


class AgreementDraft(FlowData):
    direction: Optional[str] = None
    amount: Optional[int] = None
    other_party_name: Optional[str] = None
    other_party_phone: Optional[str] = None
    purpose: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    due_date_selection: Optional[str] = None
    created_agreement_id: Optional[int] = None
    created_agreement_number: Optional[str] = None


class OfferManageData(FlowData):
    manage_offer_id: Optional[int] = None


class ProductResponseData(FlowData):
    request_id: Optional[int] = None
    request_description: Optional[str] = None
    price: Optional[int] = None
    details: Optional[str] = None
    photo_media_id: Optional[str] = None


class FlashDealDraft(FlowData):
    title: Optional[str] = None
    image_media_id: Optional[str] = None
    discount_percent: Optional[int] = None
    max_discount_value: Optional[int] = None    # 0 = sin tope
    target_claims: Optional[int] = None
    time_limit_minutes: Optional[int] = None
    schedule: Optional[str] = None
    scheduled_at: Optional[str] = None
    editing_field: Optional[str] = None
    deal_id: Optional[int] = None
