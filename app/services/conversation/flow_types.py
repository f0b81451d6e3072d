"""
Catálogo estático de flujos y pasos.

Cada flujo declara su paso inicial y el conjunto cerrado de pasos válidos.
Los descriptores se definen una sola vez al importar el módulo.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Type


class FlowType(str, Enum):
    MAIN_MENU = "main_menu"
    AGREEMENT_CREATE = "agreement_create"
    AGREEMENT_LIST = "agreement_list"
    OFFERS_MANAGE = "offers_manage"
    PRODUCT_RESPOND = "product_respond"
    FLASH_DEAL_CREATE = "flash_deal_create"


class MainMenuStep(str, Enum):
    IDLE = "idle"
    SHOW_MENU = "show_menu"
    AWAITING_SELECTION = "awaiting_selection"
    MORE_OPTIONS = "more_options"


class AgreementListStep(str, Enum):
    MY_LIST = "my_list"
    VIEW_DETAIL = "view_detail"
    MARK_COMPLETE = "mark_complete"


class AgreementCreateStep(str, Enum):
    ASK_DIRECTION = "ask_direction"
    ASK_AMOUNT = "ask_amount"
    ASK_NAME = "ask_name"
    ASK_PHONE = "ask_phone"
    ASK_PURPOSE = "ask_purpose"
    ASK_DESCRIPTION = "ask_description"
    ASK_DUE_DATE = "ask_due_date"
    REVIEW = "review"
    DONE = "done"


class OfferManageStep(str, Enum):
    SHOW_MY_OFFERS = "show_my_offers"
    MANAGE_OFFER = "manage_offer"
    DELETE_CONFIRM = "delete_confirm"


class ProductRespondStep(str, Enum):
    VIEW_REQUESTS = "view_requests"
    ASK_PRICE = "ask_price"
    ASK_PHOTO = "ask_photo"
    DONE = "done"


class FlashDealStep(str, Enum):
    ASK_TITLE = "ask_title"
    ASK_IMAGE = "ask_image"
    ASK_DISCOUNT = "ask_discount"
    ASK_DISCOUNT_CAP = "ask_discount_cap"
    ASK_TARGET = "ask_target"
    ASK_TIME_LIMIT = "ask_time_limit"
    ASK_SCHEDULE = "ask_schedule"
    ASK_CUSTOM_TIME = "ask_custom_time"
    PREVIEW = "preview"
    EDITING = "editing"
    LAUNCHED = "launched"


# Orden del asistente de ofertas relámpago, usado por "atrás"
FLASH_DEAL_PREVIOUS_STEP = {
    FlashDealStep.ASK_IMAGE: FlashDealStep.ASK_TITLE,
    FlashDealStep.ASK_DISCOUNT: FlashDealStep.ASK_IMAGE,
    FlashDealStep.ASK_DISCOUNT_CAP: FlashDealStep.ASK_DISCOUNT,
    FlashDealStep.ASK_TARGET: FlashDealStep.ASK_DISCOUNT_CAP,
    FlashDealStep.ASK_TIME_LIMIT: FlashDealStep.ASK_TARGET,
    FlashDealStep.ASK_SCHEDULE: FlashDealStep.ASK_TIME_LIMIT,
    FlashDealStep.ASK_CUSTOM_TIME: FlashDealStep.ASK_SCHEDULE,
    FlashDealStep.PREVIEW: FlashDealStep.ASK_SCHEDULE,
    FlashDealStep.EDITING: FlashDealStep.PREVIEW,
}

# Campos editables desde la vista previa ("edit_<campo>")
FLASH_DEAL_EDITABLE_FIELDS = {
    "title": FlashDealStep.ASK_TITLE,
    "image": FlashDealStep.ASK_IMAGE,
    "discount": FlashDealStep.ASK_DISCOUNT,
    "cap": FlashDealStep.ASK_DISCOUNT_CAP,
    "target": FlashDealStep.ASK_TARGET,
    "time": FlashDealStep.ASK_TIME_LIMIT,
    "schedule": FlashDealStep.ASK_SCHEDULE,
}


@dataclass(frozen=True)
class FlowDescriptor:
    name: FlowType
    initial_step: str
    step_set: FrozenSet[str]
    shop_only: bool = False

    def has_step(self, step: Optional[str]) -> bool:
        return step is not None and step in self.step_set


def _describe(name: FlowType, steps: Type[Enum], initial_step: Enum, shop_only: bool = False) -> FlowDescriptor:
    return FlowDescriptor(
        name=name,
        initial_step=initial_step.value,
        step_set=frozenset(step.value for step in steps),
        shop_only=shop_only,
    )


FLOW_DESCRIPTORS: Mapping[str, FlowDescriptor] = MappingProxyType({
    descriptor.name.value: descriptor
    for descriptor in (
        _describe(FlowType.MAIN_MENU, MainMenuStep, MainMenuStep.AWAITING_SELECTION),
        _describe(FlowType.AGREEMENT_LIST, AgreementListStep, AgreementListStep.MY_LIST),
        _describe(FlowType.AGREEMENT_CREATE, AgreementCreateStep, AgreementCreateStep.ASK_DIRECTION),
        _describe(FlowType.OFFERS_MANAGE, OfferManageStep, OfferManageStep.SHOW_MY_OFFERS, shop_only=True),
        _describe(FlowType.PRODUCT_RESPOND, ProductRespondStep, ProductRespondStep.VIEW_REQUESTS, shop_only=True),
        _describe(FlowType.FLASH_DEAL_CREATE, FlashDealStep, FlashDealStep.ASK_TITLE, shop_only=True),
    )
})


def get_descriptor(flow_name: Optional[str]) -> Optional[FlowDescriptor]:
    """Descriptor del flujo o None si el nombre no corresponde a ningún flujo."""
    if flow_name is None:
        return None
    return FLOW_DESCRIPTORS.get(flow_name)
