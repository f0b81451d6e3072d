"""
Módulo de flujos de conversación del marketplace.

Arquitectura híbrida:
- Flujos con validaciones propias: en carpetas (agreement_create/, product_respond/, flash_deal_create/)
- Flujos simples: archivos individuales

Uso:
    from app.services.conversation.flows import FLOW_MAPPING, build_flows
"""

from typing import Dict

# ================================
# CLASE BASE
# ================================
from .base_flow import BaseFlow

# ================================
# FLUJOS COMPLEJOS (en carpetas)
# ================================
from .agreement_create import AgreementCreateFlow
from .product_respond import ProductRespondFlow
from .flash_deal_create import FlashDealCreateFlow

# ================================
# FLUJOS SIMPLES (archivos individuales)
# ================================
from .main_menu_flow import MainMenuFlow
from .agreement_list_flow import AgreementListFlow
from .offer_manage_flow import OfferManageFlow

# ================================
# EXPORTS PRINCIPALES
# ================================

__all__ = [
    "BaseFlow",
    "MainMenuFlow",
    "AgreementCreateFlow",
    "AgreementListFlow",
    "OfferManageFlow",
    "ProductRespondFlow",
    "FlashDealCreateFlow",
    "FLOW_MAPPING",
    "build_flows",
]

# Mapping nombre de flujo -> clase, usado por build_flows
FLOW_MAPPING = {
    flow_class.flow_type.value: flow_class
    for flow_class in (
        MainMenuFlow,
        AgreementCreateFlow,
        AgreementListFlow,
        OfferManageFlow,
        ProductRespondFlow,
        FlashDealCreateFlow,
    )
}


def build_flows(messenger, api, sessions) -> Dict[str, BaseFlow]:
    """Instancia todos los flujos registrados con sus colaboradores."""
    return {name: flow_class(messenger, api, sessions) for name, flow_class in FLOW_MAPPING.items()}
