"""
Palabras clave y selecciones de navegación global.
"""

import re

from app.services.conversation.flow_types import FlowType

MENU_KEYWORDS = frozenset({
    "menu", "menú", "home", "start", "hi", "hello", "main", "reset",
    "hola", "inicio", "buenas",
})
MENU_SELECTIONS = frozenset({"menu", "main_menu"})

CANCEL_KEYWORDS = frozenset({"cancel", "exit", "quit", "stop", "end", "cancelar", "salir"})
CANCEL_SELECTIONS = frozenset({"cancel"})

HELP_KEYWORDS = frozenset({"help", "?", "support", "ayuda", "soporte"})

# Selecciones del menú principal -> flujo que inician
MENU_SELECTION_FLOWS = {
    "create_agreement": FlowType.AGREEMENT_CREATE,
    "my_agreements": FlowType.AGREEMENT_LIST,
    "my_offers": FlowType.OFFERS_MANAGE,
    "product_requests": FlowType.PRODUCT_RESPOND,
    "flash_deal": FlowType.FLASH_DEAL_CREATE,
}

# Atajos de texto, solo cuando el usuario no está dentro de un flujo
QUICK_ACTIONS = {
    "acuerdo": "create_agreement",
    "agreement": "create_agreement",
    "agree": "create_agreement",
    "mis acuerdos": "my_agreements",
    "acuerdos": "my_agreements",
    "my agreements": "my_agreements",
    "ofertas": "my_offers",
    "offers": "my_offers",
    "solicitudes": "product_requests",
    "requests": "product_requests",
    "relampago": "flash_deal",
    "relámpago": "flash_deal",
    "deal": "flash_deal",
}

# Botones de notificación enviados a tiendas: respond_yes_15, respond_no_15, respond_skip_15
PRODUCT_RESPONSE_PATTERN = re.compile(r"^respond_(yes|no|skip)_(\d+)$")
