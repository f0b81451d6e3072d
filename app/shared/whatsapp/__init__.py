"""
Payloads interactivos de WhatsApp (botones y listas) dentro de los límites de la Cloud API.
"""

from .buttons import WhatsAppButtons
from .lists import WhatsAppLists

__all__ = ["WhatsAppButtons", "WhatsAppLists"]
