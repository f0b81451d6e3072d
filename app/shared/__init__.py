"""
Componentes compartidos: constructores de mensajes interactivos de WhatsApp.
"""
