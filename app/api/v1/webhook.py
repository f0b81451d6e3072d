from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from app.core.config import get_settings
from app.models.message import Status, WebhookPayload
from app.services.conversation import ConversationManager, InputClassifier
from app.services.session import SessionLockError
from functools import lru_cache
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook")
settings = get_settings()
classifier = InputClassifier()


@lru_cache()
def get_conversation_manager() -> ConversationManager:
    """Instancia global del conversation manager"""
    return ConversationManager()

# ============================================================================
# ENDPOINTS PRINCIPALES
# ============================================================================

@router.get("")
async def verify_webhook(
    hub_mode: str = Query("", alias="hub.mode"),
    hub_challenge: str = Query("", alias="hub.challenge"),
    hub_verify_token: str = Query("", alias="hub.verify_token"),
):
    """Verifica el webhook de WhatsApp Business API."""
    if hub_mode == "subscribe" and hub_verify_token == settings.VERIFY_TOKEN:
        return PlainTextResponse(content=hub_challenge, status_code=200)

    raise HTTPException(status_code=403, detail="Verification failed")


@router.post("")
async def receive_update(
    payload: WebhookPayload,
    conversation_manager: ConversationManager = Depends(get_conversation_manager),
):
    """
    Endpoint principal para recibir actualizaciones de WhatsApp.
    Responsabilidad: Orquestación y manejo de errores.
    """
    try:
        messages, statuses = _collect_updates(payload)

        if statuses:
            _handle_status_updates(statuses)

        if not messages:
            if statuses:
                return {"status": "status_received", "count": len(statuses)}
            return {"status": "ignored", "reason": "no_valid_message"}

        processed = 0
        for raw_message in messages:
            if await _process_chat_message(raw_message, conversation_manager):
                processed += 1

        if not processed:
            return {"status": "ignored", "reason": "no_valid_message"}
        return {"status": "processed", "count": processed}

    except SessionLockError as e:
        logger.warning(f"Sesión ocupada, WhatsApp reintentará: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session busy"
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error procesando webhook: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor"
        )

# ============================================================================
# FUNCIONES PRIVADAS - EXTRACCIÓN
# ============================================================================

def _collect_updates(payload: WebhookPayload):
    """
    Reúne mensajes y estados de todas las entradas del payload.
    Responsabilidad: Recorrer la estructura entry/changes/value.
    """
    messages: List[Dict[str, Any]] = []
    statuses: List[Status] = []
    for entry in payload.entry:
        for change in entry.changes:
            messages.extend(change.value.messages)
            statuses.extend(change.value.statuses)
    return messages, statuses

# ============================================================================
# FUNCIONES PRIVADAS - PROCESAMIENTO
# ============================================================================

async def _process_chat_message(raw_message: Dict[str, Any], conversation_manager: ConversationManager) -> bool:
    """
    Clasifica un mensaje crudo y lo entrega al conversation manager.
    Responsabilidad: Orquestación del procesamiento de un mensaje.

    Returns:
        bool: False si el mensaje no tiene remitente y se ignora
    """
    event = classifier.classify_raw(raw_message)
    if event is None:
        logger.warning("Mensaje sin remitente, se ignora")
        return False

    logger.info(f"Mensaje {event.kind.value} recibido - ID: {event.message_id}")
    await conversation_manager.handle_event(event)
    return True

# ============================================================================
# FUNCIONES PRIVADAS - MANEJO DE ESTADOS
# ============================================================================

def _handle_status_updates(statuses: List[Status]) -> None:
    """
    Registra actualizaciones de estado de mensajes desde WhatsApp.
    Responsabilidad: Procesamiento de estados de delivery.
    """
    for status_update in statuses:
        logger.debug(f"Estado actualizado - ID: {status_update.id}, Estado: {status_update.status}")
