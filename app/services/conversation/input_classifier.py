import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from app.models.event import EventKind, IncomingEvent
from app.models.message import Message

logger = logging.getLogger(__name__)


class InputClassifier:
    """
    Responsabilidad única: normalizar mensajes del webhook a IncomingEvent.

    Nunca lanza excepciones por payloads mal formados; lo que no reconoce
    se marca como "unrecognized" y los flujos lo tratan como entrada inválida.
    """

    def classify_raw(self, raw: Dict[str, Any]) -> Optional[IncomingEvent]:
        """
        Clasifica un mensaje tal como llega en el webhook (sin validar).

        Returns:
            Optional[IncomingEvent]: None solo si el mensaje no trae remitente
        """
        sender = raw.get("from") if isinstance(raw, dict) else None
        if not isinstance(sender, str) or not sender:
            logger.warning("[CLASSIFIER] Mensaje sin remitente, se ignora")
            return None

        try:
            message = Message.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"[CLASSIFIER] Mensaje mal formado de tipo '{raw.get('type')}': {e.error_count()} errores")
            return IncomingEvent(
                sender_identifier=sender,
                kind=EventKind.UNRECOGNIZED,
                payload={"type": raw.get("type")},
                message_id=raw.get("id") if isinstance(raw.get("id"), str) else None,
            )

        return self.classify(message)

    def classify(self, message: Message) -> IncomingEvent:
        """Clasifica un mensaje ya validado."""
        kind, payload = self._extract(message)
        if kind == EventKind.UNRECOGNIZED:
            logger.warning(f"[CLASSIFIER] Tipo de mensaje no soportado: {message.type}")

        return IncomingEvent(
            sender_identifier=message.from_,
            kind=kind,
            payload=payload,
            message_id=message.id,
        )

    # ============================================================================
    # EXTRACCIÓN POR TIPO
    # ============================================================================

    def _extract(self, message: Message):
        if message.type == "text":
            body = (message.text or {}).get("body")
            if isinstance(body, str):
                return EventKind.TEXT, {"body": body}

        elif message.type == "interactive" and message.interactive:
            return self._extract_interactive(message)

        elif message.type == "button" and message.button:
            if message.button.payload:
                return EventKind.BUTTON_REPLY, {"id": message.button.payload, "title": message.button.text or ""}
            if message.button.text:
                return EventKind.TEXT, {"body": message.button.text}

        elif message.type in ("image", "document"):
            media = message.image if message.type == "image" else message.document
            if media and media.id:
                kind = EventKind.IMAGE if message.type == "image" else EventKind.DOCUMENT
                return kind, media.model_dump(exclude_none=True)

        elif message.type == "location" and message.location:
            location = message.location
            if location.latitude is not None and location.longitude is not None:
                return EventKind.LOCATION, location.model_dump(exclude_none=True)

        return EventKind.UNRECOGNIZED, {"type": message.type}

    def _extract_interactive(self, message: Message):
        """
        Extrae contenido de mensajes interactivos (botones/listas).
        Si el tipo no coincide con la respuesta recibida, se degrada a texto.
        """
        interactive = message.interactive

        if interactive.type == "button_reply" and interactive.button_reply:
            reply = interactive.button_reply
            return EventKind.BUTTON_REPLY, {"id": reply.id, "title": reply.title}

        if interactive.type == "list_reply" and interactive.list_reply:
            reply = interactive.list_reply
            return EventKind.LIST_REPLY, reply.model_dump(exclude_none=True)

        reply = interactive.button_reply or interactive.list_reply
        if reply is not None:
            logger.info(f"[CLASSIFIER] Interactivo '{interactive.type}' degradado a texto")
            return EventKind.TEXT, {"body": reply.title or reply.id}

        return EventKind.UNRECOGNIZED, {"type": f"interactive.{interactive.type}"}
