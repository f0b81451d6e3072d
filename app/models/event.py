from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    TEXT = "text"
    BUTTON_REPLY = "button_reply"
    LIST_REPLY = "list_reply"
    IMAGE = "image"
    DOCUMENT = "document"
    LOCATION = "location"
    UNRECOGNIZED = "unrecognized"


class IncomingEvent(BaseModel):
    """
    Evento entrante normalizado, inmutable.

    Los accesores nunca fallan: con un payload mal formado devuelven None.
    """
    model_config = ConfigDict(frozen=True)

    sender_identifier: str
    kind: EventKind
    payload: Dict[str, Any] = Field(default_factory=dict)
    message_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Predicados
    # ------------------------------------------------------------------

    @property
    def is_text(self) -> bool:
        return self.kind == EventKind.TEXT

    @property
    def is_button_reply(self) -> bool:
        return self.kind == EventKind.BUTTON_REPLY

    @property
    def is_list_reply(self) -> bool:
        return self.kind == EventKind.LIST_REPLY

    @property
    def is_interactive(self) -> bool:
        return self.kind in (EventKind.BUTTON_REPLY, EventKind.LIST_REPLY)

    @property
    def is_image(self) -> bool:
        return self.kind == EventKind.IMAGE

    @property
    def is_media(self) -> bool:
        return self.kind in (EventKind.IMAGE, EventKind.DOCUMENT)

    @property
    def is_location(self) -> bool:
        return self.kind == EventKind.LOCATION

    # ------------------------------------------------------------------
    # Accesores
    # ------------------------------------------------------------------

    @property
    def text(self) -> Optional[str]:
        if not self.is_text:
            return None
        body = self.payload.get("body")
        return body if isinstance(body, str) else None

    @property
    def normalized_text(self) -> str:
        """Texto sin espacios y en minúsculas, o cadena vacía."""
        return (self.text or "").strip().lower()

    @property
    def selection_id(self) -> Optional[str]:
        if not self.is_interactive:
            return None
        selection = self.payload.get("id")
        return selection if isinstance(selection, str) and selection else None

    @property
    def selection_title(self) -> Optional[str]:
        if not self.is_interactive:
            return None
        title = self.payload.get("title")
        return title if isinstance(title, str) else None

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if not self.is_location:
            return None
        try:
            return float(self.payload["latitude"]), float(self.payload["longitude"])
        except (KeyError, TypeError, ValueError):
            return None

    @property
    def media_id(self) -> Optional[str]:
        if not self.is_media:
            return None
        media_id = self.payload.get("id")
        return media_id if isinstance(media_id, str) and media_id else None

    @property
    def mime_type(self) -> Optional[str]:
        if not self.is_media:
            return None
        mime_type = self.payload.get("mime_type")
        return mime_type if isinstance(mime_type, str) else None
