from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional

class InteractiveButtonReply(BaseModel):
    id: str
    title: str = ""

class InteractiveListReply(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None

class Interactive(BaseModel):
    type: str  # "button_reply" o "list_reply"
    button_reply: Optional[InteractiveButtonReply] = None
    list_reply: Optional[InteractiveListReply] = None

class QuickReplyButton(BaseModel):
    """Botón de plantilla (mensajes tipo "button")."""
    payload: Optional[str] = None
    text: Optional[str] = None

class Media(BaseModel):
    id: Optional[str] = None
    mime_type: Optional[str] = None
    sha256: Optional[str] = None
    caption: Optional[str] = None
    filename: Optional[str] = None

class Location(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    name: Optional[str] = None
    address: Optional[str] = None

class Message(BaseModel):
    from_: str = Field(alias="from")      # "from" es palabra reservada
    id: Optional[str] = None
    timestamp: Optional[str] = None
    type: str = "unknown"
    text: Optional[Dict[str, Any]] = None    # para mensajes de texto
    interactive: Optional[Interactive] = None  # para mensajes interactivos
    button: Optional[QuickReplyButton] = None
    image: Optional[Media] = None
    document: Optional[Media] = None
    location: Optional[Location] = None

class Contact(BaseModel):
    wa_id: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None

class Status(BaseModel):
    id: str
    status: str
    timestamp: str
    recipient_id: Optional[str] = None

class Value(BaseModel):
    messages: List[Dict[str, Any]] = Field(default_factory=list)  # se validan uno a uno en el clasificador
    contacts: List[Contact] = Field(default_factory=list)
    statuses: List[Status] = Field(default_factory=list)  # Para estados de mensajes

class Change(BaseModel):
    value: Value

class WhatsAppEntry(BaseModel):
    changes: List[Change] = Field(default_factory=list)

class WebhookPayload(BaseModel):
    entry: List[WhatsAppEntry] = Field(default_factory=list)
