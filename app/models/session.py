from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ConversationSession(BaseModel):
    """
    Posición del usuario dentro de la conversación.

    current_flow = None significa que no hay flujo activo (idle). El flujo se
    guarda como texto plano para que un valor desconocido en almacenamiento
    sea un estado recuperable y no un error de deserialización.
    """
    user_identifier: str
    current_flow: Optional[str] = None
    current_step: Optional[str] = None
    temp_data: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = None
    last_activity_at: Optional[datetime] = None
