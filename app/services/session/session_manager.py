import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.models.session import ConversationSession

logger = logging.getLogger(__name__)

MAIN_MENU_FLOW = "main_menu"
IDLE_STEPS = ("idle", "show_menu")


class SessionManager:
    """
    Responsabilidad única: mutaciones de la sesión en memoria.

    No persiste nada; el almacén guarda la sesión al terminar cada evento.
    """

    def __init__(self, timeout_minutes: int = 30):
        self.timeout = timedelta(minutes=timeout_minutes)

    # ==================== FLUJO Y PASO ====================

    def set_flow_step(self, session: ConversationSession, flow: str, step: str) -> None:
        session.current_flow = flow
        session.current_step = step

    def clear_session(self, session: ConversationSession) -> None:
        """Deja la sesión sin flujo activo."""
        session.current_flow = None
        session.current_step = None
        session.temp_data = {}

    def is_idle(self, session: ConversationSession) -> bool:
        if session.current_flow is None:
            return True
        return session.current_flow == MAIN_MENU_FLOW and session.current_step in IDLE_STEPS

    # ==================== DATOS TEMPORALES ====================

    def clear_temp_data(self, session: ConversationSession) -> None:
        session.temp_data = {}

    # ==================== ACTIVIDAD ====================

    def has_timed_out(self, session: ConversationSession, now: Optional[datetime] = None) -> bool:
        """True si hay un flujo activo y el usuario lleva más del límite sin escribir."""
        if session.current_flow is None or session.last_activity_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now - session.last_activity_at > self.timeout

    def touch(self, session: ConversationSession, now: Optional[datetime] = None) -> None:
        session.last_activity_at = now or datetime.now(timezone.utc)

    def link_user(self, session: ConversationSession, user_id: Optional[str]) -> None:
        if user_id and session.user_id != user_id:
            logger.info(f"[SESSION] Sesión vinculada al usuario {user_id}")
            session.user_id = user_id
