import logging
from typing import Optional

from app.core.config import get_settings
from app.models.event import IncomingEvent
from app.services.conversation.flow_router import FlowRouter
from app.services.conversation.flows import build_flows
from app.services.conversation.flows.base_flow import mask_phone
from app.services.external import MarketplaceApi
from app.services.session import SessionManager, SessionStore, get_session_store
from app.services.session.session_manager import MAIN_MENU_FLOW
from app.services.whatsapp import WhatsAppAPIError, WhatsAppClient

logger = logging.getLogger(__name__)

TIMEOUT_TEXT = "⏰ Tu sesión anterior expiró por inactividad, así que empezamos de nuevo."


class ConversationManager:
    """
    Responsabilidad única: Orquestar el procesamiento de conversaciones.

    Por cada evento: toma el lock del usuario, carga la sesión, aplica el
    vencimiento por inactividad, delega en el router y guarda la sesión.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        messenger: Optional[WhatsAppClient] = None,
        api: Optional[MarketplaceApi] = None,
        sessions: Optional[SessionManager] = None,
    ):
        """
        Inicializa el gestor de conversaciones.
        Los colaboradores se pueden inyectar; si no, se construyen desde la configuración.
        """
        settings = get_settings()

        # Recursos
        self.store = store or get_session_store()
        self.messenger = messenger or WhatsAppClient()
        self.api = api or MarketplaceApi()
        self.sessions = sessions or SessionManager(settings.SESSION_TIMEOUT_MINUTES)

        # Flujos y enrutamiento
        self.flows = build_flows(self.messenger, self.api, self.sessions)
        self.flow_router = FlowRouter(self.flows, self.messenger, self.sessions)

    async def handle_event(self, event: IncomingEvent) -> None:
        """
        Procesa un evento entrante de principio a fin.

        Raises:
            SessionLockError: No se pudo adquirir el lock del usuario
        """
        async with self.store.session(event.sender_identifier) as session:
            if self.sessions.has_timed_out(session):
                logger.info(
                    f"[CONVERSATION] Sesión vencida de {mask_phone(session.user_identifier)} "
                    f"en {session.current_flow}/{session.current_step}"
                )
                was_in_flow = session.current_flow != MAIN_MENU_FLOW
                self.sessions.clear_session(session)
                if was_in_flow:
                    await self._notify_timeout(session)

            self.sessions.touch(session)
            await self.flow_router.route(event, session)

    async def _notify_timeout(self, session) -> None:
        try:
            await self.messenger.send_text(session.user_identifier, TIMEOUT_TEXT)
        except WhatsAppAPIError as e:
            logger.error(f"[CONVERSATION] No se pudo avisar el vencimiento: {e}")

    async def close(self):
        """Cierra los clientes HTTP."""
        await self.api.close()
