import logging
from typing import Dict, Optional

from app.models.event import IncomingEvent
from app.models.session import ConversationSession
from app.services.conversation.flow_types import FlowType, get_descriptor
from app.services.conversation.flows.base_flow import MENU_BUTTON, BaseFlow, mask_phone
from app.services.conversation.navigation import (
    CANCEL_KEYWORDS,
    CANCEL_SELECTIONS,
    HELP_KEYWORDS,
    MENU_KEYWORDS,
    MENU_SELECTION_FLOWS,
    MENU_SELECTIONS,
    PRODUCT_RESPONSE_PATTERN,
    QUICK_ACTIONS,
)
from app.services.session import SessionManager
from app.services.whatsapp import WhatsAppAPIError, WhatsAppClient

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "🆘 *Ayuda*\n\n"
    "• Escribe *menu* en cualquier momento para volver al inicio.\n"
    "• Escribe *cancelar* para salir de lo que estás haciendo.\n"
    "• Usa los botones y listas para responder más rápido."
)
CANCELLED_TEXT = "❌ Operación cancelada."
SHOP_ONLY_TEXT = "⚠️ Esta opción es solo para dueños de tienda registrados."
GENERIC_ERROR_TEXT = "😕 Algo salió mal procesando tu mensaje. Puedes intentarlo de nuevo o volver al menú."


class FlowRouter:
    """
    Responsabilidad única: Enrutar cada evento al flujo apropiado según la
    sesión y mediar los traspasos entre flujos.
    """

    def __init__(self, flows: Dict[str, BaseFlow], messenger: WhatsAppClient, sessions: SessionManager):
        """
        Inicializa el router de flujos.

        Args:
            flows: Diccionario nombre de flujo -> instancia del flujo
            messenger: Cliente de mensajería para avisos globales
            sessions: Operaciones sobre la sesión
        """
        self.flows = flows
        self.messenger = messenger
        self.sessions = sessions
        for flow in flows.values():
            flow.router = self

        if FlowType.MAIN_MENU.value not in flows:
            raise ValueError("El flujo main_menu es obligatorio")

    @property
    def main_menu(self) -> BaseFlow:
        return self.flows[FlowType.MAIN_MENU.value]

    # ============================================================================
    # DESPACHO
    # ============================================================================

    async def route(self, event: IncomingEvent, session: ConversationSession) -> None:
        """
        Enruta un evento. Nunca deja escapar excepciones de los flujos: cualquier
        fallo restaura la sesión previa y ofrece reintentar.
        """
        snapshot = session.model_copy(deep=True)
        try:
            await self._dispatch(event, session)
        except Exception as e:
            logger.error(
                f"[ROUTER] Error en flujo {snapshot.current_flow}/{snapshot.current_step} "
                f"para {mask_phone(session.user_identifier)}: {e}",
                exc_info=True,
            )
            self._restore(session, snapshot)
            await self._send_generic_error(session)

    async def _dispatch(self, event: IncomingEvent, session: ConversationSession) -> None:
        if await self._intercept_global(event, session):
            return

        if session.current_flow is None:
            await self.main_menu.start(session)
            return

        handler = self.flows.get(session.current_flow)
        if handler is None:
            logger.warning(f"[ROUTER] No hay flujo registrado para '{session.current_flow}', se vuelve al menú")
            await self.return_to_main_menu(session)
            return

        if not handler.can_handle_step(session.current_step):
            logger.warning(
                f"[ROUTER] Paso '{session.current_step}' desconocido en {handler.name}, se reinicia el flujo"
            )
            await self._restart_flow(session, handler)
            return

        await handler.handle(event, session)

    async def _intercept_global(self, event: IncomingEvent, session: ConversationSession) -> bool:
        """Navegación global: corre antes de cualquier lógica de paso."""
        selection = event.selection_id
        text = event.normalized_text

        if selection in MENU_SELECTIONS or text in MENU_KEYWORDS:
            await self.return_to_main_menu(session)
            return True

        if not self.sessions.is_idle(session) and (selection in CANCEL_SELECTIONS or text in CANCEL_KEYWORDS):
            logger.info(f"[ROUTER] Cancelado {session.current_flow}/{session.current_step}")
            await self.messenger.send_text(session.user_identifier, CANCELLED_TEXT)
            await self.return_to_main_menu(session)
            return True

        if text in HELP_KEYWORDS:
            await self.messenger.send_buttons(session.user_identifier, HELP_TEXT, [MENU_BUTTON])
            return True

        match = PRODUCT_RESPONSE_PATTERN.match(selection or "")
        if match and FlowType.PRODUCT_RESPOND.value in self.flows:
            action, request_id = match.group(1), int(match.group(2))
            if await self._passes_gate(session, FlowType.PRODUCT_RESPOND):
                await self.flows[FlowType.PRODUCT_RESPOND.value].start_with_request(session, request_id, action)
            return True

        if self.sessions.is_idle(session) and text in QUICK_ACTIONS:
            await self.handle_menu_selection(session, QUICK_ACTIONS[text])
            return True

        return False

    # ============================================================================
    # TRANSICIONES ENTRE FLUJOS
    # ============================================================================

    def go_to_flow(self, session: ConversationSession, flow: FlowType, step: Optional[str] = None) -> None:
        """
        Cambia de flujo: limpia temp_data y usa el paso inicial si no se indica otro.

        Raises:
            ValueError: El flujo no tiene descriptor o el paso no le pertenece
        """
        descriptor = get_descriptor(flow.value)
        if descriptor is None:
            raise ValueError(f"Flujo sin descriptor: {flow.value}")

        target_step = step or descriptor.initial_step
        if not descriptor.has_step(target_step):
            raise ValueError(f"'{target_step}' no es un paso de {flow.value}")

        self.sessions.clear_temp_data(session)
        self.sessions.set_flow_step(session, flow.value, target_step)

    async def start_flow(self, session: ConversationSession, flow: FlowType) -> None:
        """Verifica permisos, entra al flujo en su paso inicial y llama a start."""
        handler = self.flows.get(flow.value)
        if handler is None:
            logger.warning(f"[ROUTER] Flujo '{flow.value}' no disponible, se vuelve al menú")
            await self.return_to_main_menu(session)
            return

        if not await self._passes_gate(session, flow):
            return

        logger.info(f"[ROUTER] Iniciando flujo {flow.value} para {mask_phone(session.user_identifier)}")
        self.go_to_flow(session, flow)
        await handler.start(session)

    async def return_to_main_menu(self, session: ConversationSession) -> None:
        self.go_to_flow(session, FlowType.MAIN_MENU)
        await self.main_menu.start(session)

    async def prompt_current_step(self, session: ConversationSession) -> None:
        """Repite la pregunta del paso en curso, sea del flujo que sea."""
        handler = self.flows.get(session.current_flow or "")
        if handler is None or not handler.can_handle_step(session.current_step):
            await self.return_to_main_menu(session)
            return
        await handler.prompt_current_step(session)

    async def handle_menu_selection(self, session: ConversationSession, selection: str) -> None:
        flow = MENU_SELECTION_FLOWS.get(selection)
        if flow is None:
            await self.return_to_main_menu(session)
            return
        await self.start_flow(session, flow)

    async def _restart_flow(self, session: ConversationSession, handler: BaseFlow) -> None:
        """Recuperación de un paso desconocido: el flujo vuelve a empezar."""
        self.go_to_flow(session, handler.flow_type)
        await handler.start(session)

    # ============================================================================
    # UTILIDADES
    # ============================================================================

    async def _passes_gate(self, session: ConversationSession, flow: FlowType) -> bool:
        """Los flujos de tienda exigen un dueño de tienda registrado."""
        descriptor = get_descriptor(flow.value)
        if descriptor is None or not descriptor.shop_only:
            return True

        user = await self.main_menu.get_user(session)
        if user and user.get("is_shop_owner"):
            return True

        logger.info(f"[ROUTER] {mask_phone(session.user_identifier)} sin tienda intentó entrar a {flow.value}")
        await self.messenger.send_text(session.user_identifier, SHOP_ONLY_TEXT)
        await self.return_to_main_menu(session)
        return False

    @staticmethod
    def _restore(session: ConversationSession, snapshot: ConversationSession) -> None:
        session.current_flow = snapshot.current_flow
        session.current_step = snapshot.current_step
        session.temp_data = snapshot.temp_data
        session.user_id = snapshot.user_id

    async def _send_generic_error(self, session: ConversationSession) -> None:
        try:
            await self.messenger.send_buttons(
                session.user_identifier,
                GENERIC_ERROR_TEXT,
                [{"id": "retry", "title": "🔄 Reintentar"}, MENU_BUTTON],
            )
        except WhatsAppAPIError as e:
            logger.error(f"[ROUTER] No se pudo avisar del error a {mask_phone(session.user_identifier)}: {e}")
