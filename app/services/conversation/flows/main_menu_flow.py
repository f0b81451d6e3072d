from typing import Optional

from app.models.event import IncomingEvent
from app.models.session import ConversationSession
from app.services.conversation.flow_types import FlowType, MainMenuStep
from app.services.conversation.flows.base_flow import BaseFlow
from app.services.conversation.navigation import MENU_SELECTION_FLOWS, QUICK_ACTIONS
from app.services.external import MarketplaceApiError

# Atajos numéricos del menú principal
NUMBER_SHORTCUTS = {
    "1": "create_agreement",
    "2": "my_agreements",
    "3": "my_offers",
    "4": "product_requests",
    "5": "flash_deal",
}

ABOUT_TEXT = (
    "ℹ️ *Acerca de Mercado Bot*\n\n"
    "Registra acuerdos de dinero con confirmación de ambas partes, "
    "gestiona las ofertas de tu tienda y responde a lo que buscan tus clientes."
)


class MainMenuFlow(BaseFlow):
    """
    Responsabilidad única: mostrar el menú principal y derivar la selección
    al flujo correspondiente a través del router.
    """

    flow_type = FlowType.MAIN_MENU
    expected_input = {
        MainMenuStep.AWAITING_SELECTION.value: "list",
        MainMenuStep.MORE_OPTIONS.value: "list",
    }

    async def start(self, session: ConversationSession) -> None:
        await self.show_main_menu(session)

    async def handle(self, event: IncomingEvent, session: ConversationSession) -> None:
        self.log_step(session, event)

        if session.current_step in (MainMenuStep.IDLE.value, MainMenuStep.SHOW_MENU.value):
            await self.show_main_menu(session)
            return

        selection = self._resolve_selection(event)

        if selection == "more":
            await self.show_more_options(session)
        elif selection == "about":
            await self.send_text(session, ABOUT_TEXT)
            await self.show_main_menu(session)
        elif selection in MENU_SELECTION_FLOWS:
            await self.router.handle_menu_selection(session, selection)
        else:
            await self.handle_invalid_input(event, session)

    async def prompt_current_step(self, session: ConversationSession) -> None:
        if session.current_step == MainMenuStep.MORE_OPTIONS.value:
            await self.show_more_options(session)
        else:
            await self.show_main_menu(session)

    # ============================================================================
    # PANTALLAS
    # ============================================================================

    async def show_main_menu(self, session: ConversationSession) -> None:
        user = await self._safe_user(session)
        rows = [
            {"id": "create_agreement", "title": "📝 Nuevo acuerdo", "description": "Registra un préstamo o pago con alguien"},
            {"id": "my_agreements", "title": "📋 Mis acuerdos", "description": "Consulta y completa tus acuerdos"},
        ]
        if user and user.get("is_shop_owner"):
            rows += [
                {"id": "my_offers", "title": "🏷️ Mis ofertas", "description": "Estadísticas y eliminación de ofertas"},
                {"id": "product_requests", "title": "📬 Solicitudes", "description": "Responde a lo que buscan los clientes"},
                {"id": "flash_deal", "title": "⚡ Oferta relámpago", "description": "Descuento por tiempo limitado"},
            ]
        rows.append({"id": "more", "title": "➕ Más opciones"})

        body = "👋 *¡Hola!* ¿Qué quieres hacer hoy?"
        pending = await self._pending_agreements(user)
        if pending:
            body += f"\n\n⏳ Tienes *{pending}* acuerdo(s) esperando tu confirmación."

        await self.send_list(session, body, "Ver opciones", [{"title": "Menú principal", "rows": rows}])
        self.set_step(session, MainMenuStep.AWAITING_SELECTION)

    async def show_more_options(self, session: ConversationSession) -> None:
        await self.send_list(
            session,
            "➕ *Más opciones*",
            "Ver opciones",
            [{
                "title": "Más opciones",
                "rows": [
                    {"id": "about", "title": "ℹ️ Acerca de", "description": "Qué puedes hacer con el bot"},
                    {"id": "main_menu", "title": "🏠 Menú principal"},
                ],
            }],
        )
        self.set_step(session, MainMenuStep.MORE_OPTIONS)

    # ============================================================================
    # UTILIDADES
    # ============================================================================

    def _resolve_selection(self, event: IncomingEvent) -> Optional[str]:
        """Selección por id de lista/botón, por número o por palabra clave."""
        if event.is_interactive:
            return event.selection_id

        text = event.normalized_text
        if not text:
            return None
        if text in NUMBER_SHORTCUTS:
            return NUMBER_SHORTCUTS[text]
        if text in QUICK_ACTIONS:
            return QUICK_ACTIONS[text]
        for keyword, selection in QUICK_ACTIONS.items():
            if keyword in text:
                return selection
        return None

    async def _safe_user(self, session: ConversationSession):
        """El menú nunca debe fallar: sin API se muestra la versión básica."""
        try:
            return await self.get_user(session)
        except MarketplaceApiError as e:
            self.logger.warning(f"[MAIN_MENU] No se pudo consultar el usuario: {e}")
            return None

    async def _pending_agreements(self, user) -> int:
        if not user:
            return 0
        try:
            return await self.api.count_pending_agreements(str(user.get("id")))
        except MarketplaceApiError as e:
            self.logger.warning(f"[MAIN_MENU] No se pudo contar acuerdos pendientes: {e}")
            return 0
