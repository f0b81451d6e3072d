from typing import Dict

from app.core.timezone_helper import TimezoneHelper
from app.models.event import IncomingEvent
from app.models.session import ConversationSession
from app.models.temp_data import OfferManageData
from app.services.conversation.flow_types import FlowType, OfferManageStep
from app.services.conversation.flows.base_flow import BACK_BUTTON, MENU_BUTTON, BaseFlow
from app.services.external import MarketplaceApiError, NotFoundError

MAX_LISTED_OFFERS = 9

DELETE_WORDS = ("delete", "remove", "eliminar", "borrar")
STATS_WORDS = ("stats", "stat", "estadisticas", "estadísticas")


class OfferManageFlow(BaseFlow):
    """
    Responsabilidad única: Mostrar las ofertas de la tienda del usuario,
    sus estadísticas y permitir eliminarlas con confirmación.
    """

    flow_type = FlowType.OFFERS_MANAGE
    temp_model = OfferManageData
    expected_input = {
        OfferManageStep.SHOW_MY_OFFERS.value: "list",
        OfferManageStep.MANAGE_OFFER.value: "button",
        OfferManageStep.DELETE_CONFIRM.value: "button",
    }

    async def start(self, session: ConversationSession) -> None:
        self.store_data(session, OfferManageData())
        self.set_step(session, OfferManageStep.SHOW_MY_OFFERS)
        await self.show_my_offers(session)

    async def handle(self, event: IncomingEvent, session: ConversationSession) -> None:
        self.log_step(session, event)
        step = session.current_step

        if step == OfferManageStep.SHOW_MY_OFFERS.value:
            await self._handle_offer_selection(event, session)
        elif step == OfferManageStep.MANAGE_OFFER.value:
            await self._handle_manage(event, session)
        elif step == OfferManageStep.DELETE_CONFIRM.value:
            await self._handle_delete_confirm(event, session)

    async def prompt_current_step(self, session: ConversationSession) -> None:
        step = session.current_step
        if step == OfferManageStep.MANAGE_OFFER.value:
            await self._show_manage_options(session)
        elif step == OfferManageStep.DELETE_CONFIRM.value:
            await self._ask_delete_confirmation(session)
        else:
            await self.show_my_offers(session)

    # ============================================================================
    # LISTA DE OFERTAS
    # ============================================================================

    async def show_my_offers(self, session: ConversationSession) -> None:
        ok, user = await self.perform(session, self.get_user(session), "No pudimos verificar tu tienda.")
        if not ok:
            return
        if not user or not user.get("shop_id"):
            await self.go_to_main_menu(session)
            return

        ok, offers = await self.perform(
            session,
            self.api.list_shop_offers(user.get("shop_id")),
            "No pudimos cargar tus ofertas.",
        )
        if not ok:
            return

        if not offers:
            await self.send_buttons(
                session,
                "🏷️ Tu tienda no tiene ofertas activas.",
                [{"id": "flash_deal", "title": "⚡ Crear oferta"}, MENU_BUTTON],
            )
            return

        rows = [
            {
                "id": f"manage_{offer.get('id')}",
                "title": offer.get("title") or f"Oferta #{offer.get('id')}",
                "description": f"{offer.get('discount_percent') or 0}% · {offer.get('claims') or 0} reclamos",
            }
            for offer in offers[:MAX_LISTED_OFFERS]
        ]
        await self.send_list(
            session,
            f"🏷️ *Tus ofertas* ({len(offers)})\n\nElige una para gestionarla.",
            "Ver ofertas",
            [{"title": "Ofertas", "rows": rows}],
        )

    async def _handle_offer_selection(self, event: IncomingEvent, session: ConversationSession) -> None:
        selection = event.selection_id

        if selection == "retry":
            await self.show_my_offers(session)
            return
        if selection == "flash_deal":
            await self.start_flow(session, FlowType.FLASH_DEAL_CREATE)
            return
        if selection and selection.startswith("manage_"):
            offer_id = self.parse_selection_id(selection, "manage_")
            if offer_id is None:
                self.logger.warning(f"[OFFERS_MANAGE] Selección mal formada: {selection}")
                await self.start(session)
                return
            self.store_data(session, OfferManageData(manage_offer_id=offer_id))
            self.set_step(session, OfferManageStep.MANAGE_OFFER)
            await self._show_manage_options(session)
            return

        await self.handle_invalid_input(event, session)

    # ============================================================================
    # GESTIÓN DE UNA OFERTA
    # ============================================================================

    async def _show_manage_options(self, session: ConversationSession) -> None:
        offer_id = self.load_data(session).manage_offer_id
        await self.send_buttons(
            session,
            f"🏷️ *Oferta #{offer_id}*\n\n¿Qué quieres hacer?",
            [
                {"id": "stats", "title": "📊 Estadísticas"},
                {"id": "delete", "title": "🗑️ Eliminar"},
                BACK_BUTTON,
            ],
        )

    async def _handle_manage(self, event: IncomingEvent, session: ConversationSession) -> None:
        choice = self.choice(event)

        if self.is_back(event):
            await self.start(session)
        elif choice in DELETE_WORDS:
            self.set_step(session, OfferManageStep.DELETE_CONFIRM)
            await self._ask_delete_confirmation(session)
        elif choice in STATS_WORDS or choice == "retry":
            await self._show_stats(session)
        else:
            await self.handle_invalid_input(event, session)

    async def _show_stats(self, session: ConversationSession) -> None:
        offer_id = self.load_data(session).manage_offer_id
        try:
            offer = await self.api.get_offer(offer_id)
        except NotFoundError:
            await self._offer_gone(session, offer_id)
            return
        except MarketplaceApiError as e:
            self.logger.error(f"[OFFERS_MANAGE] No se pudo cargar la oferta {offer_id}: {e}", exc_info=True)
            await self.send_error_with_retry(session, "No pudimos cargar las estadísticas.")
            return
        await self.send_text(session, self._stats_text(offer))
        await self._show_manage_options(session)

    # ============================================================================
    # ELIMINAR
    # ============================================================================

    async def _ask_delete_confirmation(self, session: ConversationSession) -> None:
        offer_id = self.load_data(session).manage_offer_id
        await self.send_buttons(
            session,
            f"🗑️ ¿Seguro que quieres eliminar la oferta #{offer_id}? Esta acción no se puede deshacer.",
            [
                {"id": "confirm_delete", "title": "✅ Sí, eliminar"},
                {"id": "cancel_delete", "title": "↩️ No, volver"},
            ],
        )

    async def _handle_delete_confirm(self, event: IncomingEvent, session: ConversationSession) -> None:
        choice = self.choice(event)

        if choice == "cancel_delete" or self.is_back(event):
            self.set_step(session, OfferManageStep.MANAGE_OFFER)
            await self._show_manage_options(session)
            return
        if choice not in ("confirm_delete", "si", "sí", "yes"):
            await self.handle_invalid_input(event, session)
            return

        offer_id = self.load_data(session).manage_offer_id
        try:
            await self.api.delete_offer(offer_id)
        except NotFoundError:
            await self._offer_gone(session, offer_id)
            return
        except MarketplaceApiError as e:
            self.logger.error(f"[OFFERS_MANAGE] No se pudo eliminar la oferta {offer_id}: {e}", exc_info=True)
            await self.send_error_with_retry(session, "No pudimos eliminar la oferta.", "confirm_delete")
            return

        self.logger.info(f"[OFFERS_MANAGE] Oferta {offer_id} eliminada")
        await self.send_text(session, "🗑️ Oferta eliminada.")
        await self.start(session)

    async def _offer_gone(self, session: ConversationSession, offer_id: int) -> None:
        """La oferta expiró o se borró en otro lado: se vuelve a la lista."""
        self.logger.info(f"[OFFERS_MANAGE] Oferta {offer_id} no encontrada")
        await self.send_text(session, "❌ Esa oferta ya no existe.")
        await self.start(session)

    @staticmethod
    def _stats_text(offer: Dict) -> str:
        return "\n".join([
            f"📊 *{offer.get('title') or 'Oferta'}*",
            "",
            f"*Descuento:* {offer.get('discount_percent') or 0}%",
            f"*Vistas:* {offer.get('views') or 0}",
            f"*Reclamos:* {offer.get('claims') or 0}",
            f"*Vence:* {TimezoneHelper.format_date_for_whatsapp(offer.get('expires_at'))}",
        ])
