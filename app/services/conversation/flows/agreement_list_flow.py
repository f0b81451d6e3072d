from typing import Dict, Optional

from app.core.timezone_helper import TimezoneHelper
from app.models.event import IncomingEvent
from app.models.session import ConversationSession
from app.models.temp_data import AgreementListData
from app.services.conversation.flow_types import AgreementListStep, FlowType
from app.services.conversation.flows.agreement_create.agreement_create_flow import format_amount
from app.services.conversation.flows.base_flow import BACK_BUTTON, MENU_BUTTON, BaseFlow
from app.services.external import MarketplaceApiError, NotFoundError

# WhatsApp permite máximo 10 filas por lista; una queda para "Nuevo acuerdo"
MAX_LISTED_AGREEMENTS = 9
GONE_TEXT = "❌ Ese acuerdo ya no existe."

STATUS_LABELS = {
    "pending": "⏳ Pendiente",
    "confirmed": "✅ Confirmado",
    "completed": "🏁 Completado",
    "cancelled": "❌ Cancelado",
    "rejected": "🚫 Rechazado",
}


class AgreementListFlow(BaseFlow):
    """
    Responsabilidad única: Consultar los acuerdos del usuario, ver su
    detalle y marcarlos como completados o cancelarlos.
    """

    flow_type = FlowType.AGREEMENT_LIST
    temp_model = AgreementListData
    expected_input = {
        AgreementListStep.MY_LIST.value: "list",
        AgreementListStep.VIEW_DETAIL.value: "button",
        AgreementListStep.MARK_COMPLETE.value: "button",
    }

    async def start(self, session: ConversationSession) -> None:
        self.store_data(session, AgreementListData())
        self.set_step(session, AgreementListStep.MY_LIST)
        await self.show_my_list(session)

    async def handle(self, event: IncomingEvent, session: ConversationSession) -> None:
        self.log_step(session, event)
        step = session.current_step

        if step == AgreementListStep.MY_LIST.value:
            await self._handle_my_list(event, session)
        elif step == AgreementListStep.VIEW_DETAIL.value:
            await self._handle_view_detail(event, session)
        elif step == AgreementListStep.MARK_COMPLETE.value:
            await self._handle_mark_complete(event, session)

    async def prompt_current_step(self, session: ConversationSession) -> None:
        step = session.current_step
        if step == AgreementListStep.VIEW_DETAIL.value:
            await self.show_detail(session)
        elif step == AgreementListStep.MARK_COMPLETE.value:
            await self._ask_complete_confirmation(session)
        else:
            await self.show_my_list(session)

    # ============================================================================
    # LISTA
    # ============================================================================

    async def show_my_list(self, session: ConversationSession) -> None:
        ok, user = await self.perform(session, self.get_user(session), "No pudimos verificar tu cuenta.")
        if not ok:
            return
        if not user:
            await self.send_text(session, "🔒 Necesitas una cuenta registrada para ver tus acuerdos.")
            await self.go_to_main_menu(session)
            return

        ok, agreements = await self.perform(
            session,
            self.api.list_agreements(str(user.get("id"))),
            "No pudimos cargar tus acuerdos.",
        )
        if not ok:
            return

        if not agreements:
            await self.send_buttons(
                session,
                "📋 Aún no tienes acuerdos registrados.",
                [{"id": "create_agreement", "title": "📝 Nuevo acuerdo"}, MENU_BUTTON],
            )
            return

        rows = [self._agreement_row(agreement) for agreement in agreements[:MAX_LISTED_AGREEMENTS]]
        rows.append({"id": "create_agreement", "title": "📝 Nuevo acuerdo"})
        await self.send_list(
            session,
            f"📋 *Tus acuerdos* ({len(agreements)})\n\nElige uno para ver el detalle.",
            "Ver acuerdos",
            [{"title": "Acuerdos", "rows": rows}],
        )

    async def _handle_my_list(self, event: IncomingEvent, session: ConversationSession) -> None:
        selection = event.selection_id

        if selection == "retry":
            await self.show_my_list(session)
            return
        if selection == "create_agreement":
            await self.start_flow(session, FlowType.AGREEMENT_CREATE)
            return
        if selection and selection.startswith("agreement_"):
            agreement_id = self.parse_selection_id(selection, "agreement_")
            if agreement_id is None:
                self.logger.warning(f"[AGREEMENT_LIST] Selección mal formada: {selection}")
                await self.start(session)
                return
            self.store_data(session, AgreementListData(view_agreement_id=agreement_id))
            self.set_step(session, AgreementListStep.VIEW_DETAIL)
            await self.show_detail(session)
            return

        await self.handle_invalid_input(event, session)

    # ============================================================================
    # DETALLE
    # ============================================================================

    async def show_detail(self, session: ConversationSession) -> None:
        if session.user_id is None:
            ok, _ = await self.perform(session, self.get_user(session), "No pudimos verificar tu cuenta.")
            if not ok:
                return

        agreement_id = self.load_data(session).view_agreement_id
        try:
            agreement = await self.api.get_agreement(agreement_id)
        except NotFoundError:
            self.logger.info(f"[AGREEMENT_LIST] Acuerdo {agreement_id} no encontrado")
            await self.send_text(session, GONE_TEXT)
            await self.start(session)
            return
        except MarketplaceApiError as e:
            self.logger.error(f"[AGREEMENT_LIST] No se pudo cargar el acuerdo {agreement_id}: {e}", exc_info=True)
            await self.send_error_with_retry(session, "No pudimos cargar el acuerdo.")
            return

        buttons = []
        status = agreement.get("status")
        if status == "confirmed":
            buttons.append({"id": "mark_complete", "title": "🏁 Completar"})
        elif status == "pending" and self._is_creator(session, agreement):
            buttons.append({"id": "cancel_agreement", "title": "❌ Cancelar acuerdo"})
        buttons.append(BACK_BUTTON)

        await self.send_buttons(session, self._detail_text(agreement), buttons)

    async def _handle_view_detail(self, event: IncomingEvent, session: ConversationSession) -> None:
        choice = self.choice(event)

        if choice == "retry":
            await self.show_detail(session)
        elif self.is_back(event):
            await self.start(session)
        elif choice == "mark_complete":
            self.set_step(session, AgreementListStep.MARK_COMPLETE)
            await self._ask_complete_confirmation(session)
        elif choice == "cancel_agreement":
            await self._cancel_agreement(session)
        else:
            await self.handle_invalid_input(event, session)

    async def _cancel_agreement(self, session: ConversationSession) -> None:
        agreement_id = self.load_data(session).view_agreement_id
        ok, _ = await self.perform(
            session,
            self.api.cancel_agreement(agreement_id, session.user_id),
            "No pudimos cancelar el acuerdo.",
            retry_id="cancel_agreement",
        )
        if not ok:
            return
        self.logger.info(f"[AGREEMENT_LIST] Acuerdo {agreement_id} cancelado")
        await self.send_text(session, "❌ El acuerdo fue cancelado.")
        await self.start(session)

    # ============================================================================
    # COMPLETAR
    # ============================================================================

    async def _ask_complete_confirmation(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "🏁 ¿Confirmas que este acuerdo ya quedó saldado?",
            [
                {"id": "confirm_complete", "title": "✅ Sí, completar"},
                BACK_BUTTON,
            ],
        )

    async def _handle_mark_complete(self, event: IncomingEvent, session: ConversationSession) -> None:
        choice = self.choice(event)

        if self.is_back(event):
            self.set_step(session, AgreementListStep.VIEW_DETAIL)
            await self.show_detail(session)
            return
        if choice not in ("confirm_complete", "si", "sí", "yes"):
            await self.handle_invalid_input(event, session)
            return

        agreement_id = self.load_data(session).view_agreement_id
        ok, _ = await self.perform(
            session,
            self.api.mark_agreement_complete(agreement_id, session.user_id),
            "No pudimos marcar el acuerdo como completado.",
            retry_id="confirm_complete",
        )
        if not ok:
            return

        self.logger.info(f"[AGREEMENT_LIST] Acuerdo {agreement_id} completado")
        await self.send_text(session, "🎉 ¡Acuerdo marcado como completado!")
        await self.start(session)

    # ============================================================================
    # FORMATO
    # ============================================================================

    @staticmethod
    def _agreement_row(agreement: Dict) -> Dict:
        amount = agreement.get("amount")
        return {
            "id": f"agreement_{agreement.get('id')}",
            "title": f"#{agreement.get('agreement_number') or agreement.get('id')} {format_amount(amount) if amount else ''}".strip(),
            "description": f"{agreement.get('other_party_name') or ''} · {STATUS_LABELS.get(agreement.get('status'), agreement.get('status') or '')}",
        }

    @staticmethod
    def _detail_text(agreement: Dict) -> str:
        direction = "Prestaste" if agreement.get("direction") == "giving" else "Te prestaron"
        amount = agreement.get("amount")
        lines = [
            f"📄 *Acuerdo #{agreement.get('agreement_number') or agreement.get('id')}*",
            "",
            f"*{direction}:* {format_amount(amount) if amount else '-'}",
            f"*Otra parte:* {agreement.get('other_party_name') or '-'}",
            f"*Estado:* {STATUS_LABELS.get(agreement.get('status'), agreement.get('status') or '-')}",
            f"*Fecha límite:* {TimezoneHelper.format_date_for_whatsapp(agreement.get('due_date'))}",
        ]
        if agreement.get("description"):
            lines.append(f"*Descripción:* {agreement['description']}")
        return "\n".join(lines)

    @staticmethod
    def _is_creator(session: ConversationSession, agreement: Dict) -> Optional[bool]:
        creator_id = agreement.get("creator_id")
        return creator_id is not None and str(creator_id) == session.user_id
