from typing import Dict

from app.core.timezone_helper import TimezoneHelper
from app.models.event import IncomingEvent
from app.models.session import ConversationSession
from app.models.temp_data import AgreementDraft
from app.services.conversation.flow_types import AgreementCreateStep, FlowType
from app.services.conversation.flows.base_flow import BACK_BUTTON, MENU_BUTTON, BaseFlow
from .validators import AgreementValidators

CANCEL_BUTTON = {"id": "cancel", "title": "❌ Cancelar"}

DIRECTION_LABELS = {
    "giving": "💸 Yo presto",
    "receiving": "🤝 Me prestan",
}
PURPOSE_LABELS = {
    "loan": "Préstamo",
    "advance": "Anticipo",
    "deposit": "Depósito",
    "business": "Negocio",
    "personal": "Personal",
    "other": "Otro",
}
DUE_DATE_LABELS = {
    "1week": "1 semana",
    "2weeks": "2 semanas",
    "1month": "1 mes",
    "3months": "3 meses",
    "6months": "6 meses",
    "none": "Sin fecha límite",
}

# Paso anterior para la navegación "atrás"
PREVIOUS_STEP = {
    AgreementCreateStep.ASK_AMOUNT: AgreementCreateStep.ASK_DIRECTION,
    AgreementCreateStep.ASK_NAME: AgreementCreateStep.ASK_AMOUNT,
    AgreementCreateStep.ASK_PHONE: AgreementCreateStep.ASK_NAME,
    AgreementCreateStep.ASK_PURPOSE: AgreementCreateStep.ASK_PHONE,
    AgreementCreateStep.ASK_DESCRIPTION: AgreementCreateStep.ASK_PURPOSE,
    AgreementCreateStep.ASK_DUE_DATE: AgreementCreateStep.ASK_DESCRIPTION,
    AgreementCreateStep.REVIEW: AgreementCreateStep.ASK_DUE_DATE,
}


def format_amount(amount) -> str:
    """50000 -> "$50.000" """
    return f"${amount:,}".replace(",", ".")


class AgreementCreateFlow(BaseFlow):
    """
    Responsabilidad única: Orquestar la creación de un acuerdo de dinero.

    Coordina los pasos de captura y delega las validaciones a
    AgreementValidators. Crear el acuerdo es la única acción con efectos
    y ocurre al confirmar en el paso de revisión.
    """

    flow_type = FlowType.AGREEMENT_CREATE
    temp_model = AgreementDraft
    expected_input = {
        AgreementCreateStep.ASK_DIRECTION.value: "button",
        AgreementCreateStep.ASK_PURPOSE.value: "list",
        AgreementCreateStep.ASK_DUE_DATE.value: "list",
        AgreementCreateStep.REVIEW.value: "button",
        AgreementCreateStep.DONE.value: "button",
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Mapeo simple de pasos a métodos
        self._handlers = {
            AgreementCreateStep.ASK_DIRECTION.value: self._process_direction,
            AgreementCreateStep.ASK_AMOUNT.value: self._process_amount,
            AgreementCreateStep.ASK_NAME.value: self._process_name,
            AgreementCreateStep.ASK_PHONE.value: self._process_phone,
            AgreementCreateStep.ASK_PURPOSE.value: self._process_purpose,
            AgreementCreateStep.ASK_DESCRIPTION.value: self._process_description,
            AgreementCreateStep.ASK_DUE_DATE.value: self._process_due_date,
            AgreementCreateStep.REVIEW.value: self._process_review,
            AgreementCreateStep.DONE.value: self._process_done,
        }
        self._prompts = {
            AgreementCreateStep.ASK_DIRECTION.value: self._ask_direction,
            AgreementCreateStep.ASK_AMOUNT.value: self._ask_amount,
            AgreementCreateStep.ASK_NAME.value: self._ask_name,
            AgreementCreateStep.ASK_PHONE.value: self._ask_phone,
            AgreementCreateStep.ASK_PURPOSE.value: self._ask_purpose,
            AgreementCreateStep.ASK_DESCRIPTION.value: self._ask_description,
            AgreementCreateStep.ASK_DUE_DATE.value: self._ask_due_date,
            AgreementCreateStep.REVIEW.value: self._show_review,
            AgreementCreateStep.DONE.value: self._show_done,
        }

    async def start(self, session: ConversationSession) -> None:
        self.store_data(session, AgreementDraft())
        await self._go(session, AgreementCreateStep.ASK_DIRECTION)

    async def handle(self, event: IncomingEvent, session: ConversationSession) -> None:
        self.log_step(session, event)
        step = AgreementCreateStep(session.current_step)

        if step != AgreementCreateStep.DONE and self.is_back(event):
            await self._go_back(session, step)
            return

        await self._handlers[step.value](event, session)

    async def prompt_current_step(self, session: ConversationSession) -> None:
        await self._prompts[session.current_step](session)

    # ============================================================================
    # NAVEGACIÓN
    # ============================================================================

    async def _go(self, session: ConversationSession, step: AgreementCreateStep) -> None:
        self.set_step(session, step)
        await self.prompt_current_step(session)

    async def _go_back(self, session: ConversationSession, step: AgreementCreateStep) -> None:
        previous = PREVIOUS_STEP.get(step)
        if previous is None:
            await self.go_to_main_menu(session)
            return
        await self._go(session, previous)

    async def _accept(self, session: ConversationSession, draft: AgreementDraft, next_step: AgreementCreateStep) -> None:
        self.store_data(session, draft)
        await self._go(session, next_step)

    # ============================================================================
    # PASOS DE CAPTURA
    # ============================================================================

    async def _process_direction(self, event: IncomingEvent, session: ConversationSession) -> None:
        result = AgreementValidators.validate_direction(self.choice(event))
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.direction = result.value
        await self._accept(session, draft, AgreementCreateStep.ASK_AMOUNT)

    async def _process_amount(self, event: IncomingEvent, session: ConversationSession) -> None:
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return
        result = AgreementValidators.validate_amount(event.text)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.amount = result.value
        await self._accept(session, draft, AgreementCreateStep.ASK_NAME)

    async def _process_name(self, event: IncomingEvent, session: ConversationSession) -> None:
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return
        result = AgreementValidators.validate_name(event.text)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.other_party_name = result.value
        await self._accept(session, draft, AgreementCreateStep.ASK_PHONE)

    async def _process_phone(self, event: IncomingEvent, session: ConversationSession) -> None:
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return
        result = AgreementValidators.validate_phone(event.text, session.user_identifier)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.other_party_phone = result.value
        await self._accept(session, draft, AgreementCreateStep.ASK_PURPOSE)

    async def _process_purpose(self, event: IncomingEvent, session: ConversationSession) -> None:
        result = AgreementValidators.validate_purpose(self.choice(event))
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.purpose = result.value
        await self._accept(session, draft, AgreementCreateStep.ASK_DESCRIPTION)

    async def _process_description(self, event: IncomingEvent, session: ConversationSession) -> None:
        draft = self.load_data(session)
        if self.is_skip(event):
            draft.description = None
            await self._accept(session, draft, AgreementCreateStep.ASK_DUE_DATE)
            return
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return
        result = AgreementValidators.validate_description(event.text)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft.description = result.value
        await self._accept(session, draft, AgreementCreateStep.ASK_DUE_DATE)

    async def _process_due_date(self, event: IncomingEvent, session: ConversationSession) -> None:
        result = AgreementValidators.validate_due_date(self.choice(event))
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.due_date_selection, draft.due_date = result.value
        await self._accept(session, draft, AgreementCreateStep.REVIEW)

    # ============================================================================
    # REVISIÓN Y CREACIÓN
    # ============================================================================

    async def _process_review(self, event: IncomingEvent, session: ConversationSession) -> None:
        choice = self.choice(event)
        if choice in ("confirm", "confirmar", "si", "sí"):
            await self._create_agreement(session)
        elif choice in ("edit", "editar"):
            await self.start(session)
        else:
            await self.handle_invalid_input(event, session)

    async def _create_agreement(self, session: ConversationSession) -> None:
        draft = self.load_data(session)

        ok, user = await self.perform(session, self.get_user(session), "No pudimos verificar tu cuenta.", retry_id="confirm")
        if not ok:
            return
        if not user:
            await self.send_text(session, "🔒 Necesitas una cuenta registrada para crear acuerdos.")
            await self.go_to_main_menu(session)
            return

        payload = {
            "direction": draft.direction,
            "amount": draft.amount,
            "other_party_name": draft.other_party_name,
            "other_party_phone": draft.other_party_phone,
            "purpose": draft.purpose,
            "description": draft.description,
            "due_date": draft.due_date,
        }
        ok, agreement = await self.perform(
            session,
            self.api.create_agreement(str(user.get("id")), payload),
            "No pudimos crear el acuerdo.",
            retry_id="confirm",
        )
        if not ok:
            return

        self.logger.info(f"[AGREEMENT_CREATE] Acuerdo creado: {agreement.get('id')}")
        draft.created_agreement_id = agreement.get("id")
        draft.created_agreement_number = agreement.get("agreement_number")
        await self._accept(session, draft, AgreementCreateStep.DONE)

    async def _process_done(self, event: IncomingEvent, session: ConversationSession) -> None:
        choice = self.choice(event)
        if choice == "create_another":
            await self.start_flow(session, FlowType.AGREEMENT_CREATE)
        elif choice == "my_agreements":
            await self.start_flow(session, FlowType.AGREEMENT_LIST)
        else:
            await self.go_to_main_menu(session)

    # ============================================================================
    # PREGUNTAS
    # ============================================================================

    async def _ask_direction(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "📝 *Nuevo acuerdo*\n\n¿Vas a prestar dinero o te lo van a prestar?",
            [{"id": key, "title": label} for key, label in DIRECTION_LABELS.items()] + [CANCEL_BUTTON],
        )

    async def _ask_amount(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "💰 ¿Cuál es el monto?\n\nEscríbelo solo con números, por ejemplo *50000*.",
            [BACK_BUTTON, CANCEL_BUTTON],
        )

    async def _ask_name(self, session: ConversationSession) -> None:
        await self.send_buttons(session, "👤 ¿Cómo se llama la otra persona?", [BACK_BUTTON, CANCEL_BUTTON])

    async def _ask_phone(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "📱 ¿Cuál es su número de WhatsApp?\n\nIncluye el código de país, por ejemplo *573001234567*.",
            [BACK_BUTTON, CANCEL_BUTTON],
        )

    async def _ask_purpose(self, session: ConversationSession) -> None:
        await self.send_list(
            session,
            "🎯 ¿Cuál es el propósito del acuerdo?",
            "Elegir propósito",
            [{
                "title": "Propósito",
                "rows": [{"id": key, "title": label} for key, label in PURPOSE_LABELS.items()]
                + [{"id": "back", "title": "⬅️ Atrás"}],
            }],
        )

    async def _ask_description(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "🗒️ Agrega una descripción corta (máximo 500 caracteres) o toca *Omitir*.",
            [{"id": "skip", "title": "⏭️ Omitir"}, BACK_BUTTON, CANCEL_BUTTON],
        )

    async def _ask_due_date(self, session: ConversationSession) -> None:
        await self.send_list(
            session,
            "📅 ¿Para cuándo debe quedar saldado?",
            "Elegir plazo",
            [{
                "title": "Plazo",
                "rows": [{"id": key, "title": label} for key, label in DUE_DATE_LABELS.items()]
                + [{"id": "back", "title": "⬅️ Atrás"}],
            }],
        )

    async def _show_review(self, session: ConversationSession) -> None:
        draft = self.load_data(session)
        await self.send_buttons(
            session,
            "📋 *Revisa tu acuerdo*\n\n" + self._summary(draft) + "\n\n¿Todo está correcto?",
            [
                {"id": "confirm", "title": "✅ Confirmar"},
                {"id": "edit", "title": "✏️ Editar"},
                CANCEL_BUTTON,
            ],
        )

    async def _show_done(self, session: ConversationSession) -> None:
        draft = self.load_data(session)
        number = draft.created_agreement_number or draft.created_agreement_id
        await self.send_buttons(
            session,
            f"🎉 *Acuerdo #{number} creado*\n\n"
            f"Le enviamos una solicitud de confirmación a {draft.other_party_name}. "
            "Te avisaremos cuando responda.",
            [
                {"id": "create_another", "title": "📝 Crear otro"},
                {"id": "my_agreements", "title": "📋 Mis acuerdos"},
                MENU_BUTTON,
            ],
        )

    @staticmethod
    def _summary(draft: AgreementDraft) -> str:
        lines: Dict[str, str] = {
            "Tipo": DIRECTION_LABELS.get(draft.direction, "-"),
            "Monto": format_amount(draft.amount) if draft.amount else "-",
            "Otra parte": f"{draft.other_party_name} ({draft.other_party_phone})",
            "Propósito": PURPOSE_LABELS.get(draft.purpose, "-"),
            "Plazo": TimezoneHelper.format_date_for_whatsapp(draft.due_date),
        }
        if draft.description:
            lines["Descripción"] = draft.description
        return "\n".join(f"*{label}:* {value}" for label, value in lines.items())
