from typing import Dict

from app.core.timezone_helper import TimezoneHelper
from app.models.event import IncomingEvent
from app.models.session import ConversationSession
from app.models.temp_data import FlashDealDraft
from app.services.conversation.flow_types import (
    FLASH_DEAL_EDITABLE_FIELDS,
    FLASH_DEAL_PREVIOUS_STEP,
    FlashDealStep,
    FlowType,
)
from app.services.conversation.flows.agreement_create.agreement_create_flow import format_amount
from app.services.conversation.flows.base_flow import MENU_BUTTON, BaseFlow
from .validators import FlashDealValidators

FLASH_BACK_BUTTON = {"id": "flash_back", "title": "⬅️ Atrás"}
FLASH_CANCEL_BUTTON = {"id": "flash_cancel", "title": "❌ Cancelar"}

SCHEDULE_LABELS = {
    "now": "🚀 Ahora mismo",
    "today_6pm": "🌆 Hoy 6:00 p.m.",
    "tomorrow_10am": "🌅 Mañana 10:00 a.m.",
    "custom": "🗓️ Otra hora",
}
EDIT_LABELS = {
    "title": "Título",
    "image": "Imagen",
    "discount": "Descuento",
    "cap": "Tope de descuento",
    "target": "Meta de reclamos",
    "time": "Duración",
    "schedule": "Programación",
}

# Orden de captura
NEXT_STEP = {
    FlashDealStep.ASK_TITLE: FlashDealStep.ASK_IMAGE,
    FlashDealStep.ASK_IMAGE: FlashDealStep.ASK_DISCOUNT,
    FlashDealStep.ASK_DISCOUNT: FlashDealStep.ASK_DISCOUNT_CAP,
    FlashDealStep.ASK_DISCOUNT_CAP: FlashDealStep.ASK_TARGET,
    FlashDealStep.ASK_TARGET: FlashDealStep.ASK_TIME_LIMIT,
    FlashDealStep.ASK_TIME_LIMIT: FlashDealStep.ASK_SCHEDULE,
    FlashDealStep.ASK_CUSTOM_TIME: FlashDealStep.PREVIEW,
}


class FlashDealCreateFlow(BaseFlow):
    """
    Responsabilidad única: Orquestar la creación de una oferta relámpago.

    Captura título, imagen, descuento, tope, meta de reclamos, duración y
    programación; muestra una vista previa editable y lanza la oferta.
    Cuando se edita un campo desde la vista previa, al validarlo se vuelve
    a la vista previa en lugar de seguir al siguiente paso.
    """

    flow_type = FlowType.FLASH_DEAL_CREATE
    temp_model = FlashDealDraft
    expected_input = {
        FlashDealStep.ASK_IMAGE.value: "image",
        FlashDealStep.ASK_TARGET.value: "list",
        FlashDealStep.ASK_TIME_LIMIT.value: "list",
        FlashDealStep.ASK_SCHEDULE.value: "list",
        FlashDealStep.PREVIEW.value: "button",
        FlashDealStep.EDITING.value: "list",
        FlashDealStep.LAUNCHED.value: "button",
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._handlers = {
            FlashDealStep.ASK_TITLE.value: self._process_title,
            FlashDealStep.ASK_IMAGE.value: self._process_image,
            FlashDealStep.ASK_DISCOUNT.value: self._process_discount,
            FlashDealStep.ASK_DISCOUNT_CAP.value: self._process_discount_cap,
            FlashDealStep.ASK_TARGET.value: self._process_target,
            FlashDealStep.ASK_TIME_LIMIT.value: self._process_time_limit,
            FlashDealStep.ASK_SCHEDULE.value: self._process_schedule,
            FlashDealStep.ASK_CUSTOM_TIME.value: self._process_custom_time,
            FlashDealStep.PREVIEW.value: self._process_preview,
            FlashDealStep.EDITING.value: self._process_editing,
            FlashDealStep.LAUNCHED.value: self._process_launched,
        }
        self._prompts = {
            FlashDealStep.ASK_TITLE.value: self._ask_title,
            FlashDealStep.ASK_IMAGE.value: self._ask_image,
            FlashDealStep.ASK_DISCOUNT.value: self._ask_discount,
            FlashDealStep.ASK_DISCOUNT_CAP.value: self._ask_discount_cap,
            FlashDealStep.ASK_TARGET.value: self._ask_target,
            FlashDealStep.ASK_TIME_LIMIT.value: self._ask_time_limit,
            FlashDealStep.ASK_SCHEDULE.value: self._ask_schedule,
            FlashDealStep.ASK_CUSTOM_TIME.value: self._ask_custom_time,
            FlashDealStep.PREVIEW.value: self._show_preview,
            FlashDealStep.EDITING.value: self._show_edit_options,
            FlashDealStep.LAUNCHED.value: self._show_launched,
        }

    async def start(self, session: ConversationSession) -> None:
        self.store_data(session, FlashDealDraft())
        await self._go(session, FlashDealStep.ASK_TITLE)

    async def handle(self, event: IncomingEvent, session: ConversationSession) -> None:
        self.log_step(session, event)
        step = FlashDealStep(session.current_step)

        if step != FlashDealStep.LAUNCHED:
            if event.selection_id == "flash_cancel":
                await self._cancel(session)
                return
            if self._is_back(event):
                await self._go_back(session, step)
                return

        await self._handlers[step.value](event, session)

    async def prompt_current_step(self, session: ConversationSession) -> None:
        await self._prompts[session.current_step](session)

    # ============================================================================
    # NAVEGACIÓN
    # ============================================================================

    def _is_back(self, event: IncomingEvent) -> bool:
        return event.selection_id == "flash_back" or self.is_back(event)

    async def _go(self, session: ConversationSession, step: FlashDealStep) -> None:
        self.set_step(session, step)
        await self.prompt_current_step(session)

    async def _go_back(self, session: ConversationSession, step: FlashDealStep) -> None:
        draft = self.load_data(session)
        if draft.editing_field and step not in (FlashDealStep.PREVIEW, FlashDealStep.EDITING):
            draft.editing_field = None
            self.store_data(session, draft)
            await self._go(session, FlashDealStep.PREVIEW)
            return

        previous = FLASH_DEAL_PREVIOUS_STEP.get(step)
        if previous is None:
            await self._cancel(session)
            return
        await self._go(session, previous)

    async def _cancel(self, session: ConversationSession) -> None:
        self.logger.info(f"[FLASH_DEAL] Creación cancelada en paso '{session.current_step}'")
        await self.send_text(session, "❌ Oferta relámpago cancelada.")
        await self.go_to_main_menu(session)

    async def _advance(self, session: ConversationSession, draft: FlashDealDraft, next_step: FlashDealStep) -> None:
        if draft.editing_field and next_step != FlashDealStep.ASK_CUSTOM_TIME:
            draft.editing_field = None
            next_step = FlashDealStep.PREVIEW
        self.store_data(session, draft)
        await self._go(session, next_step)

    # ============================================================================
    # PASOS DE CAPTURA
    # ============================================================================

    async def _process_title(self, event: IncomingEvent, session: ConversationSession) -> None:
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return
        result = FlashDealValidators.validate_title(event.text)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.title = result.value
        await self._advance(session, draft, NEXT_STEP[FlashDealStep.ASK_TITLE])

    async def _process_image(self, event: IncomingEvent, session: ConversationSession) -> None:
        if not event.is_image:
            await self.handle_invalid_input(event, session)
            return
        result = FlashDealValidators.validate_image(event.media_id, event.mime_type)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.image_media_id = result.value
        await self._advance(session, draft, NEXT_STEP[FlashDealStep.ASK_IMAGE])

    async def _process_discount(self, event: IncomingEvent, session: ConversationSession) -> None:
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return
        result = FlashDealValidators.validate_discount(event.text)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.discount_percent = result.value
        await self._advance(session, draft, NEXT_STEP[FlashDealStep.ASK_DISCOUNT])

    async def _process_discount_cap(self, event: IncomingEvent, session: ConversationSession) -> None:
        result = FlashDealValidators.validate_discount_cap(self.choice(event))
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.max_discount_value = result.value
        await self._advance(session, draft, NEXT_STEP[FlashDealStep.ASK_DISCOUNT_CAP])

    async def _process_target(self, event: IncomingEvent, session: ConversationSession) -> None:
        result = FlashDealValidators.validate_target(self.choice(event))
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.target_claims = result.value
        await self._advance(session, draft, NEXT_STEP[FlashDealStep.ASK_TARGET])

    async def _process_time_limit(self, event: IncomingEvent, session: ConversationSession) -> None:
        result = FlashDealValidators.validate_time_limit(self.choice(event))
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.time_limit_minutes = result.value
        await self._advance(session, draft, NEXT_STEP[FlashDealStep.ASK_TIME_LIMIT])

    async def _process_schedule(self, event: IncomingEvent, session: ConversationSession) -> None:
        result = FlashDealValidators.validate_schedule(self.choice(event))
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return

        draft = self.load_data(session)
        if result.value == "custom":
            draft.schedule = "custom"
            await self._advance(session, draft, FlashDealStep.ASK_CUSTOM_TIME)
            return

        scheduled = TimezoneHelper.schedule_to_datetime(result.value)
        if scheduled is not None and scheduled <= TimezoneHelper.get_now():
            await self.handle_invalid_input(event, session, "Esa hora ya pasó hoy, elige otra opción")
            return

        draft.schedule = result.value
        draft.scheduled_at = scheduled.isoformat() if scheduled else None
        await self._advance(session, draft, FlashDealStep.PREVIEW)

    async def _process_custom_time(self, event: IncomingEvent, session: ConversationSession) -> None:
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return
        result = FlashDealValidators.validate_custom_time(event.text)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return
        draft = self.load_data(session)
        draft.scheduled_at = result.value
        draft.editing_field = None
        await self._advance(session, draft, NEXT_STEP[FlashDealStep.ASK_CUSTOM_TIME])

    # ============================================================================
    # VISTA PREVIA, EDICIÓN Y LANZAMIENTO
    # ============================================================================

    async def _process_preview(self, event: IncomingEvent, session: ConversationSession) -> None:
        choice = self.choice(event)
        if choice == "flash_launch":
            await self._launch(session)
        elif choice == "flash_edit":
            await self._go(session, FlashDealStep.EDITING)
        else:
            await self.handle_invalid_input(event, session)

    async def _process_editing(self, event: IncomingEvent, session: ConversationSession) -> None:
        selection = event.selection_id or ""
        field = selection[len("edit_"):] if selection.startswith("edit_") else None
        if field not in FLASH_DEAL_EDITABLE_FIELDS:
            await self.handle_invalid_input(event, session)
            return

        draft = self.load_data(session)
        draft.editing_field = field
        self.store_data(session, draft)
        await self._go(session, FLASH_DEAL_EDITABLE_FIELDS[field])

    async def _launch(self, session: ConversationSession) -> None:
        draft = self.load_data(session)

        ok, user = await self.perform(session, self.get_user(session), "No pudimos verificar tu tienda.", retry_id="flash_launch")
        if not ok:
            return
        if not user or not user.get("shop_id"):
            await self.go_to_main_menu(session)
            return

        ok, deal = await self.perform(
            session,
            self.api.create_flash_deal(user.get("shop_id"), self._deal_payload(draft)),
            "No pudimos lanzar la oferta.",
            retry_id="flash_launch",
        )
        if not ok:
            return

        self.logger.info(f"[FLASH_DEAL] Oferta relámpago creada: {deal.get('id')}")
        draft.deal_id = deal.get("id")
        self.store_data(session, draft)
        await self._go(session, FlashDealStep.LAUNCHED)

    async def _process_launched(self, event: IncomingEvent, session: ConversationSession) -> None:
        if self.choice(event) == "flash_new":
            await self.start(session)
        else:
            await self.go_to_main_menu(session)

    @staticmethod
    def _deal_payload(draft: FlashDealDraft) -> Dict:
        return {
            "title": draft.title,
            "image_media_id": draft.image_media_id,
            "discount_percent": draft.discount_percent,
            "max_discount_value": draft.max_discount_value or None,
            "target_claims": draft.target_claims,
            "time_limit_minutes": draft.time_limit_minutes,
            "starts_at": draft.scheduled_at or TimezoneHelper.get_now().isoformat(),
        }

    # ============================================================================
    # PREGUNTAS
    # ============================================================================

    async def _ask_title(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "⚡ *Nueva oferta relámpago*\n\n¿Cuál es el título de la oferta? (5 a 100 caracteres)",
            [FLASH_CANCEL_BUTTON],
        )

    async def _ask_image(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "📸 Envía una imagen del producto (JPG, PNG o WEBP).",
            [FLASH_BACK_BUTTON, FLASH_CANCEL_BUTTON],
        )

    async def _ask_discount(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "🏷️ ¿Qué porcentaje de descuento vas a dar? Escribe un número entre 5 y 90.",
            [FLASH_BACK_BUTTON, FLASH_CANCEL_BUTTON],
        )

    async def _ask_discount_cap(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "💵 ¿Cuál es el descuento máximo en dinero? Escribe un valor entre 50 y 10000, o toca *Sin tope*.",
            [{"id": "flash_no_cap", "title": "♾️ Sin tope"}, FLASH_BACK_BUTTON, FLASH_CANCEL_BUTTON],
        )

    async def _ask_target(self, session: ConversationSession) -> None:
        await self._send_options(
            session,
            "🎯 ¿Cuántos reclamos necesitas para activar la oferta?",
            "Elegir meta",
            [{"id": f"target_{n}", "title": f"{n} reclamos"} for n in (10, 20, 30, 50)],
        )

    async def _ask_time_limit(self, session: ConversationSession) -> None:
        await self._send_options(
            session,
            "⏱️ ¿Cuánto tiempo estará disponible?",
            "Elegir duración",
            [{"id": f"time_{n}", "title": f"{n} minutos"} for n in (15, 30, 60, 120)],
        )

    async def _ask_schedule(self, session: ConversationSession) -> None:
        await self._send_options(
            session,
            "🗓️ ¿Cuándo quieres lanzarla?",
            "Elegir hora",
            [{"id": key, "title": label} for key, label in SCHEDULE_LABELS.items()],
        )

    async def _ask_custom_time(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "🕒 Escribe la fecha y hora de lanzamiento en formato *dd/mm/aaaa hh:mm*.",
            [FLASH_BACK_BUTTON, FLASH_CANCEL_BUTTON],
        )

    async def _show_preview(self, session: ConversationSession) -> None:
        draft = self.load_data(session)
        if draft.image_media_id:
            await self.send_image(session, draft.image_media_id, draft.title)
        await self.send_buttons(
            session,
            "👀 *Vista previa*\n\n" + self._summary(draft),
            [
                {"id": "flash_launch", "title": "🚀 Lanzar"},
                {"id": "flash_edit", "title": "✏️ Editar"},
                FLASH_CANCEL_BUTTON,
            ],
        )

    async def _show_edit_options(self, session: ConversationSession) -> None:
        await self._send_options(
            session,
            "✏️ ¿Qué quieres cambiar?",
            "Elegir campo",
            [{"id": f"edit_{field}", "title": label} for field, label in EDIT_LABELS.items()],
        )

    async def _show_launched(self, session: ConversationSession) -> None:
        draft = self.load_data(session)
        await self.send_buttons(
            session,
            f"🎉 *¡Oferta relámpago #{draft.deal_id} lista!*\n\n"
            "Avisaremos a los clientes cercanos cuando empiece.",
            [{"id": "flash_new", "title": "⚡ Crear otra"}, MENU_BUTTON],
        )

    async def _send_options(self, session: ConversationSession, body: str, button_text: str, rows) -> None:
        rows = rows + [{"id": "flash_back", "title": "⬅️ Atrás"}]
        await self.send_list(session, body, button_text, [{"title": "Opciones", "rows": rows}])

    @staticmethod
    def _summary(draft: FlashDealDraft) -> str:
        cap = format_amount(draft.max_discount_value) if draft.max_discount_value else "Sin tope"
        if draft.scheduled_at:
            when = TimezoneHelper.format_date_for_whatsapp(draft.scheduled_at) + " " + draft.scheduled_at[11:16]
        else:
            when = "Al lanzar"
        return "\n".join([
            f"*Título:* {draft.title}",
            f"*Descuento:* {draft.discount_percent}% (tope {cap})",
            f"*Meta:* {draft.target_claims} reclamos",
            f"*Duración:* {draft.time_limit_minutes} minutos",
            f"*Inicio:* {when}",
        ])
