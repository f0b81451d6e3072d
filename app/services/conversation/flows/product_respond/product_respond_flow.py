from typing import Dict, Optional

from app.models.event import IncomingEvent
from app.models.session import ConversationSession
from app.models.temp_data import ProductResponseData
from app.services.conversation.flow_types import FlowType, ProductRespondStep
from app.services.conversation.flows.agreement_create.agreement_create_flow import format_amount
from app.services.conversation.flows.base_flow import BACK_BUTTON, MENU_BUTTON, BaseFlow
from app.services.external import MarketplaceApiError, NotFoundError
from .validators import ProductResponseValidators

MAX_LISTED_REQUESTS = 10


def truncate(text: str, max_length: int) -> str:
    return text if len(text) <= max_length else text[:max_length - 1] + "…"


def request_label(request: Dict) -> str:
    # El backend puede devolver description: null
    return request.get("description") or f"Solicitud #{request.get('id')}"


class ProductRespondFlow(BaseFlow):
    """
    Responsabilidad única: Permitir que una tienda responda a las
    solicitudes de producto de los clientes con precio, detalles y foto.

    Se entra desde el menú (lista de solicitudes) o directamente desde los
    botones de notificación respond_yes/no/skip_<id>.
    """

    flow_type = FlowType.PRODUCT_RESPOND
    temp_model = ProductResponseData
    expected_input = {
        ProductRespondStep.VIEW_REQUESTS.value: "list",
        ProductRespondStep.ASK_PRICE.value: "text",
        ProductRespondStep.ASK_PHOTO.value: "image",
        ProductRespondStep.DONE.value: "button",
    }

    async def start(self, session: ConversationSession) -> None:
        self.store_data(session, ProductResponseData())
        self.set_step(session, ProductRespondStep.VIEW_REQUESTS)
        await self.show_requests(session)

    async def handle(self, event: IncomingEvent, session: ConversationSession) -> None:
        self.log_step(session, event)
        step = session.current_step

        if step == ProductRespondStep.VIEW_REQUESTS.value:
            await self._handle_request_selection(event, session)
        elif step == ProductRespondStep.ASK_PRICE.value:
            await self._handle_price(event, session)
        elif step == ProductRespondStep.ASK_PHOTO.value:
            await self._handle_photo(event, session)
        elif step == ProductRespondStep.DONE.value:
            await self._handle_done(event, session)

    async def prompt_current_step(self, session: ConversationSession) -> None:
        step = session.current_step
        if step == ProductRespondStep.ASK_PRICE.value:
            await self._ask_price(session)
        elif step == ProductRespondStep.ASK_PHOTO.value:
            await self._ask_photo(session)
        elif step == ProductRespondStep.DONE.value:
            await self._show_done(session)
        else:
            await self.show_requests(session)

    # ============================================================================
    # SOLICITUDES
    # ============================================================================

    async def show_requests(self, session: ConversationSession) -> None:
        shop_id = await self._shop_id(session)
        if shop_id is None:
            return

        ok, requests = await self.perform(
            session,
            self.api.list_requests_for_shop(shop_id, MAX_LISTED_REQUESTS),
            "No pudimos cargar las solicitudes.",
        )
        if not ok:
            return

        if not requests:
            await self.send_buttons(session, "📭 No hay solicitudes de clientes por ahora.", [MENU_BUTTON])
            return

        rows = [
            {
                "id": f"req_{request.get('id')}",
                "title": truncate(request_label(request), 24),
                "description": truncate(request.get("description") or "", 72),
            }
            for request in requests[:MAX_LISTED_REQUESTS]
        ]
        await self.send_list(
            session,
            f"📬 *Solicitudes de clientes* ({len(requests)})\n\nElige una para responder.",
            "Ver solicitudes",
            [{"title": "Solicitudes", "rows": rows}],
        )

    async def _handle_request_selection(self, event: IncomingEvent, session: ConversationSession) -> None:
        selection = event.selection_id

        if selection == "retry":
            await self.show_requests(session)
            return
        if selection and selection.startswith("req_"):
            request_id = self.parse_selection_id(selection, "req_")
            if request_id is None:
                self.logger.warning(f"[PRODUCT_RESPOND] Selección mal formada: {selection}")
                await self.start(session)
                return
            await self.start_with_request(session, request_id, "yes")
            return

        await self.handle_invalid_input(event, session)

    async def start_with_request(self, session: ConversationSession, request_id: int, action: str = "yes") -> None:
        """
        Entra al flujo para una solicitud concreta.

        La solicitud se verifica antes de cambiar de flujo: si no se puede
        responder, el usuario conserva lo que estaba haciendo.

        Args:
            request_id: Id de la solicitud
            action: "yes" (responder con precio), "no" (no disponible) o "skip"
        """
        self.logger.info(f"[PRODUCT_RESPOND] Solicitud {request_id}, acción '{action}'")

        shop_id = await self._shop_id(session)
        if shop_id is None:
            return

        request = await self._load_open_request(session, request_id, shop_id)
        if request is None:
            return

        self.router.go_to_flow(session, FlowType.PRODUCT_RESPOND)
        self.store_data(session, ProductResponseData(
            request_id=request_id,
            request_description=request.get("description"),
        ))

        if action == "yes":
            self.set_step(session, ProductRespondStep.ASK_PRICE)
            await self._ask_price(session)
        elif action == "no":
            await self._send_response(session, {"available": False}, retry_id=f"respond_no_{request_id}")
        else:
            await self.send_text(session, "⏭️ Solicitud omitida.")
            await self.show_requests(session)

    async def _load_open_request(self, session: ConversationSession, request_id: int, shop_id: int) -> Optional[Dict]:
        """La solicitud debe existir, seguir abierta y no tener respuesta previa de esta tienda."""
        try:
            request = await self.api.get_request(request_id)
        except NotFoundError:
            request = None
        except MarketplaceApiError as e:
            self.logger.error(f"[PRODUCT_RESPOND] No se pudo cargar la solicitud {request_id}: {e}", exc_info=True)
            await self.send_error_with_retry(session, "No pudimos cargar la solicitud.", f"respond_yes_{request_id}")
            return None

        if not request:
            await self._refuse(session, "❌ La solicitud no existe o ya expiró.")
            return None

        if request.get("status", "open") != "open":
            await self._refuse(session, "⌛ Esta solicitud ya está cerrada.")
            return None

        ok, responded = await self.perform(
            session,
            self.api.has_responded(request_id, shop_id),
            "No pudimos verificar la solicitud.",
        )
        if not ok:
            return None
        if responded:
            await self._refuse(session, "⚠️ Ya respondiste a esta solicitud.")
            return None

        return request

    async def _refuse(self, session: ConversationSession, notice: str) -> None:
        """Sin flujo en curso se muestran las solicitudes; si no, se repite el paso actual."""
        await self.send_text(session, notice)
        if self.sessions.is_idle(session):
            self.router.go_to_flow(session, FlowType.PRODUCT_RESPOND)
            await self.show_requests(session)
        else:
            await self.router.prompt_current_step(session)

    # ============================================================================
    # PRECIO Y FOTO
    # ============================================================================

    async def _handle_price(self, event: IncomingEvent, session: ConversationSession) -> None:
        if self.is_back(event):
            await self.start(session)
            return
        if not event.is_text:
            await self.handle_invalid_input(event, session)
            return

        result = ProductResponseValidators.validate_price(event.text)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return

        data = self.load_data(session)
        data.price, data.details = result.value
        self.store_data(session, data)
        self.set_step(session, ProductRespondStep.ASK_PHOTO)
        await self._ask_photo(session)

    async def _handle_photo(self, event: IncomingEvent, session: ConversationSession) -> None:
        data = self.load_data(session)

        if self.is_back(event):
            self.set_step(session, ProductRespondStep.ASK_PRICE)
            await self._ask_price(session)
            return
        if event.selection_id == "send_response":
            await self._send_response(session, self._response_payload(data))
            return
        if self.is_skip(event):
            data.photo_media_id = None
            self.store_data(session, data)
            await self._send_response(session, self._response_payload(data))
            return
        if not event.is_image:
            await self.handle_invalid_input(event, session)
            return

        result = ProductResponseValidators.validate_photo(event.media_id, event.mime_type)
        if not result.is_valid:
            await self.handle_invalid_input(event, session, result.error)
            return

        data.photo_media_id = result.value
        self.store_data(session, data)
        await self._send_response(session, self._response_payload(data))

    async def _send_response(self, session: ConversationSession, payload: Dict, retry_id: str = "send_response") -> None:
        """Acción terminal: si falla, el paso no cambia y se ofrece reintentar."""
        data = self.load_data(session)
        shop_id = await self._shop_id(session)
        if shop_id is None:
            return

        ok, _ = await self.perform(
            session,
            self.api.create_response(data.request_id, shop_id, payload),
            "No pudimos enviar tu respuesta.",
            retry_id=retry_id,
        )
        if not ok:
            return

        self.logger.info(f"[PRODUCT_RESPOND] Respuesta enviada para solicitud {data.request_id}")
        if payload.get("available"):
            await self.send_text(session, f"✅ *Respuesta enviada*\n\n💰 {format_amount(data.price)}\nLe avisaremos al cliente 👍")
        else:
            await self.send_text(session, "👍 Le avisamos al cliente que no lo tienes disponible.")
        self.set_step(session, ProductRespondStep.DONE)
        await self._show_done(session)

    @staticmethod
    def _response_payload(data: ProductResponseData) -> Dict:
        return {
            "available": True,
            "price": data.price,
            "details": data.details,
            "photo_media_id": data.photo_media_id,
        }

    # ============================================================================
    # PREGUNTAS
    # ============================================================================

    async def _ask_price(self, session: ConversationSession) -> None:
        data = self.load_data(session)
        await self.send_buttons(
            session,
            f"🛍️ *{data.request_description or 'Solicitud'}*\n\n"
            "💰 ¿A qué precio lo tienes?\n_Ej: 1500 o 1500, modelo Samsung_",
            [BACK_BUTTON, MENU_BUTTON],
        )

    async def _ask_photo(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "📸 Envía una foto del producto para que el cliente lo vea, o toca *Omitir*.",
            [{"id": "skip", "title": "⏭️ Omitir"}, BACK_BUTTON],
        )

    async def _show_done(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "¿Quieres responder otra solicitud?",
            [{"id": "more_requests", "title": "📬 Más solicitudes"}, MENU_BUTTON],
        )

    async def _handle_done(self, event: IncomingEvent, session: ConversationSession) -> None:
        if self.choice(event) == "more_requests":
            await self.start(session)
        else:
            await self.go_to_main_menu(session)

    # ============================================================================
    # UTILIDADES
    # ============================================================================

    async def _shop_id(self, session: ConversationSession) -> Optional[int]:
        ok, user = await self.perform(session, self.get_user(session), "No pudimos verificar tu tienda.")
        if not ok:
            return None
        if not user or not user.get("shop_id"):
            await self.go_to_main_menu(session)
            return None
        return user.get("shop_id")
