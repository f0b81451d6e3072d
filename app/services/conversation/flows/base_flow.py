from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Tuple, Type, Union
import logging

from pydantic import ValidationError

from app.models.event import EventKind, IncomingEvent
from app.models.session import ConversationSession
from app.models.temp_data import FlowData
from app.services.conversation.flow_types import FLOW_DESCRIPTORS, FlowType
from app.services.external import MarketplaceApi, MarketplaceApiError
from app.services.session import SessionManager
from app.services.whatsapp import WhatsAppClient

MENU_BUTTON = {"id": "menu", "title": "🏠 Menú"}
BACK_BUTTON = {"id": "back", "title": "⬅️ Atrás"}

INVALID_INPUT_MESSAGES = {
    "text": "⚠️ Escribe tu respuesta en un mensaje de texto.",
    "button": "⚠️ Responde usando uno de los botones.",
    "list": "⚠️ Elige una opción de la lista.",
    "image": "⚠️ Envía una imagen para continuar.",
}
UNSUPPORTED_MESSAGE = "⚠️ No puedo leer ese tipo de mensaje. Responde con texto o con los botones."

BACK_WORDS = ("back", "atras", "atrás", "volver")
SKIP_WORDS = ("skip", "omitir", "saltar")


class InvalidStepError(ValueError):
    """Un flujo intentó moverse a un paso que no declara. Es un error de programación."""


class BaseFlow(ABC):
    """
    Clase base para todos los flujos de conversación.

    Responsabilidad: Definir el contrato común (start, handle,
    handle_invalid_input) y las utilidades compartidas de transición,
    datos temporales tipados y envío de mensajes.
    Todos los flujos específicos deben heredar de esta clase.
    """

    flow_type: FlowType
    temp_model: Type[FlowData] = FlowData
    # Tipo de entrada esperado por paso, para el aviso de entrada inválida
    expected_input: Dict[str, str] = {}

    def __init__(self, messenger: WhatsAppClient, api: MarketplaceApi, sessions: SessionManager):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.messenger = messenger
        self.api = api
        self.sessions = sessions
        self.descriptor = FLOW_DESCRIPTORS[self.flow_type.value]
        self.router = None  # lo asigna FlowRouter al registrar el flujo

    # ============================================================================
    # CONTRATO
    # ============================================================================

    @property
    def name(self) -> str:
        return self.flow_type.value

    @property
    def step_set(self):
        return self.descriptor.step_set

    @property
    def initial_step(self) -> str:
        return self.descriptor.initial_step

    def can_handle_step(self, step: Optional[str]) -> bool:
        return self.descriptor.has_step(step)

    @abstractmethod
    async def start(self, session: ConversationSession) -> None:
        """Punto de entrada/reingreso del flujo. Debe poder llamarse con cualquier temp_data previo."""

    @abstractmethod
    async def handle(self, event: IncomingEvent, session: ConversationSession) -> None:
        """Procesa un evento en el paso actual."""

    @abstractmethod
    async def prompt_current_step(self, session: ConversationSession) -> None:
        """Vuelve a enviar la pregunta del paso actual sin cambiar la sesión."""

    async def handle_invalid_input(self, event: IncomingEvent, session: ConversationSession, message: Optional[str] = None) -> None:
        """
        Aviso de entrada inválida y se repite el paso actual.

        Args:
            message: Error concreto de validación; si falta se usa el aviso
                según el tipo de entrada esperado
        """
        if message:
            notice = f"⚠️ {message}"
        elif event.kind == EventKind.UNRECOGNIZED:
            notice = UNSUPPORTED_MESSAGE
        else:
            expected = self.expected_input.get(session.current_step, "text")
            notice = INVALID_INPUT_MESSAGES.get(expected, INVALID_INPUT_MESSAGES["text"])

        self.logger.info(f"[{self.name.upper()}] Entrada inválida en paso '{session.current_step}' ({event.kind.value})")
        await self.send_text(session, notice)
        await self.prompt_current_step(session)

    # ============================================================================
    # TRANSICIONES
    # ============================================================================

    def set_step(self, session: ConversationSession, step: Union[str, Enum]) -> None:
        """
        Mueve la sesión a otro paso del mismo flujo.

        Raises:
            InvalidStepError: El paso no pertenece a este flujo
        """
        value = step.value if isinstance(step, Enum) else step
        if value not in self.step_set:
            raise InvalidStepError(f"'{value}' no es un paso de {self.name}")
        self.sessions.set_flow_step(session, self.name, value)

    async def start_flow(self, session: ConversationSession, flow: FlowType) -> None:
        """Traspaso a otro flujo a través del router."""
        await self.router.start_flow(session, flow)

    async def go_to_main_menu(self, session: ConversationSession) -> None:
        await self.router.return_to_main_menu(session)

    # ============================================================================
    # DATOS TEMPORALES TIPADOS
    # ============================================================================

    def load_data(self, session: ConversationSession) -> FlowData:
        try:
            return self.temp_model.model_validate(session.temp_data)
        except ValidationError as e:
            self.logger.warning(f"[{self.name.upper()}] temp_data inválido, se descarta: {e.error_count()} errores")
            return self.temp_model()

    def store_data(self, session: ConversationSession, data: FlowData) -> None:
        session.temp_data = data.model_dump(mode="json", exclude_none=True)

    # ============================================================================
    # LECTURA DE ENTRADAS
    # ============================================================================

    @staticmethod
    def parse_selection_id(selection: Optional[str], prefix: str) -> Optional[int]:
        """
        Extrae el id numérico de una selección como "agreement_42".

        Returns:
            Optional[int]: El id, o None si falta el prefijo o el sufijo no es numérico
        """
        if not selection or not selection.startswith(prefix):
            return None
        suffix = selection[len(prefix):]
        return int(suffix) if suffix.isdigit() else None

    @staticmethod
    def is_skip(event: IncomingEvent) -> bool:
        return event.selection_id == "skip" or event.normalized_text in SKIP_WORDS

    @staticmethod
    def is_back(event: IncomingEvent) -> bool:
        return event.selection_id == "back" or event.normalized_text in BACK_WORDS

    @staticmethod
    def choice(event: IncomingEvent) -> Optional[str]:
        """Id seleccionado, o el texto normalizado si el usuario escribió."""
        if event.is_interactive:
            return event.selection_id
        return event.normalized_text or None

    # ============================================================================
    # ENVÍO DE MENSAJES
    # ============================================================================

    async def send_text(self, session: ConversationSession, text: str):
        return await self.messenger.send_text(session.user_identifier, text)

    async def send_buttons(self, session: ConversationSession, body: str, buttons: List[Dict], header: Optional[str] = None, footer: Optional[str] = None):
        return await self.messenger.send_buttons(session.user_identifier, body, buttons, header, footer)

    async def send_list(self, session: ConversationSession, body: str, button_text: str, sections: List[Dict], header: Optional[str] = None, footer: Optional[str] = None):
        return await self.messenger.send_list(session.user_identifier, body, button_text, sections, header, footer)

    async def send_image(self, session: ConversationSession, image: str, caption: Optional[str] = None):
        return await self.messenger.send_image(session.user_identifier, image, caption)

    async def send_error_with_retry(self, session: ConversationSession, message: str, retry_id: str = "retry"):
        return await self.send_buttons(
            session,
            f"❌ {message}\n\nPuedes intentarlo de nuevo.",
            [{"id": retry_id, "title": "🔄 Reintentar"}, MENU_BUTTON],
        )

    # ============================================================================
    # ACCIONES CON COLABORADORES
    # ============================================================================

    async def get_user(self, session: ConversationSession) -> Optional[Dict]:
        """Usuario registrado del marketplace para el teléfono de la sesión."""
        user = await self.api.get_user_by_phone(session.user_identifier)
        if user:
            self.sessions.link_user(session, str(user.get("id")))
        return user

    async def perform(self, session: ConversationSession, action: Awaitable, failure_message: str, retry_id: str = "retry") -> Tuple[bool, Any]:
        """
        Ejecuta una acción de dominio en un paso terminal.

        Si el colaborador falla se registra el error, se ofrece reintentar y
        la sesión queda en el paso actual.

        Returns:
            Tuple[bool, Any]: (éxito, resultado de la acción)
        """
        try:
            return True, await action
        except MarketplaceApiError as e:
            self.logger.error(
                f"[{self.name.upper()}] Falló la acción en paso '{session.current_step}': {e}",
                exc_info=True,
            )
            await self.send_error_with_retry(session, failure_message, retry_id)
            return False, None

    # ============================================================================
    # LOGGING
    # ============================================================================

    def log_step(self, session: ConversationSession, event: Optional[IncomingEvent] = None):
        """Utilidad para logging consistente entre flujos."""
        self.logger.info(
            f"[{self.name.upper()}] Paso '{session.current_step}' - Usuario: {mask_phone(session.user_identifier)}"
        )
        if event is not None:
            self.logger.debug(f"[{self.name.upper()}] Evento: {event.kind.value} {event.payload}")


def mask_phone(phone: str) -> str:
    if len(phone) < 6:
        return phone
    return f"{phone[:3]}****{phone[-3:]}"
