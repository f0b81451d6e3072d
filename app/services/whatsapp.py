import httpx, logging
from typing import Dict, List, Optional
from app.core.config import get_settings
from app.shared.whatsapp import WhatsAppButtons, WhatsAppLists
logger = logging.getLogger(__name__)
settings = get_settings()

class WhatsAppAPIError(Exception):
    """Error al llamar a la Cloud API."""

def _media_reference(media: str) -> Dict[str, str]:
    """Las URLs se envían como link, el resto como id de media ya subido."""
    return {"link": media} if media.startswith("http") else {"id": media}

class WhatsAppClient:
    """
    Encapsula las llamadas a la Cloud API.
    Responsabilidad única: enviar mensajes salientes.
    """
    def __init__(self):
        self.url = f"{settings.BASE_URL}/{settings.PHONE_ID}/messages"
        self.headers = {
            "Authorization": f"Bearer {settings.META_TOKEN}",
            "Content-Type": "application/json"
        }

    async def _post(self, payload: Dict) -> Dict:
        """
        Envía el payload a la Cloud API.

        Raises:
            WhatsAppAPIError: Respuesta HTTP de error, timeout o fallo de conexión
        """
        async with httpx.AsyncClient(timeout=httpx.Timeout(10.0, connect=5.0)) as client:
            try:
                r = await client.post(self.url, headers=self.headers, json=payload)
                r.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.error("WA %s – %s", exc.response.status_code, exc.response.text)
                # Propaga un error de dominio, no el de httpx
                raise WhatsAppAPIError(exc.response.text) from exc
            except httpx.TimeoutException as exc:
                logger.error("WA timeout enviando %s", payload.get("type"))
                raise WhatsAppAPIError("Timeout al comunicarse con WhatsApp") from exc
            except httpx.RequestError as exc:
                logger.error("WA error de conexión: %s", exc)
                raise WhatsAppAPIError(f"Error de conexión: {exc}") from exc
        return r.json()

    async def send_text(self, to: str, text: str, reply_to: str | None = None):
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"preview_url": False, "body": text},
        }
        if reply_to:
            payload["context"] = {"message_id": reply_to}
        return await self._post(payload)

    async def send_interactive(self, to: str, interactive_data: dict, reply_to: str | None = None):
        """
        Envía mensajes interactivos (botones o listas) a WhatsApp.

        Args:
            to: Número de teléfono destino
            interactive_data: Objeto con estructura de botones/lista
            reply_to: ID del mensaje al que responder (opcional)
        """
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            **interactive_data  # Incluir tipo "interactive" y toda la estructura
        }

        if reply_to:
            payload["context"] = {"message_id": reply_to}

        response = await self._post(payload)
        logger.debug(f"[WA] Mensaje interactivo enviado: {interactive_data.get('interactive', {}).get('type', 'unknown')}")
        return response

    async def send_buttons(self, to: str, body: str, buttons: List[Dict], header: Optional[str] = None, footer: Optional[str] = None):
        """Envía hasta 3 botones de respuesta."""
        return await self.send_interactive(
            to, WhatsAppButtons.create_buttons_response(body, buttons, header, footer)
        )

    async def send_list(self, to: str, body: str, button_text: str, sections: List[Dict], header: Optional[str] = None, footer: Optional[str] = None):
        """Envía una lista con una o varias secciones."""
        return await self.send_interactive(
            to, WhatsAppLists.create_sections_list(body, sections, button_text, header, footer)
        )

    async def send_image(self, to: str, image: str, caption: Optional[str] = None):
        media = _media_reference(image)
        if caption:
            media["caption"] = caption
        return await self._post({
            "messaging_product": "whatsapp",
            "to": to,
            "type": "image",
            "image": media,
        })

    async def send_document(self, to: str, document: str, filename: Optional[str] = None, caption: Optional[str] = None):
        media = _media_reference(document)
        if filename:
            media["filename"] = filename
        if caption:
            media["caption"] = caption
        return await self._post({
            "messaging_product": "whatsapp",
            "to": to,
            "type": "document",
            "document": media,
        })

    async def send_location(self, to: str, latitude: float, longitude: float, name: Optional[str] = None, address: Optional[str] = None):
        location = {"latitude": latitude, "longitude": longitude}
        if name:
            location["name"] = name
        if address:
            location["address"] = address
        return await self._post({
            "messaging_product": "whatsapp",
            "to": to,
            "type": "location",
            "location": location,
        })

    async def request_location(self, to: str, body: str):
        """Pide al usuario que comparta su ubicación."""
        return await self.send_interactive(to, {
            "type": "interactive",
            "interactive": {
                "type": "location_request_message",
                "body": {"text": body},
                "action": {"name": "send_location"},
            },
        })
