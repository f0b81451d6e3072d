from typing import List, Dict, Optional

class WhatsAppButtons:
    """
    Factory para crear botones interactivos de WhatsApp.
    Responsabilidad única: generar estructuras de botones válidas para WhatsApp.
    """

    MAX_BUTTONS = 3  # WhatsApp limita a 3 botones por mensaje
    MAX_TITLE_LENGTH = 20  # Máximo 20 caracteres para título de botón
    MAX_HEADER_LENGTH = 60
    MAX_FOOTER_LENGTH = 60

    @staticmethod
    def create_buttons_response(text: str, buttons: List[Dict], header: Optional[str] = None, footer: Optional[str] = None) -> Dict:
        """
        Crea una respuesta con botones para WhatsApp.

        Args:
            text: Texto del mensaje
            buttons: Lista de botones con formato [{"id": "1", "title": "Opción 1"}, ...]
            header: Encabezado de texto opcional
            footer: Pie de mensaje opcional

        Returns:
            Dict: Estructura de mensaje con botones para WhatsApp

        Raises:
            ValueError: Si hay más de 3 botones, ninguno, o botones sin id/título
        """
        if len(buttons) > WhatsAppButtons.MAX_BUTTONS:
            raise ValueError(f"WhatsApp permite máximo {WhatsAppButtons.MAX_BUTTONS} botones, recibidos: {len(buttons)}")

        if not buttons:
            raise ValueError("Debe proporcionar al menos un botón")

        # Validar y truncar títulos si es necesario
        validated_buttons = []
        for btn in buttons:
            if not btn.get("id") or not btn.get("title"):
                raise ValueError("Cada botón debe tener 'id' y 'title'")

            validated_buttons.append({
                "type": "reply",
                "reply": {
                    "id": btn["id"],
                    "title": btn["title"][:WhatsAppButtons.MAX_TITLE_LENGTH]
                }
            })

        interactive = {
            "type": "button",
            "body": {"text": text},
            "action": {
                "buttons": validated_buttons
            }
        }
        if header:
            interactive["header"] = {"type": "text", "text": header[:WhatsAppButtons.MAX_HEADER_LENGTH]}
        if footer:
            interactive["footer"] = {"text": footer[:WhatsAppButtons.MAX_FOOTER_LENGTH]}

        return {
            "type": "interactive",
            "interactive": interactive
        }
