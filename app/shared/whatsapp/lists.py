from typing import List, Dict, Optional

class WhatsAppLists:
    """
    Factory para crear listas interactivas de WhatsApp.
    Responsabilidad única: generar estructuras de listas válidas para WhatsApp.
    """

    MAX_SECTION_TITLE_LENGTH = 24  # Máximo 24 caracteres para título de sección
    MAX_ROW_TITLE_LENGTH = 24      # Máximo 24 caracteres para título de fila
    MAX_ROW_DESCRIPTION_LENGTH = 72 # Máximo 72 caracteres para descripción de fila
    MAX_BUTTON_TEXT_LENGTH = 20    # Máximo 20 caracteres para texto del botón
    MAX_ROWS = 10                  # WhatsApp acepta 10 filas en total

    @staticmethod
    def _validate_rows(options: List[Dict]) -> List[Dict]:
        validated_rows = []
        for opt in options:
            if not opt.get("id") or not opt.get("title"):
                raise ValueError("Cada opción debe tener 'id' y 'title'")

            validated_rows.append({
                "id": opt["id"],
                "title": opt["title"][:WhatsAppLists.MAX_ROW_TITLE_LENGTH],
                "description": (opt.get("description") or "")[:WhatsAppLists.MAX_ROW_DESCRIPTION_LENGTH]
            })
        return validated_rows

    @staticmethod
    def create_sections_list(
        text: str,
        sections: List[Dict],
        button_text: str = "Seleccionar",
        header: Optional[str] = None,
        footer: Optional[str] = None
    ) -> Dict:
        """
        Crea una lista con múltiples secciones.

        Args:
            text: Texto del mensaje
            sections: [{"title": "Sección", "rows": [{"id": ..., "title": ...}]}]
            button_text: Texto del botón principal

        Returns:
            Dict: Estructura de mensaje con lista multi-sección

        Raises:
            ValueError: Si no queda ninguna sección con filas o se supera el máximo de filas
        """
        validated_sections = []
        total_rows = 0
        for section in sections:
            rows = WhatsAppLists._validate_rows(section.get("rows", []))
            if not rows:
                continue
            total_rows += len(rows)
            validated_sections.append({
                "title": section.get("title", "Opciones")[:WhatsAppLists.MAX_SECTION_TITLE_LENGTH],
                "rows": rows
            })

        if not validated_sections:
            raise ValueError("Debe haber al menos una sección con opciones válidas")

        if total_rows > WhatsAppLists.MAX_ROWS:
            raise ValueError(f"WhatsApp permite máximo {WhatsAppLists.MAX_ROWS} filas, recibidas: {total_rows}")

        interactive = {
            "type": "list",
            "body": {"text": text},
            "action": {
                "button": button_text[:WhatsAppLists.MAX_BUTTON_TEXT_LENGTH],
                "sections": validated_sections
            }
        }
        if header:
            interactive["header"] = {"type": "text", "text": header[:60]}
        if footer:
            interactive["footer"] = {"text": footer[:60]}

        return {
            "type": "interactive",
            "interactive": interactive
        }
