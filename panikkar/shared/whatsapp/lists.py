from typing import List, Dict, Optional

class WhatsAppLists:
    """
    Factory for WhatsApp interactive lists.
    Single responsibility: build list payloads that the Cloud API accepts.
    """

    MAX_SECTION_TITLE_LENGTH = 24
    MAX_ROW_TITLE_LENGTH = 24
    MAX_ROW_DESCRIPTION_LENGTH = 72
    MAX_BUTTON_TEXT_LENGTH = 20
    MAX_HEADER_LENGTH = 60
    MAX_FOOTER_LENGTH = 60
    MAX_ROWS = 10              # total rows across all sections

    @staticmethod
    def _validate_rows(rows: List[Dict]) -> List[Dict]:
        validated_rows = []
        for row in rows:
            if not row.get("id") or not row.get("title"):
                raise ValueError("Every row needs an 'id' and a 'title'")

            validated_rows.append({
                "id": row["id"],
                "title": row["title"][:WhatsAppLists.MAX_ROW_TITLE_LENGTH],
                "description": (row.get("description") or "")[:WhatsAppLists.MAX_ROW_DESCRIPTION_LENGTH]
            })
        return validated_rows

    @staticmethod
    def create_list_response(
        text: str,
        sections: List[Dict],
        button_text: str = "Select",
        header: Optional[str] = None,
        footer: Optional[str] = None,
    ) -> Dict:
        """
        Builds an interactive list message.

        Args:
            text: Message body
            sections: [{"title": "Job Types", "rows": [{"id": "cat:1", "title": "Queue", "description": "..."}]}]
            button_text: Label of the button that opens the list
            header: Optional text header
            footer: Optional footer

        Returns:
            Dict: "interactive" part of a Cloud API message

        Raises:
            ValueError: no rows, more than 10 rows, or a row without id/title
        """
        validated_sections = []
        total_rows = 0
        for section in sections:
            rows = WhatsAppLists._validate_rows(section.get("rows", []))
            if not rows:
                continue
            total_rows += len(rows)
            validated_sections.append({
                "title": (section.get("title") or "Options")[:WhatsAppLists.MAX_SECTION_TITLE_LENGTH],
                "rows": rows
            })

        if not validated_sections:
            raise ValueError("At least one section with rows is required")

        if total_rows > WhatsAppLists.MAX_ROWS:
            raise ValueError(f"WhatsApp allows at most {WhatsAppLists.MAX_ROWS} list rows, got {total_rows}")

        interactive = {
            "type": "list",
            "body": {"text": text},
            "action": {
                "button": button_text[:WhatsAppLists.MAX_BUTTON_TEXT_LENGTH],
                "sections": validated_sections
            }
        }
        if header:
            interactive["header"] = {"type": "text", "text": header[:WhatsAppLists.MAX_HEADER_LENGTH]}
        if footer:
            interactive["footer"] = {"text": footer[:WhatsAppLists.MAX_FOOTER_LENGTH]}

        return {"type": "interactive", "interactive": interactive}
