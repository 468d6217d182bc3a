from typing import List, Dict, Optional, Tuple

class WhatsAppButtons:
    """
    Factory for WhatsApp interactive reply buttons.
    Single responsibility: build button payloads that the Cloud API accepts.
    """

    MAX_BUTTONS = 3            # WhatsApp allows at most 3 reply buttons
    MAX_TITLE_LENGTH = 20      # button title limit
    MAX_HEADER_LENGTH = 60
    MAX_FOOTER_LENGTH = 60
    MAX_BODY_LENGTH = 1024

    @staticmethod
    def create_buttons_response(
        text: str,
        buttons: List[Dict],
        header: Optional[str] = None,
        footer: Optional[str] = None,
    ) -> Dict:
        """
        Builds an interactive button message.

        Args:
            text: Message body
            buttons: [{"id": "confirm_post", "title": "✅ Post Job"}, ...]
            header: Optional text header
            footer: Optional footer

        Returns:
            Dict: "interactive" part of a Cloud API message

        Raises:
            ValueError: no buttons, more than 3, or a button without id/title
        """
        if not buttons:
            raise ValueError("At least one button is required")

        if len(buttons) > WhatsAppButtons.MAX_BUTTONS:
            raise ValueError(f"WhatsApp allows at most {WhatsAppButtons.MAX_BUTTONS} buttons, got {len(buttons)}")

        validated_buttons = []
        for btn in buttons:
            if not btn.get("id") or not btn.get("title"):
                raise ValueError("Every button needs an 'id' and a 'title'")

            validated_buttons.append({
                "type": "reply",
                "reply": {
                    "id": btn["id"],
                    "title": btn["title"][:WhatsAppButtons.MAX_TITLE_LENGTH]
                }
            })

        interactive = {
            "type": "button",
            "body": {"text": text[:WhatsAppButtons.MAX_BODY_LENGTH]},
            "action": {"buttons": validated_buttons},
        }
        if header:
            interactive["header"] = {"type": "text", "text": header[:WhatsAppButtons.MAX_HEADER_LENGTH]}
        if footer:
            interactive["footer"] = {"text": footer[:WhatsAppButtons.MAX_FOOTER_LENGTH]}

        return {"type": "interactive", "interactive": interactive}

    @staticmethod
    def create_simple_buttons(
        text: str,
        button_data: List[Tuple[str, str]],
        header: Optional[str] = None,
        footer: Optional[str] = None,
    ) -> Dict:
        """
        Same as create_buttons_response but with (id, title) tuples.

        Example:
            create_simple_buttons("Post this job?", [("confirm_post", "✅ Post Job"), ("cancel", "❌ Cancel")])
        """
        buttons = [{"id": btn_id, "title": title} for btn_id, title in button_data]
        return WhatsAppButtons.create_buttons_response(text, buttons, header, footer)
