import httpx, logging
from typing import Dict, List, Optional, Tuple
from panikkar.core.config import get_settings
from panikkar.shared.masking import mask_phone
from panikkar.shared.whatsapp import WhatsAppButtons, WhatsAppLists
logger = logging.getLogger(__name__)
settings = get_settings()

class WhatsAppAPIError(Exception):
    """Error calling the Cloud API."""

class WhatsAppClient:
    """
    Wraps the Cloud API messages endpoint.
    Single responsibility: send outgoing messages.

    Every send raises WhatsAppAPIError on failure; callers decide what to do.
    """
    def __init__(self):
        self.url = f"{settings.BASE_URL}/{settings.PHONE_ID}/messages"
        self.headers = {
            "Authorization": f"Bearer {settings.META_TOKEN}",
            "Content-Type": "application/json"
        }

    async def _post(self, payload: Dict) -> Dict:
        async with httpx.AsyncClient(timeout=10) as client:
            try:
                r = await client.post(self.url, headers=self.headers, json=payload)
                r.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.error("WA %s – %s", exc.response.status_code, exc.response.text)
                # domain error instead of the httpx one
                raise WhatsAppAPIError(exc.response.text) from exc
            except httpx.RequestError as exc:
                logger.error(f"[WA] Connection error: {exc}")
                raise WhatsAppAPIError(str(exc)) from exc
        return r.json()

    async def _send(self, to: str, body: Dict) -> Dict:
        payload = {"messaging_product": "whatsapp", "recipient_type": "individual", "to": to, **body}
        response = await self._post(payload)
        logger.debug(f"[WA] {body.get('type')} sent to {mask_phone(to)}")
        return response

    # ==================== OUTGOING MESSAGES ====================

    async def send_text(self, to: str, text: str, reply_to: str | None = None):
        body = {"type": "text", "text": {"preview_url": False, "body": text}}
        if reply_to:
            body["context"] = {"message_id": reply_to}
        return await self._send(to, body)

    async def send_buttons(
        self,
        to: str,
        text: str,
        buttons: List[Tuple[str, str]],
        header: Optional[str] = None,
        footer: Optional[str] = None,
    ):
        """
        Sends up to 3 reply buttons.

        Args:
            to: Destination phone number
            text: Message body
            buttons: (id, title) tuples
            header: Optional header text
            footer: Optional footer text
        """
        return await self._send(to, WhatsAppButtons.create_simple_buttons(text, buttons, header, footer))

    async def send_list(
        self,
        to: str,
        text: str,
        button_text: str,
        sections: List[Dict],
        header: Optional[str] = None,
        footer: Optional[str] = None,
    ):
        """
        Sends an interactive list.

        Args:
            to: Destination phone number
            text: Message body
            button_text: Label of the button that opens the list
            sections: [{"title": ..., "rows": [{"id", "title", "description"}]}]
        """
        return await self._send(to, WhatsAppLists.create_list_response(text, sections, button_text, header, footer))

    async def send_image(self, to: str, media_url: str, caption: Optional[str] = None):
        image = {"link": media_url}
        if caption:
            image["caption"] = caption
        return await self._send(to, {"type": "image", "image": image})

    async def send_location(
        self,
        to: str,
        latitude: float,
        longitude: float,
        name: Optional[str] = None,
        address: Optional[str] = None,
    ):
        location = {"latitude": latitude, "longitude": longitude}
        if name:
            location["name"] = name
        if address:
            location["address"] = address
        return await self._send(to, {"type": "location", "location": location})

    async def request_location(self, to: str, text: str):
        """Sends the "Send location" button message."""
        return await self._send(to, {
            "type": "interactive",
            "interactive": {
                "type": "location_request_message",
                "body": {"text": text},
                "action": {"name": "send_location"},
            },
        })

    async def mark_as_read(self, message_id: str):
        return await self._post({
            "messaging_product": "whatsapp",
            "status": "read",
            "message_id": message_id,
        })
