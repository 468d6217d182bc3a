import logging
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class MessagesApi(BaseClient):
    """
    Client for the inbound message log.
    Single responsibility: remember which WhatsApp message ids were processed.
    """

    async def is_message_processed(self, message_id: str) -> bool:
        """
        Checks whether a message id was already processed.

        Args:
            message_id: WhatsApp message id

        Returns:
            bool: True if already processed
        """
        response = await self._make_request("GET", f"message-history/whatsapp/{message_id}")
        if response.status_code == 404:
            return False
        return self._data(response) is not None

    async def mark_message_processed(self, message_id: str, phone: str, flow: str, step: str) -> bool:
        payload = {"messageId": message_id, "phone": phone, "flowContext": {"flow": flow, "step": step}}
        response = await self._make_request("POST", "message-history/processed", json=payload)

        if response.status_code in (200, 201, 409):    # 409: already logged
            return True
        logger.warning(f"[MESSAGES] Could not log message {message_id}: {response.status_code}")
        return False
