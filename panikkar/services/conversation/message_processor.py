import logging
from collections import OrderedDict
from typing import Optional

from panikkar.models.incoming import IncomingMessage
from panikkar.models.session import ConversationSession
from panikkar.services.external import PanikkarApi, PanikkarApiError
from panikkar.services.whatsapp import WhatsAppAPIError, WhatsAppClient

logger = logging.getLogger(__name__)


class MessageProcessor:
    """
    Single responsibility: ingestion bookkeeping around the engine.
    Drops webhook redeliveries, sends read receipts and logs processed ids.
    """

    RECENT_IDS_LIMIT = 1000

    def __init__(self, api: PanikkarApi, messenger: WhatsAppClient):
        self.api = api
        self.messenger = messenger
        self._recent_ids: "OrderedDict[str, None]" = OrderedDict()

    async def is_duplicate(self, message: IncomingMessage) -> bool:
        """True when this WhatsApp message id was already processed."""
        if not message.message_id:
            return False
        if message.message_id in self._recent_ids:
            return True
        try:
            return await self.api.is_message_processed(message.message_id)
        except PanikkarApiError as e:
            logger.warning(f"[PROCESSOR] Duplicate check unavailable, processing anyway: {e}")
            return False

    async def mark_as_read(self, message: IncomingMessage) -> None:
        if not message.message_id:
            return
        try:
            await self.messenger.mark_as_read(message.message_id)
        except WhatsAppAPIError as e:
            logger.warning(f"[PROCESSOR] Read receipt failed for {message.message_id}: {e}")

    async def mark_processed(self, message: IncomingMessage, session: Optional[ConversationSession] = None) -> None:
        if not message.message_id:
            return

        self._recent_ids[message.message_id] = None
        while len(self._recent_ids) > self.RECENT_IDS_LIMIT:
            self._recent_ids.popitem(last=False)

        flow = session.flow_type if session else "unknown"
        step = session.current_step if session else "unknown"
        try:
            await self.api.mark_message_processed(message.message_id, message.phone, flow, step)
        except PanikkarApiError as e:
            logger.warning(f"[PROCESSOR] Could not log message {message.message_id}: {e}")
