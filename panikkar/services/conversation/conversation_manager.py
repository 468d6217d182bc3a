import logging
from datetime import datetime
from typing import Optional

from panikkar.models.incoming import IncomingMessage
from panikkar.models.session import ConversationSession
from panikkar.services.conversation.flows import FLOW_CLASSES
from panikkar.services.conversation.flow_router import FlowRouter
from panikkar.services.conversation.message_processor import MessageProcessor
from panikkar.services.conversation.navigation import NavigationInterceptor
from panikkar.services.external import PanikkarApi, PanikkarApiError
from panikkar.services.session import SessionManager, SessionStore, build_session_store
from panikkar.services.whatsapp import WhatsAppClient
from panikkar.shared.masking import mask_phone

logger = logging.getLogger(__name__)


class ConversationManager:
    """
    Single responsibility: orchestrate one inbound message end to end.

    load session -> navigation commands -> flow dispatch -> save session.
    The session is saved after the message is fully handled, and earlier at
    a checkpoint when a step has run a backend side effect. Messenger and
    session store failures propagate to the caller; whatever was not
    checkpointed is lost then.
    """

    def __init__(
        self,
        api: Optional[PanikkarApi] = None,
        messenger: Optional[WhatsAppClient] = None,
        store: Optional[SessionStore] = None,
    ):
        self.api = api or PanikkarApi()
        self.messenger = messenger or WhatsAppClient()
        self.sessions = SessionManager(store or build_session_store(self.api))

        self.router = FlowRouter(self.sessions, self.messenger)
        for flow_class in FLOW_CLASSES:
            self.router.register(flow_class(self.messenger, self.sessions, self.api))

        self.interceptor = NavigationInterceptor(self.router, self.sessions, self.messenger)
        self.message_processor = MessageProcessor(self.api, self.messenger)

    async def process_message(self, message: IncomingMessage) -> bool:
        """
        Handles one inbound message.

        Returns:
            bool: False when the message was a redelivery and was ignored
        """
        if await self.message_processor.is_duplicate(message):
            logger.info(f"Duplicate message {message.message_id} ignored")
            return False

        session = await self.sessions.get_or_create(message.phone)
        if self.sessions.already_handled(session, message.message_id):
            # a step checkpointed this message before its reply failed to send
            logger.info(f"Message {message.message_id} already applied to the session, ignored")
            await self.message_processor.mark_processed(message, session)
            return False

        logger.info(f"Processing {message.kind.value} message from {mask_phone(message.phone)}")
        await self.message_processor.mark_as_read(message)
        await self._link_user(session)

        # decided before the activity stamp moves
        resume = self.sessions.needs_resume(session)
        self.sessions.record_message(session, message.message_id)

        if not await self.interceptor.intercept(message, session):
            await self.router.dispatch(message, session, resume=resume)

        await self.sessions.save(session)
        await self.message_processor.mark_processed(message, session)
        return True

    async def expire_idle_sessions(self, now: Optional[datetime] = None) -> int:
        """
        Timeout sweep, run by an external scheduler.

        Returns:
            int: number of sessions reset to idle
        """
        expired = await self.sessions.list_timed_out(now)
        for session in expired:
            await self.router.handle_timeout(session)
            await self.sessions.save(session)
        if expired:
            logger.info(f"{len(expired)} idle sessions reset")
        return len(expired)

    async def _link_user(self, session: ConversationSession) -> None:
        if session.user_id is not None:
            return
        try:
            user = await self.api.get_user_by_phone(session.phone)
        except PanikkarApiError as e:
            logger.warning(f"User lookup failed for {mask_phone(session.phone)}: {e}")
            return
        if user:
            self.sessions.link_user(session, user["id"])

    async def close(self):
        """Closes backend HTTP clients."""
        await self.api.close()
        logger.debug("Resources closed")
