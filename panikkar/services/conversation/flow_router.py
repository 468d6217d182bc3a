import logging
from typing import Dict, Optional, Union

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage
from panikkar.models.session import ConversationSession
from panikkar.services.conversation import messages
from panikkar.services.conversation.flows import BaseFlow
from panikkar.services.external import PanikkarApiError
from panikkar.services.session import SessionManager
from panikkar.services.whatsapp import WhatsAppClient
from panikkar.shared.masking import mask_phone

logger = logging.getLogger(__name__)

# Selection actions that start a flow from anywhere (menu buttons, notifications)
GLOBAL_ACTIONS: Dict[str, FlowType] = {
    "apply_job": FlowType.JOB_APPLICATION,          # apply_job:<job id>
    "browse_jobs": FlowType.JOB_APPLICATION,
    "job_post": FlowType.JOB_POST,
    "register": FlowType.REGISTRATION,
    "worker_register": FlowType.WORKER_REGISTRATION,
    "review_applicants": FlowType.JOB_SELECTION,
    "view_applications": FlowType.JOB_SELECTION,    # view_applications:<job id>
    "my_jobs": FlowType.JOB_EXECUTION,
    "start_job": FlowType.JOB_EXECUTION,            # start_job:<job id>
    "complete_job": FlowType.JOB_EXECUTION,         # complete_job:<job id>
}

# Actions whose entity is a job id, with the extra entry arguments they open with
JOB_ENTRY_ACTIONS: Dict[str, Dict] = {
    "apply_job": {},
    "view_applications": {},
    "start_job": {"stage": "arrival"},
    "complete_job": {"stage": "completion"},
}


class FlowRouter:
    """
    Single responsibility: route a message to the flow that owns the session.

    Holds the flow registry, starts flows (with the registration gate),
    handles global actions, resume reminders and session timeouts.
    """

    def __init__(self, sessions: SessionManager, messenger: WhatsAppClient):
        self.sessions = sessions
        self.messenger = messenger
        self.flows: Dict[FlowType, BaseFlow] = {}

    # ==================== REGISTRY ====================

    def register(self, flow: BaseFlow) -> None:
        self.flows[flow.flow_type] = flow
        flow.engine = self
        if flow.terminal_step is not None:
            self.sessions.register_terminal_step(flow.flow_type, flow.terminal_step)
        logger.debug(f"[ROUTER] Registered flow {flow.flow_type.value}")

    def resolve(self, flow_type: Union[str, FlowType]) -> BaseFlow:
        """Flow handler for a stored flow type. Unknown values fall back to the main menu."""
        try:
            resolved = FlowType(flow_type)
        except ValueError:
            logger.warning(f"[ROUTER] Unknown flow type '{flow_type}', using main menu")
            resolved = FlowType.MAIN_MENU

        flow = self.flows.get(resolved)
        if flow is None:
            logger.warning(f"[ROUTER] No handler registered for {resolved.value}, using main menu")
            flow = self.flows[FlowType.MAIN_MENU]
        return flow

    # ==================== DISPATCH ====================

    async def dispatch(self, message: IncomingMessage, session: ConversationSession, resume: bool = False) -> None:
        """
        Routes a message that no navigation command claimed.

        Args:
            message: Inbound message
            session: Session loaded for the sender
            resume: The sender comes back mid-flow after a long pause; the
                current question is repeated and the message is not consumed
        """
        if await self._handle_global_action(message, session):
            return

        flow = self.resolve(session.flow_type)
        if resume:
            await self.resume(session, flow)
            return

        await flow.handle(message, session)

    async def _handle_global_action(self, message: IncomingMessage, session: ConversationSession) -> bool:
        flow_type = GLOBAL_ACTIONS.get(message.action)
        if flow_type is None:
            return False

        entry = {}
        if message.action in JOB_ENTRY_ACTIONS:
            job_id = message.selection.entity_int
            if job_id is None:
                logger.warning(f"[ROUTER] {message.action} without a job id: '{message.selection.raw}'")
                return False
            entry = {"job_id": job_id, **JOB_ENTRY_ACTIONS[message.action]}

        logger.info(f"[ROUTER] Global action '{message.action}' for {mask_phone(session.phone)}")
        await self.start_flow(session, flow_type, **entry)
        return True

    # ==================== FLOW LIFECYCLE ====================

    async def start_flow(self, session: ConversationSession, flow_type: FlowType, **entry) -> None:
        flow_type = FlowType(flow_type)
        if flow_type.requires_registration and not session.is_registered:
            await self._ask_registration(session, flow_type)
            return
        await self.resolve(flow_type).start(session, **entry)

    async def go_to_main_menu(self, session: ConversationSession) -> None:
        self.sessions.reset_to_main_menu(session)
        await self.resolve(FlowType.MAIN_MENU).start(session)

    async def resume(self, session: ConversationSession, flow: Optional[BaseFlow] = None) -> None:
        flow = flow or self.resolve(session.flow_type)
        logger.info(f"[ROUTER] Resuming {flow.flow_type.value}/{session.current_step} for {mask_phone(session.phone)}")
        await self.messenger.send_text(session.phone, messages.WELCOME_BACK.format(flow=flow.flow_type.label))
        await flow.prompt_current_step(session)

    async def handle_timeout(self, session: ConversationSession) -> None:
        """Abandoned run: the flow releases what it holds, then the session goes idle."""
        flow = self.resolve(session.flow_type)
        try:
            await flow.handle_timeout(session)
        except PanikkarApiError as e:
            logger.warning(f"[ROUTER] Timeout cleanup failed for {mask_phone(session.phone)}: {e}")
        self.sessions.reset_to_main_menu(session)
        logger.info(f"[ROUTER] Session {mask_phone(session.phone)} timed out in {flow.flow_type.value}")

    async def _ask_registration(self, session: ConversationSession, flow_type: FlowType) -> None:
        self.sessions.reset_to_main_menu(session)
        await self.messenger.send_buttons(
            session.phone,
            messages.REGISTRATION_REQUIRED.format(flow=flow_type.label),
            [("register", "📝 Register"), messages.MENU_BUTTON],
            None,
            messages.FOOTER,
        )
