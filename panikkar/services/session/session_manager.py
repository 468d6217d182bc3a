import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Union

from panikkar.core.config import get_settings
from panikkar.core.timezone_helper import TimezoneHelper
from panikkar.models.flow_type import FlowType
from panikkar.models.session import ConversationSession
from panikkar.shared.masking import mask_phone
from .store import SessionStore
from .temp_data import TempDataStore

logger = logging.getLogger(__name__)

IDLE_STEP = "idle"


class SessionManager:
    """
    Single responsibility: session lifecycle (load/create, flow and step
    changes, activity tracking). Persistence is delegated to the store.
    """

    def __init__(self, store: SessionStore, temp: Optional[TempDataStore] = None):
        settings = get_settings()
        self.store = store
        self.temp = temp or TempDataStore()
        self.timeout = timedelta(minutes=settings.SESSION_TIMEOUT_MINUTES)
        self.resume_after = timedelta(minutes=settings.SESSION_RESUME_MINUTES)
        # flow_type -> the step a finished run rests at
        self.terminal_steps: Dict[str, str] = {}

    # ==================== LOAD / SAVE ====================

    async def get_or_create(self, phone: str) -> ConversationSession:
        session = await self.store.load(phone)
        if session is None:
            logger.info(f"[SESSION] New session for {mask_phone(phone)}")
            session = ConversationSession(phone=phone)
        return session

    async def save(self, session: ConversationSession) -> None:
        await self.store.save(session)
        logger.debug(
            f"[SESSION] Saved {mask_phone(session.phone)} -> {session.flow_type}/{session.current_step}"
        )

    async def checkpoint(self, session: ConversationSession) -> None:
        """Saves mid-message, right after a step ran a backend side effect."""
        await self.store.save(session)
        logger.info(
            f"[SESSION] Checkpoint {mask_phone(session.phone)} at {session.flow_type}/{session.current_step}"
        )

    def already_handled(self, session: ConversationSession, message_id: Optional[str]) -> bool:
        """True when the stored session already reflects this message."""
        return message_id is not None and session.last_message_id == message_id

    # ==================== FLOW / STEP ====================

    def set_flow_step(self, session: ConversationSession, flow_type: FlowType, step: Union[str, Enum]) -> None:
        session.flow_type = FlowType(flow_type).value
        session.current_step = step.value if isinstance(step, Enum) else step

    def set_step(self, session: ConversationSession, step: Union[str, Enum]) -> None:
        session.current_step = step.value if isinstance(step, Enum) else step

    def reset_to_main_menu(self, session: ConversationSession) -> None:
        """Ends whatever flow is active: temp data cleared, main menu idle."""
        self.temp.clear(session)
        self.set_flow_step(session, FlowType.MAIN_MENU, IDLE_STEP)

    def register_terminal_step(self, flow_type: FlowType, step: Union[str, Enum]) -> None:
        self.terminal_steps[FlowType(flow_type).value] = step.value if isinstance(step, Enum) else step

    def is_idle(self, session: ConversationSession) -> bool:
        """Main menu, or a flow resting at its terminal step."""
        if session.flow_type == FlowType.MAIN_MENU.value:
            return True
        return self.terminal_steps.get(session.flow_type) == session.current_step

    def link_user(self, session: ConversationSession, user_id: int) -> None:
        session.user_id = user_id

    # ==================== ACTIVITY ====================

    def record_message(self, session: ConversationSession, message_id: Optional[str], now: Optional[datetime] = None) -> None:
        session.last_message_id = message_id or session.last_message_id
        session.last_activity_at = now or TimezoneHelper.now()

    def inactive_for(self, session: ConversationSession, now: Optional[datetime] = None) -> timedelta:
        return (now or TimezoneHelper.now()) - session.last_activity_at

    def needs_resume(self, session: ConversationSession, now: Optional[datetime] = None) -> bool:
        """Mid-flow session coming back after a pause long enough to warrant a reminder."""
        if self.is_idle(session):
            return False
        return self.inactive_for(session, now) >= self.resume_after

    def is_timed_out(self, session: ConversationSession, now: Optional[datetime] = None) -> bool:
        if self.is_idle(session):
            return False
        return self.inactive_for(session, now) >= self.timeout

    async def list_timed_out(self, now: Optional[datetime] = None) -> List[ConversationSession]:
        """Mid-flow sessions that have been inactive for the whole timeout window."""
        now = now or TimezoneHelper.now()
        stale = await self.store.list_stale(now - self.timeout)
        return [session for session in stale if not self.is_idle(session)]
