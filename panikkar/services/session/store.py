import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from panikkar.core.config import get_settings
from panikkar.models.session import ConversationSession
from panikkar.services.external import PanikkarApi, PanikkarApiError

logger = logging.getLogger(__name__)


class SessionStoreError(Exception):
    """The session store could not load or save a session."""


class SessionStore(ABC):
    """
    Load/save contract for conversation sessions.

    save() writes the whole session at once; callers save once per inbound
    message so each message is one read-modify-write.
    """

    @abstractmethod
    async def load(self, phone: str) -> Optional[ConversationSession]:
        pass

    @abstractmethod
    async def save(self, session: ConversationSession) -> None:
        pass

    @abstractmethod
    async def list_stale(self, before: datetime) -> List[ConversationSession]:
        """Sessions whose last activity is older than `before`."""
        pass


class InMemorySessionStore(SessionStore):
    """
    Process-local store. Keeps serialised copies so a session object mutated
    by a failed message never leaks into the stored state.
    """

    def __init__(self):
        self._rows: Dict[str, Dict] = {}

    async def load(self, phone: str) -> Optional[ConversationSession]:
        row = self._rows.get(phone)
        return ConversationSession.model_validate(row) if row is not None else None

    async def save(self, session: ConversationSession) -> None:
        self._rows[session.phone] = session.model_dump(mode="json")

    async def list_stale(self, before: datetime) -> List[ConversationSession]:
        sessions = [ConversationSession.model_validate(row) for row in self._rows.values()]
        return [s for s in sessions if s.last_activity_at < before]


class ApiSessionStore(SessionStore):
    """Sessions kept by the backend API (conversation-sessions resource)."""

    def __init__(self, api: PanikkarApi):
        self.api = api

    async def load(self, phone: str) -> Optional[ConversationSession]:
        try:
            row = await self.api.get_session(phone)
        except PanikkarApiError as e:
            raise SessionStoreError(f"Could not load session: {e}") from e
        return ConversationSession.model_validate(row) if row else None

    async def save(self, session: ConversationSession) -> None:
        try:
            await self.api.save_session(session.phone, session.model_dump(mode="json"))
        except PanikkarApiError as e:
            raise SessionStoreError(f"Could not save session: {e}") from e

    async def list_stale(self, before: datetime) -> List[ConversationSession]:
        try:
            rows = await self.api.list_stale_sessions(before.isoformat())
        except PanikkarApiError as e:
            raise SessionStoreError(f"Could not list stale sessions: {e}") from e
        return [ConversationSession.model_validate(row) for row in rows]


def build_session_store(api: PanikkarApi) -> SessionStore:
    """Store selected by the SESSION_STORE setting ("api" or "memory")."""
    kind = get_settings().SESSION_STORE.lower()
    if kind == "memory":
        logger.warning("[SESSIONS] Using in-memory session store (single process only)")
        return InMemorySessionStore()
    return ApiSessionStore(api)
