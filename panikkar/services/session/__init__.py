from .store import SessionStore, SessionStoreError, InMemorySessionStore, ApiSessionStore, build_session_store
from .temp_data import TempDataStore, EDIT_RETURN_KEY
from .session_manager import SessionManager, IDLE_STEP

__all__ = [
    "SessionStore",
    "SessionStoreError",
    "InMemorySessionStore",
    "ApiSessionStore",
    "build_session_store",
    "TempDataStore",
    "EDIT_RETURN_KEY",
    "SessionManager",
    "IDLE_STEP",
]
