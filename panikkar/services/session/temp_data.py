import copy
from typing import Any, Dict

from panikkar.models.session import ConversationSession

# Keys starting with this prefix belong to the flow engine, not to flows
RESERVED_PREFIX = "_"
EDIT_RETURN_KEY = "_edit_return"


class TempDataStore:
    """
    Scratch key/value space of one flow run, stored on the session.

    Keys are chosen by each flow; nothing here guards against collisions
    between flows. clear() is called when a flow starts, is cancelled or
    completes.
    """

    def get(self, session: ConversationSession, key: str, default: Any = None) -> Any:
        return session.temp_data.get(key, default)

    def set(self, session: ConversationSession, key: str, value: Any) -> None:
        session.temp_data[key] = value

    def merge(self, session: ConversationSession, partial: Dict[str, Any]) -> None:
        session.temp_data.update(partial)

    def remove(self, session: ConversationSession, key: str) -> Any:
        return session.temp_data.pop(key, None)

    def clear(self, session: ConversationSession) -> None:
        session.temp_data = {}

    def snapshot(self, session: ConversationSession) -> Dict[str, Any]:
        """Deep copy of the flow's data, without engine-reserved keys."""
        return {
            key: copy.deepcopy(value)
            for key, value in session.temp_data.items()
            if not key.startswith(RESERVED_PREFIX)
        }
