import logging
from typing import Dict, List, Optional
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class SessionsApi(BaseClient):
    """
    Client for persisted conversation sessions.
    Single responsibility: conversation session storage calls.
    """

    async def get_session(self, phone: str) -> Optional[Dict]:
        """
        Fetches the stored session of a phone number.

        Returns:
            Dict: session record, or None when the phone has none yet
        """
        response = await self._make_request("GET", f"conversation-sessions/{phone}")
        if response.status_code == 404:
            return None
        return self._data(response)

    async def save_session(self, phone: str, session: Dict) -> Dict:
        """Creates or replaces the whole session record (one write per message)."""
        response = await self._make_request("PUT", f"conversation-sessions/{phone}", json=session)
        return self._data(response)

    async def list_stale_sessions(self, before_iso: str) -> List[Dict]:
        """Sessions whose last activity is older than the given ISO timestamp."""
        response = await self._make_request("GET", "conversation-sessions/stale", params={"before": before_iso})
        return self._data(response) or []
