import logging
from typing import Dict, Optional
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class UsersApi(BaseClient):
    """
    Client for marketplace users.
    Single responsibility: user lookup and registration.
    """

    async def get_user_by_phone(self, phone: str) -> Optional[Dict]:
        """
        Finds a registered user by phone number.

        Returns:
            Dict: user data, or None when the phone is not registered
        """
        response = await self._make_request("GET", f"users/phone/{phone}")
        if response.status_code == 404:
            logger.debug("[USERS] Phone not registered")
            return None
        return self._data(response)

    async def register_user(self, user_data: Dict) -> Dict:
        """
        Registers a new user.

        Args:
            user_data: {"phone", "name", "latitude", "longitude"}

        Returns:
            Dict: created user (includes "id")
        """
        response = await self._make_request("POST", "users", json=user_data)
        user = self._data(response)
        logger.info(f"[USERS] User registered: {user.get('id')}")
        return user
