import logging
from typing import Dict, Optional
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class WorkersApi(BaseClient):
    """
    Client for worker profiles.
    Single responsibility: worker profile lookup and registration.
    """

    async def get_worker_by_user(self, user_id: int) -> Optional[Dict]:
        response = await self._make_request("GET", f"job-workers/user/{user_id}")
        if response.status_code == 404:
            return None
        return self._data(response)

    async def register_worker(self, worker_data: Dict) -> Dict:
        """
        Creates the worker profile of a registered user.

        Args:
            worker_data: {"userId", "name", "photoPath", "latitude", "longitude",
                          "vehicleType", "jobTypes", "availability"}

        Returns:
            Dict: created worker (includes "id")
        """
        response = await self._make_request("POST", "job-workers", json=worker_data)
        worker = self._data(response)
        logger.info(f"[WORKERS] Worker registered: {worker.get('id')}")
        return worker
