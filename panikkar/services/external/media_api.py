import logging
from typing import Dict
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class MediaApi(BaseClient):
    """
    Client for media uploaded through WhatsApp.
    Single responsibility: ask the backend to fetch, store and delete media files.
    """

    async def store_media(self, media_id: str, folder: str) -> Dict:
        """
        Downloads a WhatsApp media item into backend storage.

        Args:
            media_id: Cloud API media id
            folder: Storage folder ("workers", "jobs", ...)

        Returns:
            Dict: {"path": "...", "url": "..."}
        """
        response = await self._make_request("POST", "media/whatsapp", json={"mediaId": media_id, "folder": folder})
        stored = self._data(response)
        logger.info(f"[MEDIA] Stored media {media_id} at {stored.get('path')}")
        return stored

    async def delete_media(self, path: str) -> bool:
        response = await self._make_request("DELETE", "media", params={"path": path})
        if response.status_code in (200, 204, 404):    # 404: already gone
            logger.info(f"[MEDIA] Deleted {path}")
            return True
        logger.warning(f"[MEDIA] Could not delete {path}: {response.status_code}")
        return False
