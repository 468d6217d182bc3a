"""
Clients for the marketplace backend API behind a single facade.
"""

from typing import Dict, List, Optional

from .base_client import PanikkarApiError
from .result import ServiceResult
from .messages_api import MessagesApi
from .sessions_api import SessionsApi
from .users_api import UsersApi
from .workers_api import WorkersApi
from .jobs_api import JobsApi
from .applications_api import ApplicationsApi
from .execution_api import ExecutionApi
from .media_api import MediaApi

class PanikkarApi:
    """
    Single entry point to every backend client.
    Flows and the engine depend on this facade, not on the individual clients.
    """

    def __init__(self):
        self._messages = MessagesApi()
        self._sessions = SessionsApi()
        self._users = UsersApi()
        self._workers = WorkersApi()
        self._jobs = JobsApi()
        self._applications = ApplicationsApi()
        self._execution = ExecutionApi()
        self._media = MediaApi()

    # ==================== MESSAGES ====================

    async def is_message_processed(self, message_id: str) -> bool:
        return await self._messages.is_message_processed(message_id)

    async def mark_message_processed(self, message_id: str, phone: str, flow: str, step: str) -> bool:
        return await self._messages.mark_message_processed(message_id, phone, flow, step)

    # ==================== SESSIONS ====================

    async def get_session(self, phone: str) -> Optional[Dict]:
        return await self._sessions.get_session(phone)

    async def save_session(self, phone: str, session: Dict) -> Dict:
        return await self._sessions.save_session(phone, session)

    async def list_stale_sessions(self, before_iso: str) -> List[Dict]:
        return await self._sessions.list_stale_sessions(before_iso)

    # ==================== USERS / WORKERS ====================

    async def get_user_by_phone(self, phone: str) -> Optional[Dict]:
        return await self._users.get_user_by_phone(phone)

    async def register_user(self, user_data: Dict) -> Dict:
        return await self._users.register_user(user_data)

    async def get_worker_by_user(self, user_id: int) -> Optional[Dict]:
        return await self._workers.get_worker_by_user(user_id)

    async def register_worker(self, worker_data: Dict) -> Dict:
        return await self._workers.register_worker(worker_data)

    # ==================== JOBS ====================

    async def list_categories(self) -> List[Dict]:
        return await self._jobs.list_categories()

    async def get_category(self, category_id: int) -> Optional[Dict]:
        return await self._jobs.get_category(category_id)

    async def create_job_post(self, job_data: Dict) -> Dict:
        return await self._jobs.create_job_post(job_data)

    async def list_open_jobs(self, exclude_user_id: Optional[int] = None, limit: int = 9) -> List[Dict]:
        return await self._jobs.list_open_jobs(exclude_user_id, limit)

    async def get_job(self, job_id: int) -> ServiceResult[Dict]:
        return await self._jobs.get_job(job_id)

    async def apply_to_job(self, job_id: int, worker_id: int, application: Dict) -> ServiceResult[Dict]:
        return await self._jobs.apply_to_job(job_id, worker_id, application)

    # ==================== SELECTION ====================

    async def list_jobs_with_applications(self, poster_user_id: int, limit: int = 9) -> List[Dict]:
        return await self._applications.list_jobs_with_applications(poster_user_id, limit)

    async def list_applications(self, job_id: int) -> List[Dict]:
        return await self._applications.list_applications(job_id)

    async def get_application(self, application_id: int) -> ServiceResult[Dict]:
        return await self._applications.get_application(application_id)

    async def select_application(self, application_id: int) -> ServiceResult[Dict]:
        return await self._applications.select_application(application_id)

    async def reject_application(self, application_id: int) -> bool:
        return await self._applications.reject_application(application_id)

    # ==================== EXECUTION ====================

    async def get_active_job(self, worker_id: int) -> Optional[Dict]:
        return await self._execution.get_active_job(worker_id)

    async def record_arrival(self, job_id: int, worker_id: int, photo_path: Optional[str] = None) -> ServiceResult[Dict]:
        return await self._execution.record_arrival(job_id, worker_id, photo_path)

    async def report_completion(self, job_id: int, worker_id: int, photo_path: Optional[str] = None) -> ServiceResult[Dict]:
        return await self._execution.report_completion(job_id, worker_id, photo_path)

    # ==================== MEDIA ====================

    async def store_media(self, media_id: str, folder: str) -> Dict:
        return await self._media.store_media(media_id, folder)

    async def delete_media(self, path: str) -> bool:
        return await self._media.delete_media(path)

    # ==================== RESOURCES ====================

    async def close(self):
        """Closes every HTTP client."""
        clients = (
            self._messages, self._sessions, self._users, self._workers,
            self._jobs, self._applications, self._execution, self._media,
        )
        for client in clients:
            await client.close()

__all__ = ["PanikkarApi", "PanikkarApiError", "ServiceResult"]
