import logging
from typing import Dict, List, Optional
from .base_client import BaseClient
from .result import ServiceResult, NOT_FOUND, JOB_CLOSED, ALREADY_APPLIED, OWN_JOB

logger = logging.getLogger(__name__)

class JobsApi(BaseClient):
    """
    Client for job categories, job posts and applications.
    Single responsibility: jobs marketplace operations.
    """

    # ==================== CATEGORIES ====================

    async def list_categories(self) -> List[Dict]:
        """
        Active job categories, most popular first.

        Returns:
            List[Dict]: [{"id", "name", "nameMl", "icon", "minPay", "maxPay"}, ...]
        """
        response = await self._make_request("GET", "job-categories", params={"active": "true"})
        categories = self._data(response) or []
        logger.debug(f"[JOBS] {len(categories)} categories loaded")
        return categories

    async def get_category(self, category_id: int) -> Optional[Dict]:
        response = await self._make_request("GET", f"job-categories/{category_id}")
        if response.status_code == 404:
            return None
        return self._data(response)

    # ==================== JOB POSTS ====================

    async def create_job_post(self, job_data: Dict) -> Dict:
        """
        Publishes a job post.

        Args:
            job_data: Job fields collected by the posting flow

        Returns:
            Dict: created job (includes "id" and "jobNumber")
        """
        response = await self._make_request("POST", "job-posts", json=job_data)
        job = self._data(response)
        logger.info(f"[JOBS] Job posted: {job.get('jobNumber') or job.get('id')}")
        return job

    async def list_open_jobs(self, exclude_user_id: Optional[int] = None, limit: int = 9) -> List[Dict]:
        params = {"status": "open", "limit": limit}
        if exclude_user_id is not None:
            params["excludeUserId"] = exclude_user_id
        response = await self._make_request("GET", "job-posts", params=params)
        return self._data(response) or []

    async def get_job(self, job_id: int) -> ServiceResult[Dict]:
        response = await self._make_request("GET", f"job-posts/{job_id}")
        if response.status_code == 404:
            return ServiceResult.failure(NOT_FOUND)
        return ServiceResult.success(self._data(response))

    # ==================== APPLICATIONS ====================

    async def apply_to_job(self, job_id: int, worker_id: int, application: Dict) -> ServiceResult[Dict]:
        """
        Sends a worker's application for a job.

        Args:
            job_id: Job post id
            worker_id: Applying worker id
            application: {"message", "proposedAmount"}

        Returns:
            ServiceResult: created application, or NOT_FOUND / JOB_CLOSED /
            ALREADY_APPLIED / OWN_JOB
        """
        payload = {"workerId": worker_id, **application}
        response = await self._make_request("POST", f"job-posts/{job_id}/applications", json=payload)

        if response.status_code == 404:
            return ServiceResult.failure(NOT_FOUND)
        if response.status_code == 409:
            return ServiceResult.failure(ALREADY_APPLIED)
        if response.status_code == 403:
            return ServiceResult.failure(OWN_JOB)
        if response.status_code in (410, 422):
            return ServiceResult.failure(JOB_CLOSED, response.json().get("message", ""))

        application_data = self._data(response)
        logger.info(f"[JOBS] Worker {worker_id} applied to job {job_id}")
        return ServiceResult.success(application_data)
