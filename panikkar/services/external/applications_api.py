import logging
from typing import Dict, List
from .base_client import BaseClient
from .result import ServiceResult, NOT_FOUND, JOB_CLOSED, ALREADY_SELECTED

logger = logging.getLogger(__name__)

class ApplicationsApi(BaseClient):
    """
    Client for the poster's side of applications.
    Single responsibility: review applicants and pick the worker for a job.
    """

    async def list_jobs_with_applications(self, poster_user_id: int, limit: int = 9) -> List[Dict]:
        """
        The poster's open jobs that have at least one pending application.

        Returns:
            List[Dict]: job posts, each with "applicationsCount"
        """
        params = {"posterUserId": poster_user_id, "status": "open", "hasApplications": "true", "limit": limit}
        response = await self._make_request("GET", "job-posts", params=params)
        return self._data(response) or []

    async def list_applications(self, job_id: int) -> List[Dict]:
        """
        Pending applications for a job, best rated first.

        Returns:
            List[Dict]: [{"id", "workerId", "workerName", "workerRating", "proposedAmount", "message"}, ...]
        """
        response = await self._make_request(
            "GET", f"job-posts/{job_id}/applications", params={"status": "pending"}
        )
        if response.status_code == 404:
            return []
        return self._data(response) or []

    async def get_application(self, application_id: int) -> ServiceResult[Dict]:
        response = await self._make_request("GET", f"job-applications/{application_id}")
        if response.status_code == 404:
            return ServiceResult.failure(NOT_FOUND)
        return ServiceResult.success(self._data(response))

    async def select_application(self, application_id: int) -> ServiceResult[Dict]:
        """
        Assigns the job to the application's worker. The backend notifies the
        selected worker and declines the other pending applications.

        Returns:
            ServiceResult: the assigned job, or NOT_FOUND / ALREADY_SELECTED / JOB_CLOSED
        """
        response = await self._make_request("POST", f"job-applications/{application_id}/select")

        if response.status_code == 404:
            return ServiceResult.failure(NOT_FOUND)
        if response.status_code == 409:
            return ServiceResult.failure(ALREADY_SELECTED)
        if response.status_code in (410, 422):
            return ServiceResult.failure(JOB_CLOSED, response.json().get("message", ""))

        job = self._data(response)
        logger.info(f"[APPLICATIONS] Application {application_id} selected")
        return ServiceResult.success(job)

    async def reject_application(self, application_id: int) -> bool:
        """
        Declines one application.

        Returns:
            bool: True when the application is now declined (also when it already was)
        """
        response = await self._make_request("POST", f"job-applications/{application_id}/reject")
        if response.status_code in (200, 204, 409):    # 409: already decided
            logger.info(f"[APPLICATIONS] Application {application_id} rejected")
            return True
        logger.warning(f"[APPLICATIONS] Could not reject {application_id}: {response.status_code}")
        return False
