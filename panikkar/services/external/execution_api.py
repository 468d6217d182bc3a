import logging
from typing import Dict, Optional
from .base_client import BaseClient
from .result import ServiceResult, NOT_FOUND, NOT_ASSIGNED, WRONG_STATUS

logger = logging.getLogger(__name__)

class ExecutionApi(BaseClient):
    """
    Client for the assigned worker's side of a job.
    Single responsibility: arrival and completion reports.
    """

    async def get_active_job(self, worker_id: int) -> Optional[Dict]:
        """The job assigned to this worker that is not finished yet, if any."""
        response = await self._make_request("GET", f"job-workers/{worker_id}/active-job")
        if response.status_code == 404:
            return None
        return self._data(response)

    async def record_arrival(self, job_id: int, worker_id: int, photo_path: Optional[str] = None) -> ServiceResult[Dict]:
        """
        Marks the worker as arrived and the job as in progress. The backend
        tells the poster.

        Returns:
            ServiceResult: the updated job, or NOT_FOUND / NOT_ASSIGNED / WRONG_STATUS
        """
        payload = {"workerId": worker_id, "photoPath": photo_path}
        response = await self._make_request("POST", f"job-posts/{job_id}/arrival", json=payload)
        result = self._progress_result(response)
        if result.is_success():
            logger.info(f"[EXECUTION] Worker {worker_id} arrived at job {job_id}")
        return result

    async def report_completion(self, job_id: int, worker_id: int, photo_path: Optional[str] = None) -> ServiceResult[Dict]:
        """
        Reports the work as done. The poster confirms and pays outside this service.

        Returns:
            ServiceResult: the updated job, or NOT_FOUND / NOT_ASSIGNED / WRONG_STATUS
        """
        payload = {"workerId": worker_id, "photoPath": photo_path}
        response = await self._make_request("POST", f"job-posts/{job_id}/completion", json=payload)
        result = self._progress_result(response)
        if result.is_success():
            logger.info(f"[EXECUTION] Worker {worker_id} finished job {job_id}")
        return result

    def _progress_result(self, response) -> ServiceResult[Dict]:
        if response.status_code == 404:
            return ServiceResult.failure(NOT_FOUND)
        if response.status_code == 403:
            return ServiceResult.failure(NOT_ASSIGNED)
        if response.status_code in (409, 422):
            return ServiceResult.failure(WRONG_STATUS, response.json().get("message", ""))
        return ServiceResult.success(self._data(response))
