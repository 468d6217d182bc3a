from typing import Optional

from pydantic import BaseModel


class ExecutionDraft(BaseModel):
    job_id: Optional[int] = None
    job_title: Optional[str] = None
    worker_id: Optional[int] = None
    # uploaded but not yet attached to a backend report
    arrival_photo_path: Optional[str] = None
    completion_photo_path: Optional[str] = None
    arrival_recorded: bool = False
