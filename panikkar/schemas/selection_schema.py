from typing import Optional

from pydantic import BaseModel


class SelectionDraft(BaseModel):
    """The poster's job and the applicant being looked at"""
    job_id: Optional[int] = None
    job_title: Optional[str] = None
    job_pay: Optional[int] = None
    application_id: Optional[int] = None
    worker_name: Optional[str] = None
    worker_rating: Optional[float] = None
    worker_jobs_done: Optional[int] = None
    proposed_amount: Optional[int] = None
    application_message: Optional[str] = None

    @property
    def amount_label(self) -> str:
        if self.proposed_amount is not None:
            return f"₹{self.proposed_amount:,}"
        if self.job_pay is not None:
            return f"₹{self.job_pay:,} (as posted)"
        return "As posted"

    @property
    def rating_label(self) -> str:
        if not self.worker_rating:
            return "New worker"
        return f"⭐ {self.worker_rating:.1f}"
