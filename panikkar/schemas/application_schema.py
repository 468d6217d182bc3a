from typing import Optional

from pydantic import BaseModel, Field, field_validator

MESSAGE_MAX = 300


class ApplicationMessageSchema(BaseModel):
    """Note from the worker to the poster, truncated when long"""
    message: str = Field(..., min_length=1)

    @field_validator("message", mode="before")
    def clean_message(cls, v):
        return str(v).strip()[:MESSAGE_MAX]


class ApplicationDraft(BaseModel):
    job_id: Optional[int] = None
    job_title: Optional[str] = None
    job_pay: Optional[int] = None
    worker_id: Optional[int] = None
    message: Optional[str] = None
    proposed_amount: Optional[int] = None

    @property
    def amount_label(self) -> str:
        if self.proposed_amount is not None:
            return f"₹{self.proposed_amount:,}"
        if self.job_pay is not None:
            return f"₹{self.job_pay:,} (as posted)"
        return "As posted"
