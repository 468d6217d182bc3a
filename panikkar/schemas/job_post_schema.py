from typing import Optional
import re

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

PAY_MIN = 50
PAY_MAX = 50000
DESCRIPTION_MAX = 500
INSTRUCTIONS_MAX = 300

FORBIDDEN_CHARS = re.compile(r"[<>{}\[\]]")


class CustomJobTypeSchema(BaseModel):
    """Schema for a job type typed by the poster ("Other")"""
    job_type: str = Field(..., min_length=3, max_length=100)

    @field_validator("job_type", mode="before")
    def validate_job_type(cls, v):
        v = " ".join(str(v).split())
        if len(v) < 3 or len(v) > 100:
            raise PydanticCustomError(
                "job_type_length",
                "Job type should be between 3 and 100 characters"
            )
        if FORBIDDEN_CHARS.search(v):
            raise PydanticCustomError(
                "job_type_invalid",
                "Job type cannot contain < > { } [ ]"
            )
        return v


class JobTitleSchema(BaseModel):
    title: str = Field(..., min_length=5, max_length=100)

    @field_validator("title", mode="before")
    def validate_title(cls, v):
        v = " ".join(str(v).split())
        if len(v) < 5:
            raise PydanticCustomError("title_short", "Title is too short. Please use at least 5 characters")
        if len(v) > 100:
            raise PydanticCustomError("title_long", "Title is too long. Please keep it under 100 characters")
        return v


class JobDescriptionSchema(BaseModel):
    """Free text, truncated rather than rejected when long"""
    description: str = Field(..., min_length=10)

    @field_validator("description", mode="before")
    def validate_description(cls, v):
        v = str(v).strip()
        if len(v) < 10:
            raise PydanticCustomError(
                "description_short",
                "Please add a bit more detail (at least 10 characters) or tap Skip"
            )
        return v[:DESCRIPTION_MAX]


class LocationNameSchema(BaseModel):
    location_name: str = Field(..., min_length=3, max_length=200)

    @field_validator("location_name", mode="before")
    def validate_location_name(cls, v):
        v = " ".join(str(v).split())
        if len(v) < 3 or len(v) > 200:
            raise PydanticCustomError(
                "location_length",
                "Please enter a place name between 3 and 200 characters"
            )
        return v


class PaySchema(BaseModel):
    """Rupee amount. Digits are extracted from inputs like ₹1,500 or 1500/-"""
    amount: int = Field(..., ge=PAY_MIN, le=PAY_MAX)

    @field_validator("amount", mode="before")
    def validate_amount(cls, v):
        if isinstance(v, int):
            digits = str(v)
        else:
            digits = re.sub(r"[^\d]", "", str(v))
        if not digits:
            raise PydanticCustomError("amount_invalid", "Please enter the amount in numbers, like 800")
        amount = int(digits)
        if amount < PAY_MIN or amount > PAY_MAX:
            raise PydanticCustomError(
                "amount_range",
                "Amount should be between ₹{min} and ₹{max}",
                {"min": PAY_MIN, "max": PAY_MAX},
            )
        return amount


class JobPostDraft(BaseModel):
    """Everything the posting wizard collects before publishing"""
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    custom_job_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    job_date: Optional[str] = None      # ISO date
    job_time: Optional[str] = None      # HH:MM 24h
    duration: Optional[str] = None
    duration_hours: Optional[float] = None
    pay_amount: Optional[int] = None
    suggested_min: Optional[int] = None
    suggested_max: Optional[int] = None
    special_instructions: Optional[str] = None

    @property
    def job_type_label(self) -> str:
        return self.custom_job_type or self.category_name or "Job"

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None
