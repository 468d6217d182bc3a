from typing import Optional
import re

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

NAME_PATTERN = re.compile(r"^[^\d<>{}\[\]@#$%^*=+|\\/~`]+$")


class NameSchema(BaseModel):
    """Schema for a person's name (users and workers)"""
    name: str = Field(..., min_length=2, max_length=100)

    @field_validator("name", mode="before")
    def validate_name(cls, v):
        v = " ".join(str(v).split())
        if len(v) < 2 or len(v) > 100:
            raise PydanticCustomError(
                "name_length",
                "Name should be between 2 and 100 characters"
            )
        if not NAME_PATTERN.match(v):
            raise PydanticCustomError(
                "name_invalid",
                "Name should contain only letters and spaces"
            )
        return v


class SharedLocationSchema(BaseModel):
    """Coordinates shared with the WhatsApp location button"""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: Optional[str] = None
    address: Optional[str] = None


class RegistrationDraft(BaseModel):
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
