from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class VehicleType(str, Enum):
    NONE = "none"
    TWO_WHEELER = "two_wheeler"
    FOUR_WHEELER = "four_wheeler"

    @property
    def label(self) -> str:
        return {
            VehicleType.NONE: "🚶 No vehicle",
            VehicleType.TWO_WHEELER: "🛵 Two wheeler",
            VehicleType.FOUR_WHEELER: "🚗 Four wheeler",
        }[self]


class WorkerAvailability(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    FLEXIBLE = "flexible"

    @property
    def label(self) -> str:
        return {
            WorkerAvailability.MORNING: "🌅 Morning (6AM-12PM)",
            WorkerAvailability.AFTERNOON: "☀️ Afternoon (12PM-6PM)",
            WorkerAvailability.EVENING: "🌆 Evening (6PM-10PM)",
            WorkerAvailability.FLEXIBLE: "🔄 Flexible / Anytime",
        }[self]


class WorkerDraft(BaseModel):
    name: Optional[str] = None
    photo_path: Optional[str] = None
    photo_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    vehicle_type: Optional[VehicleType] = None
    job_types: List[int] = Field(default_factory=list)
    job_type_names: List[str] = Field(default_factory=list)
    availability: Optional[WorkerAvailability] = None
