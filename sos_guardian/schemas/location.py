from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional

from sos_guardian.schemas.enums import PermissionState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ------------------ LOCATION ------------------
class Location(BaseModel):
    """Read-only position snapshot. Consumers never mutate it."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)
    timestamp: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

class LocationFix(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)
    timestamp: Optional[datetime] = None

class PermissionReport(BaseModel):
    granted: bool

class LocationStatus(BaseModel):
    permission: PermissionState
    location: Optional[Location] = None
    last_error: Optional[str] = None
