from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, timezone
from uuid import uuid4

from sos_guardian.schemas.enums import ActivationState, AlertStatus, TriggerSource, NotificationLevel
from sos_guardian.schemas.emergency_contacts import EmergencyContact
from sos_guardian.schemas.location import Location


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------- ALERT ----------------
class AlertDelivery(BaseModel):
    contact_id: str
    recipient: str
    status: AlertStatus = AlertStatus.PENDING
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)

class Alert(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = Field(default_factory=_utcnow)
    location: Optional[Location] = None
    user_name: str = ""
    source: TriggerSource = TriggerSource.MANUAL
    recipients: List[EmergencyContact] = []
    deliveries: List[AlertDelivery] = []

    @property
    def failed_deliveries(self) -> List[AlertDelivery]:
        return [d for d in self.deliveries if d.status == AlertStatus.FAILED]


# ---------------- ALERT LOG (DB) ----------------
class AlertEventOut(BaseModel):
    id: str
    timestamp: datetime
    user_name: Optional[str] = None
    source: TriggerSource
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    message: Optional[str] = None
    model_config = {"from_attributes": True}

class AlertNotificationOut(BaseModel):
    id: int
    alert_event_id: str
    contact_id: Optional[str] = None
    recipient: Optional[str] = None
    status: AlertStatus
    error: Optional[str] = None
    timestamp: datetime
    model_config = {"from_attributes": True}


# ---------------- ACTIVATION STATUS ----------------
class ActivationStatusOut(BaseModel):
    state: ActivationState
    remaining_seconds: int
    source: Optional[TriggerSource] = None
    countdown_id: int


# ---------------- NOTIFICATION FEED ----------------
class Notification(BaseModel):
    level: NotificationLevel
    message: str
    description: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
