from pydantic import BaseModel
from typing import List, Optional

from sos_guardian.schemas.enums import PermissionState


class AccelerationSample(BaseModel):
    x: float
    y: float
    z: float
    timestamp: Optional[float] = None  # device clock, only used to order a batch

class SampleBatch(BaseModel):
    samples: List[AccelerationSample]

class SampleBatchResult(BaseModel):
    accepted: int
    shakes: int

class MotionStatus(BaseModel):
    enabled: bool
    permission: PermissionState
    shake_enabled: bool
    peak_magnitude: float = 0.0
