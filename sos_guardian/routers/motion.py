import math
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from sos_guardian.schemas.location import PermissionReport
from sos_guardian.schemas.motion import MotionStatus, SampleBatch, SampleBatchResult
from sos_guardian.schemas.onboarding import ShakeToggle
from sos_guardian.utils.shake import DeviceMotionPermission
from sos_guardian.utils.sos import EmergencySOS, get_sos

router = APIRouter(prefix="/motion", tags=["Motion"])


def _status(sos: EmergencySOS) -> MotionStatus:
    return MotionStatus(
        enabled=sos.detector.enabled,
        permission=sos.detector.permission,
        shake_enabled=sos.shake_enabled,
        peak_magnitude=sos.detector.peak_magnitude,
    )


@router.get("/", response_model=MotionStatus)
async def get_motion_status(sos: EmergencySOS = Depends(get_sos)):
    return _status(sos)


@router.post("/permission", response_model=MotionStatus)
async def report_motion_permission(report: PermissionReport, sos: EmergencySOS = Depends(get_sos)):
    if isinstance(sos.motion_permission, DeviceMotionPermission):
        sos.motion_permission.report_permission(report.granted)
    if await sos.detector.request_motion_permission():
        await run_in_threadpool(sos.set_shake_enabled, sos.shake_enabled)
    return _status(sos)


@router.post("/samples", response_model=SampleBatchResult)
async def ingest_samples(batch: SampleBatch, sos: EmergencySOS = Depends(get_sos)):
    """
    Feed raw acceleration samples to the shake detector.
    Samples are dropped silently while detection is off or an SOS is active.
    """
    # Device timestamps order the batch; untimed samples keep arrival order at the end
    ordered = sorted(batch.samples, key=lambda s: math.inf if s.timestamp is None else s.timestamp)
    shakes = 0
    for sample in ordered:
        if sos.detector.handle_sample(sample.x, sample.y, sample.z):
            shakes += 1
    return SampleBatchResult(accepted=len(batch.samples), shakes=shakes)


@router.put("/shake", response_model=MotionStatus)
def toggle_shake_detection(toggle: ShakeToggle, sos: EmergencySOS = Depends(get_sos)):
    sos.set_shake_enabled(toggle.enabled)
    return _status(sos)
