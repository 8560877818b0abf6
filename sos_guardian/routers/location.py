from fastapi import APIRouter, Depends, HTTPException, status

from sos_guardian.schemas.location import LocationFix, LocationStatus, PermissionReport
from sos_guardian.utils.location import DeviceGeolocation
from sos_guardian.utils.sos import EmergencySOS, get_sos

router = APIRouter(prefix="/location", tags=["Location"])


def _status(sos: EmergencySOS) -> LocationStatus:
    return LocationStatus(
        permission=sos.location.permission,
        location=sos.location.location,
        last_error=sos.location.last_error,
    )


def _device_backend(sos: EmergencySOS) -> DeviceGeolocation:
    if not isinstance(sos.geolocation, DeviceGeolocation):
        raise HTTPException(status_code=409, detail="Location is not reported by the device")
    return sos.geolocation


@router.get("/", response_model=LocationStatus)
async def get_location(sos: EmergencySOS = Depends(get_sos)):
    return _status(sos)


@router.post("/permission", response_model=LocationStatus)
async def report_location_permission(report: PermissionReport, sos: EmergencySOS = Depends(get_sos)):
    """The device reports the user's geolocation consent."""
    _device_backend(sos).report_permission(report.granted)
    await sos.location.request_permission()
    return _status(sos)


@router.post("/fix", response_model=LocationStatus, status_code=status.HTTP_201_CREATED)
async def report_location_fix(fix: LocationFix, sos: EmergencySOS = Depends(get_sos)):
    """The device pushes a position fix; it becomes the snapshot if permission allows."""
    _device_backend(sos).report_fix(**fix.model_dump())
    await sos.location.update_location()
    return _status(sos)


@router.post("/refresh", response_model=LocationStatus)
async def refresh_location(sos: EmergencySOS = Depends(get_sos)):
    await sos.location.update_location()
    return _status(sos)
