import logging
from datetime import datetime
from typing import Optional, Protocol

from sos_guardian.schemas.enums import PermissionState
from sos_guardian.schemas.location import Location

logger = logging.getLogger(__name__)


class LocationUnavailable(Exception):
    """The device could not produce a fix (no signal, permission denied, timeout)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class GeolocationBackend(Protocol):
    async def request_permission(self) -> bool:
        ...

    async def get_position(self) -> Location:
        ...


class DeviceGeolocation:
    """
    Geolocation backend fed by the device itself: the client reports its
    permission decision and pushes fixes over the API.
    """

    def __init__(self):
        self.permission_granted: Optional[bool] = None
        self._latest: Optional[Location] = None

    def report_permission(self, granted: bool):
        self.permission_granted = granted

    def report_fix(self, latitude: float, longitude: float, accuracy: Optional[float] = None,
                   timestamp: Optional[datetime] = None) -> Location:
        fields = {"latitude": latitude, "longitude": longitude, "accuracy": accuracy}
        if timestamp is not None:
            fields["timestamp"] = timestamp
        self._latest = Location(**fields)
        return self._latest

    async def request_permission(self) -> bool:
        return bool(self.permission_granted)

    async def get_position(self) -> Location:
        if not self.permission_granted:
            raise LocationUnavailable("denied")
        if self._latest is None:
            raise LocationUnavailable("no-fix")
        return self._latest


class LocationProvider:
    """
    Holds the latest successful position snapshot.

    Failures never raise: "no location" is a degraded but valid state and the
    previous snapshot is kept. Judging staleness via `location.timestamp` is up
    to the caller.
    """

    def __init__(self, backend: GeolocationBackend):
        self.backend = backend
        self.permission = PermissionState.UNKNOWN
        self.last_error: Optional[str] = None
        self._location: Optional[Location] = None

    @property
    def location(self) -> Optional[Location]:
        return self._location

    @property
    def permission_granted(self) -> bool:
        return self.permission == PermissionState.GRANTED

    async def request_permission(self) -> bool:
        try:
            granted = bool(await self.backend.request_permission())
        except Exception as e:
            logger.warning("Location permission request failed: %s", e)
            granted = False
        self.permission = PermissionState.GRANTED if granted else PermissionState.DENIED
        logger.info("Location permission %s", self.permission.value)
        if granted:
            await self.update_location()
        return granted

    async def update_location(self) -> bool:
        try:
            self._location = await self.backend.get_position()
        except LocationUnavailable as e:
            self.last_error = e.reason
            if e.reason == "denied":
                self.permission = PermissionState.DENIED
            logger.warning("Location unavailable: %s", e.reason)
            return False
        except Exception as e:
            self.last_error = str(e) or type(e).__name__
            logger.warning("Location request failed: %s", e)
            return False

        self.last_error = None
        self.permission = PermissionState.GRANTED
        logger.debug("Location updated: %s, %s", self._location.latitude, self._location.longitude)
        return True
