"""Shake gesture detection over a stream of acceleration samples.

A sample's magnitude is sqrt(x^2 + y^2 + z^2) in m/s^2 (gravity included, so a
device at rest reads ~9.8). A shake is recognized when the magnitude exceeds
`threshold` and the previous shake is at least `debounce_seconds` old on the
monotonic clock. One physical gesture produces a burst of high samples; the
refractory window collapses that burst into a single event.
"""
import logging
import math
import time
from collections import deque
from typing import Callable, List, Optional, Protocol

from sos_guardian.config import SHAKE_THRESHOLD, SHAKE_DEBOUNCE_SECONDS, SHAKE_SAMPLE_WINDOW
from sos_guardian.schemas.enums import PermissionState
from sos_guardian.utils.session import ActivationSession

logger = logging.getLogger(__name__)

ShakeCallback = Callable[[], None]


class MotionPermissionBackend(Protocol):
    async def request_permission(self) -> bool:
        ...


class DeviceMotionPermission:
    """Permission decision reported by the device; platforms without a prompt grant by default."""

    def __init__(self, granted: bool = True):
        self.granted = granted

    def report_permission(self, granted: bool):
        self.granted = granted

    async def request_permission(self) -> bool:
        return self.granted


class MotionSignalDetector:
    def __init__(
        self,
        session: ActivationSession,
        permission_backend: Optional[MotionPermissionBackend] = None,
        threshold: float = SHAKE_THRESHOLD,
        debounce_seconds: float = SHAKE_DEBOUNCE_SECONDS,
        window: int = SHAKE_SAMPLE_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session = session
        self.permission_backend = permission_backend or DeviceMotionPermission()
        self.threshold = threshold
        self.debounce_seconds = debounce_seconds
        self.clock = clock

        self.enabled = False
        self.permission = PermissionState.UNKNOWN
        self.magnitudes = deque(maxlen=window)
        self.last_shake_at: Optional[float] = None
        self._callbacks: List[ShakeCallback] = []

    # ---------------- SUBSCRIPTION ----------------
    def enable(self):
        if self.permission == PermissionState.DENIED:
            logger.info("Motion permission denied; detector stays disabled")
            return
        if not self.enabled:
            self.enabled = True
            self.magnitudes.clear()
            logger.info("Shake detection enabled")

    def disable(self):
        if self.enabled:
            self.enabled = False
            self.magnitudes.clear()
            logger.info("Shake detection disabled")

    def on_shake(self, callback: ShakeCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def request_motion_permission(self) -> bool:
        try:
            granted = bool(await self.permission_backend.request_permission())
        except Exception as e:
            logger.warning("Motion permission request failed: %s", e)
            granted = False

        self.permission = PermissionState.GRANTED if granted else PermissionState.DENIED
        logger.info("Motion permission %s", self.permission.value)
        if not granted:
            self.disable()
        return granted

    # ---------------- SAMPLES ----------------
    @property
    def peak_magnitude(self) -> float:
        return max(self.magnitudes, default=0.0)

    def handle_sample(self, x: float, y: float, z: float) -> bool:
        """
        Feed one sample. Returns True when it produced a shake event.

        Debounce always runs on `self.clock`; device timestamps only order a
        batch before it is fed in.
        """
        if not self.enabled or self.permission == PermissionState.DENIED:
            return False
        if self.session.is_activating:
            return False

        now = self.clock()
        magnitude = math.sqrt(x * x + y * y + z * z)
        self.magnitudes.append(magnitude)

        if magnitude <= self.threshold:
            return False
        if self.last_shake_at is not None and now - self.last_shake_at < self.debounce_seconds:
            return False

        self.last_shake_at = now
        logger.info("Shake detected (%.1f m/s^2)", magnitude)
        self._emit()
        return True

    def _emit(self):
        if not self._callbacks:
            logger.debug("Shake dropped, no consumer registered")
            return
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception:
                logger.exception("Shake consumer failed")
