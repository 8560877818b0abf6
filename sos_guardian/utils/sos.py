import asyncio
import logging
from typing import Callable, Optional, Set

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from sos_guardian.config import ONBOARDING_KEY, USERNAME_KEY, SHAKE_ENABLED_KEY
from sos_guardian.crud.crud import create_alert_record
from sos_guardian.schemas.alerts import Alert
from sos_guardian.schemas.emergency_contacts import EmergencyContact, EmergencyContactCreate
from sos_guardian.schemas.enums import ActivationState, TriggerSource
from sos_guardian.utils.alerts import AlertDispatcher, LogDispatcher
from sos_guardian.utils.contacts import ContactRegistry
from sos_guardian.utils.emergency import EmergencyActivationEngine
from sos_guardian.utils.location import DeviceGeolocation, GeolocationBackend, LocationProvider
from sos_guardian.utils.notifications import Notifier
from sos_guardian.utils.preferences import PersistedPreferences
from sos_guardian.utils.session import ActivationSession
from sos_guardian.utils.shake import DeviceMotionPermission, MotionPermissionBackend, MotionSignalDetector

logger = logging.getLogger(__name__)


class EmergencySOS:
    """
    One user session: owns the ActivationSession and wires
    detector -> engine -> dispatcher, notifications and the alert log.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        geolocation: Optional[GeolocationBackend] = None,
        motion_permission: Optional[MotionPermissionBackend] = None,
        dispatcher: Optional[AlertDispatcher] = None,
        notifier: Optional[Notifier] = None,
        **engine_options,
    ):
        self.session_factory = session_factory
        self.session = ActivationSession()
        self.notifier = notifier or Notifier()
        self.preferences = PersistedPreferences(session_factory)
        self.registry = ContactRegistry(self.preferences)
        self.geolocation = geolocation or DeviceGeolocation()
        self.location = LocationProvider(self.geolocation)
        self.motion_permission = motion_permission or DeviceMotionPermission()
        self.detector = MotionSignalDetector(self.session, self.motion_permission)
        self.engine = EmergencyActivationEngine(
            self.session,
            self.registry,
            self.location,
            self.preferences,
            dispatcher or LogDispatcher(),
            self.notifier,
            **engine_options,
        )
        self._background: Set[asyncio.Task] = set()

        self.detector.on_shake(self.handle_shake)
        self.engine.on_alert(self._log_alert)
        self.engine.subscribe(self._on_state_change)
        self._sync_detector()

    # ---------------- PREFERENCES ----------------
    @property
    def onboarding_complete(self) -> bool:
        return bool(self.preferences.get(ONBOARDING_KEY, False))

    @property
    def user_name(self) -> str:
        return self.preferences.get(USERNAME_KEY, "") or ""

    @property
    def shake_enabled(self) -> bool:
        return bool(self.preferences.get(SHAKE_ENABLED_KEY, True))

    def complete_onboarding(self, name: str):
        self.preferences.set(USERNAME_KEY, name.strip())
        self.preferences.set(ONBOARDING_KEY, True)
        self.notifier.success("Welcome to Emergency SOS", "Add your emergency contacts to get started.")
        self._sync_detector()

    def set_shake_enabled(self, enabled: bool):
        self.preferences.set(SHAKE_ENABLED_KEY, enabled)
        self._sync_detector()

    def _sync_detector(self):
        if self.shake_enabled and self.onboarding_complete and not self.session.is_activating:
            self.detector.enable()
        else:
            self.detector.disable()

    def _on_state_change(self, state: ActivationState, remaining: int):
        if state in (ActivationState.COUNTING, ActivationState.IDLE):
            self._sync_detector()

    # ---------------- CONTACTS ----------------
    def add_contact(self, data: EmergencyContactCreate) -> EmergencyContact:
        contact = self.registry.add_contact(data)
        self.notifier.success("Contact added", f"{contact.name} has been added.")
        return contact

    def set_primary(self, contact_id: str) -> bool:
        changed = self.registry.set_primary(contact_id)
        if changed:
            self.notifier.success("Primary contact updated")
        return changed

    def remove_contact(self, contact_id: str) -> Optional[EmergencyContact]:
        removed = self.registry.remove_contact(contact_id)
        if removed is not None:
            self.notifier.success("Contact removed", f"{removed.name} has been removed.")
        return removed

    # ---------------- TRIGGERS ----------------
    def handle_shake(self):
        self.trigger(TriggerSource.SHAKE)

    def trigger(self, source: TriggerSource = TriggerSource.MANUAL) -> bool:
        accepted = self.engine.trigger(source)
        if accepted:
            # Refresh in the background; dispatch uses whatever snapshot exists at expiry
            self._spawn(self.location.update_location())
        return accepted

    def cancel(self) -> bool:
        return self.engine.cancel_countdown()

    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def shutdown(self):
        await self.engine.shutdown()
        if self._background:
            await asyncio.wait(set(self._background))

    # ---------------- ALERT LOG ----------------
    def _log_alert(self, alert: Alert):
        # Written from the threadpool, off the event loop
        self._spawn(run_in_threadpool(self._record_alert, alert))

    def _record_alert(self, alert: Alert):
        db = self.session_factory()
        try:
            create_alert_record(db, alert)
        except Exception as e:
            logger.warning(f"Failed to persist alert {alert.id}: {e}")
        finally:
            db.close()


# Dependency to get the session-wide EmergencySOS in FastAPI routes
def get_sos(request: Request) -> EmergencySOS:
    return request.app.state.sos
