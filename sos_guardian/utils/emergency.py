"""Emergency activation state machine.

    Idle -> Counting -> Cancelled -> Idle
                     -> Dispatching -> Completed -> Idle

A countdown runs as one asyncio task. Each tick decrements `remaining_seconds`;
the tick that reaches zero moves to Dispatching in the same synchronous step,
so a cancel either lands before it (no alert) or after it (no-op). Dispatch
captures the location snapshot and user name, fans the Alert out to every
contact (primary first) and always ends back in Idle.
"""
import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, List, Optional

from sos_guardian.config import (
    ALERT_HISTORY_SIZE, COUNTDOWN_SECONDS, COUNTDOWN_TICK_SECONDS, USERNAME_KEY
)
from sos_guardian.schemas.alerts import Alert, AlertDelivery
from sos_guardian.schemas.enums import ActivationState, AlertStatus, TriggerSource
from sos_guardian.utils.alerts import AlertDispatcher
from sos_guardian.utils.contacts import ContactRegistry
from sos_guardian.utils.location import LocationProvider
from sos_guardian.utils.notifications import Notifier
from sos_guardian.utils.preferences import PersistedPreferences
from sos_guardian.utils.session import ActivationSession

logger = logging.getLogger(__name__)

AlertListener = Callable[[Alert], None]


class EmergencyActivationEngine:
    def __init__(
        self,
        session: ActivationSession,
        registry: ContactRegistry,
        location_provider: LocationProvider,
        preferences: PersistedPreferences,
        dispatcher: AlertDispatcher,
        notifier: Notifier,
        countdown_seconds: int = COUNTDOWN_SECONDS,
        tick_seconds: float = COUNTDOWN_TICK_SECONDS,
        ticker: Optional[Callable[[], Awaitable[None]]] = None,
        history_size: int = ALERT_HISTORY_SIZE,
    ):
        if countdown_seconds < 0:
            raise ValueError("countdown_seconds must be >= 0")

        self.session = session
        self.registry = registry
        self.location_provider = location_provider
        self.preferences = preferences
        self.dispatcher = dispatcher
        self.notifier = notifier
        self.countdown_seconds = countdown_seconds
        self.tick_seconds = tick_seconds
        self._ticker = ticker or (lambda: asyncio.sleep(self.tick_seconds))

        self.alerts = deque(maxlen=history_size)
        self._alert_listeners: List[AlertListener] = []
        self._task: Optional[asyncio.Task] = None

    # ---------------- OBSERVERS ----------------
    def subscribe(self, listener):
        """Observe every state transition as (state, remaining_seconds)."""
        return self.session.subscribe(listener)

    def on_alert(self, listener: AlertListener):
        self._alert_listeners.append(listener)

    # ---------------- TRIGGERS ----------------
    def trigger(self, source: TriggerSource = TriggerSource.MANUAL) -> bool:
        """Entry point for shake events and the manual SOS button."""
        if self.registry and source == TriggerSource.SHAKE and self.session.state == ActivationState.IDLE:
            self.notifier.warning("Shake detected!", "Initiating emergency SOS...")
        return self.start_countdown(source)

    def start_countdown(self, source: TriggerSource = TriggerSource.MANUAL) -> bool:
        """
        Idle -> Counting. Must be called from a running event loop.

        Returns False without changing state when no contacts are configured or
        an activation is already in progress.
        """
        if not self.registry:
            logger.warning("SOS trigger ignored: no emergency contacts configured")
            self.notifier.error("No emergency contacts configured", "Add a contact before using SOS.")
            return False

        if self.session.state != ActivationState.IDLE:
            logger.info("SOS trigger ignored: activation already %s", self.session.state.value)
            return False

        loop = asyncio.get_running_loop()
        self.session.countdown_id += 1
        self.session.source = source
        self.session.transition(ActivationState.COUNTING, self.countdown_seconds)
        logger.info("🆘 Countdown %d started (%ss, %s)", self.session.countdown_id, self.countdown_seconds, source.value)
        self._task = loop.create_task(self._run_countdown(self.session.countdown_id))
        return True

    def cancel_countdown(self) -> bool:
        """Counting -> Cancelled -> Idle. No-op outside Counting."""
        if self.session.state != ActivationState.COUNTING:
            return False

        countdown_id = self.session.countdown_id
        self.session.transition(ActivationState.CANCELLED)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.session.source = None
        self.session.transition(ActivationState.IDLE, 0)

        logger.info("Countdown %d cancelled", countdown_id)
        self.notifier.success("Emergency SOS cancelled")
        return True

    async def join(self):
        """Wait for the current countdown (and its dispatch) to finish."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def shutdown(self):
        self.cancel_countdown()
        await self.join()

    # ---------------- COUNTDOWN ----------------
    def _is_current(self, countdown_id: int) -> bool:
        return self.session.countdown_id == countdown_id and self.session.state == ActivationState.COUNTING

    async def _run_countdown(self, countdown_id: int):
        try:
            remaining = self.session.remaining_seconds
            while remaining > 0:
                await self._ticker()
                if not self._is_current(countdown_id):
                    return
                remaining -= 1
                if remaining > 0:
                    self.session.transition(ActivationState.COUNTING, remaining)

            if not self._is_current(countdown_id):
                return
            self.session.transition(ActivationState.DISPATCHING, 0)
            await self._dispatch()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Countdown %d failed", countdown_id)
        finally:
            if self.session.countdown_id == countdown_id and self.session.state != ActivationState.IDLE:
                self.session.source = None
                self.session.transition(ActivationState.IDLE, 0)

    # ---------------- DISPATCH ----------------
    async def _dispatch(self):
        alert = Alert(
            location=self.location_provider.location,
            user_name=self.preferences.get(USERNAME_KEY, "") or "",
            source=self.session.source or TriggerSource.MANUAL,
            recipients=self.registry.recipients(),
        )
        logger.info(
            "🚨 Dispatching alert %s to %d contact(s), location %s",
            alert.id, len(alert.recipients), "known" if alert.location else "unknown",
        )

        for contact in alert.recipients:
            try:
                await self.dispatcher.send(alert, contact)
            except Exception as e:
                logger.warning("Failed to alert %s (%s): %s", contact.name, contact.phone_number, e)
                alert.deliveries.append(AlertDelivery(
                    contact_id=contact.id,
                    recipient=contact.phone_number,
                    status=AlertStatus.FAILED,
                    error=str(e) or type(e).__name__,
                ))
            else:
                logger.info("✅ Alert sent to %s", contact.phone_number)
                alert.deliveries.append(AlertDelivery(
                    contact_id=contact.id,
                    recipient=contact.phone_number,
                    status=AlertStatus.SENT,
                ))

        self.alerts.append(alert)
        self._report(alert)

        for listener in list(self._alert_listeners):
            try:
                listener(alert)
            except Exception:
                logger.exception("Alert listener failed for %s", alert.id)

        self.session.transition(ActivationState.COMPLETED)
        self.session.source = None
        self.session.transition(ActivationState.IDLE, 0)
        return alert

    def _report(self, alert: Alert):
        if not alert.recipients:
            self.notifier.error("No emergency contacts to notify")
            return
        failed = alert.failed_deliveries
        if not failed:
            self.notifier.success("Emergency alert sent", f"{len(alert.deliveries)} contact(s) notified.")
        elif len(failed) < len(alert.deliveries):
            names = ", ".join(d.recipient for d in failed)
            self.notifier.warning("Emergency alert partially sent", f"Could not reach: {names}")
        else:
            self.notifier.error("Emergency alert failed", "No contact could be reached.")
