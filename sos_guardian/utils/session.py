import logging
from typing import Callable, List, Optional

from sos_guardian.schemas.alerts import ActivationStatusOut
from sos_guardian.schemas.enums import ActivationState, TriggerSource

logger = logging.getLogger(__name__)

StateListener = Callable[[ActivationState, int], None]


class ActivationSession:
    """
    The single activation state of a user session.

    Constructed once and handed explicitly to the components that read it
    (motion detector) or transition it (activation engine).
    """

    def __init__(self):
        self.state = ActivationState.IDLE
        self.remaining_seconds = 0
        self.source: Optional[TriggerSource] = None
        self.countdown_id = 0
        self._listeners: List[StateListener] = []

    @property
    def is_activating(self) -> bool:
        return self.state != ActivationState.IDLE

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def transition(self, state: ActivationState, remaining_seconds: Optional[int] = None):
        self.state = state
        if remaining_seconds is not None:
            self.remaining_seconds = remaining_seconds
        logger.debug("Activation %d -> %s (%ss)", self.countdown_id, state.value, self.remaining_seconds)
        for listener in list(self._listeners):
            try:
                listener(self.state, self.remaining_seconds)
            except Exception:
                logger.exception("Activation state listener failed")

    def status(self) -> ActivationStatusOut:
        return ActivationStatusOut(
            state=self.state,
            remaining_seconds=self.remaining_seconds,
            source=self.source,
            countdown_id=self.countdown_id,
        )
