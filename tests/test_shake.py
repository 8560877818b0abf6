"""Tests for MotionSignalDetector."""

import pytest

from sos_guardian.schemas.enums import ActivationState, PermissionState
from sos_guardian.utils.shake import DeviceMotionPermission, MotionSignalDetector

HARD = (12.0, 12.0, 9.8)   # ~19.6 m/s^2
REST = (0.0, 0.0, 9.8)


class BrokenPermission:
    async def request_permission(self):
        raise RuntimeError("sensor API unavailable")


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def detector(session, clock):
    detector = MotionSignalDetector(session, threshold=15.0, debounce_seconds=1.0, window=8, clock=clock)
    detector.enable()
    return detector


@pytest.fixture
def shakes(detector):
    events = []
    detector.on_shake(lambda: events.append(1))
    return events


class TestShakeRecognition:

    def test_burst_within_window_emits_once(self, detector, clock, shakes):
        results = []
        for _ in range(15):
            results.append(detector.handle_sample(*HARD))
            clock.now += 0.05
        assert results.count(True) == 1
        assert len(shakes) == 1

    def test_new_shake_after_refractory_window(self, detector, clock, shakes):
        detector.handle_sample(*HARD)
        clock.now += 0.99
        detector.handle_sample(*HARD)
        clock.now += 0.01
        detector.handle_sample(*HARD)
        assert len(shakes) == 2

    def test_samples_below_threshold_are_ignored(self, detector, clock, shakes):
        for _ in range(20):
            detector.handle_sample(*REST)
            clock.now += 1.0
        assert shakes == []

    def test_magnitude_exactly_at_threshold_is_not_a_shake(self, detector, shakes):
        detector.handle_sample(15.0, 0.0, 0.0)
        assert shakes == []

    def test_every_spaced_gesture_is_recognized(self, detector, clock, shakes):
        for _ in range(10):
            assert detector.handle_sample(*HARD)
            clock.now += 3600.0
        assert len(shakes) == 10

    def test_default_clock_is_monotonic(self, session):
        detector = MotionSignalDetector(session, threshold=15.0, debounce_seconds=1.0)
        detector.enable()
        assert detector.handle_sample(*HARD)
        assert not detector.handle_sample(*HARD)

    def test_peak_magnitude_tracks_buffer(self, detector):
        detector.handle_sample(*REST)
        detector.handle_sample(3.0, 4.0, 0.0)
        assert detector.peak_magnitude == pytest.approx(9.8)
        assert len(detector.magnitudes) == 2


class TestShakeDelivery:

    def test_event_without_consumer_is_dropped(self, detector):
        assert detector.handle_sample(*HARD)
        events = []
        detector.on_shake(lambda: events.append(1))
        assert events == []

    def test_every_consumer_called_once(self, detector):
        first, second = [], []
        detector.on_shake(lambda: first.append(1))
        detector.on_shake(lambda: second.append(1))
        detector.handle_sample(*HARD)
        assert first == [1] and second == [1]

    def test_unsubscribe(self, detector):
        events = []
        unsubscribe = detector.on_shake(lambda: events.append(1))
        unsubscribe()
        detector.handle_sample(*HARD)
        assert events == []

    def test_failing_consumer_does_not_block_others(self, detector):
        events = []

        def boom():
            raise RuntimeError("consumer bug")

        detector.on_shake(boom)
        detector.on_shake(lambda: events.append(1))
        assert detector.handle_sample(*HARD)
        assert events == [1]

    def test_disabled_detector_drops_samples(self, detector, shakes):
        detector.disable()
        assert not detector.handle_sample(*HARD)
        assert shakes == []
        assert len(detector.magnitudes) == 0

    def test_samples_dropped_while_activation_in_progress(self, session, detector, shakes):
        session.transition(ActivationState.COUNTING, 3)
        assert not detector.handle_sample(*HARD)
        session.transition(ActivationState.IDLE, 0)
        assert detector.handle_sample(*HARD)
        assert len(shakes) == 1


@pytest.mark.asyncio
class TestMotionPermission:

    async def test_granted(self, session):
        detector = MotionSignalDetector(session, DeviceMotionPermission(granted=True))
        assert await detector.request_motion_permission()
        assert detector.permission == PermissionState.GRANTED
        detector.enable()
        assert detector.enabled

    async def test_denied_keeps_detector_disabled(self, session):
        detector = MotionSignalDetector(session, DeviceMotionPermission(granted=False), threshold=15.0)
        detector.enable()
        assert not await detector.request_motion_permission()
        assert detector.permission == PermissionState.DENIED
        assert not detector.enabled

        detector.enable()
        assert not detector.enabled
        assert not detector.handle_sample(*HARD)

    async def test_backend_error_counts_as_denied(self, session):
        detector = MotionSignalDetector(session, BrokenPermission())
        assert not await detector.request_motion_permission()
        assert detector.permission == PermissionState.DENIED

    async def test_regranting_allows_enable(self, session):
        backend = DeviceMotionPermission(granted=False)
        detector = MotionSignalDetector(session, backend)
        await detector.request_motion_permission()
        backend.report_permission(True)
        await detector.request_motion_permission()
        detector.enable()
        assert detector.enabled
