import math
import threading
import time

import numpy as np
import pytest

from handknob.config import KnobConfig
from handknob.control.channel import UpdateChannel
from handknob.control.controller import KnobController
from handknob.control.errors import SessionStartFailure
from handknob.control.hand import AnchorEvent, Chirality, HandAnchor, HandUpdate, bare_anchor
from handknob.control.hand_provider import HandTrackingProvider, NullHandTrackingProvider
from handknob.math3d.transforms import identity_transform, make_transform


def _updated(angle_deg: float) -> HandUpdate:
    a = math.radians(angle_deg)
    thumb = np.array([0.05 * math.sin(a), 0.05 * math.cos(a), 0.0], dtype=np.float64)
    return HandUpdate(
        AnchorEvent.UPDATED,
        HandAnchor(
            chirality=Chirality.LEFT,
            origin_from_anchor=identity_transform(),
            joints={
                "wrist": identity_transform(),
                "thumbKnuckle": make_transform(np.eye(3), thumb),
            },
        ),
    )


def _lifecycle(event: AnchorEvent) -> HandUpdate:
    return HandUpdate(event, bare_anchor(Chirality.LEFT))


class _ListProvider(HandTrackingProvider):
    name = "list"

    def __init__(self, updates=(), fail: bool = False):
        self.updates = list(updates)
        self.fail = fail
        self.channel = None
        self.stop_calls = 0

    def start(self, channel: UpdateChannel) -> None:
        if self.fail:
            raise SessionStartFailure("device busy")
        self.channel = channel
        for update in self.updates:
            channel.put(update)

    def stop(self) -> None:
        self.stop_calls += 1


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_unsupported_provider_start_is_noop(caplog):
    controller = KnobController(NullHandTrackingProvider())
    assert controller.start() is False
    assert controller.is_running is False
    assert "not supported" in caplog.text


def test_session_start_failure_leaves_controller_idle(caplog):
    provider = _ListProvider(fail=True)
    controller = KnobController(provider)
    assert controller.start() is False
    assert controller.is_running is False
    assert provider.stop_calls == 1
    assert "failed to start hand tracking" in caplog.text
    assert controller.snapshot().is_tracking is False


def test_worker_processes_updates_in_order():
    provider = _ListProvider(
        [
            _lifecycle(AnchorEvent.ADDED),
            _updated(61.0),
            _lifecycle(AnchorEvent.REMOVED),
        ]
    )
    controller = KnobController(provider, poll_s=0.01)
    emitted = []
    controller.subscribe(emitted.append)

    assert controller.start() is True
    assert _wait_for(lambda: len(emitted) == 3)
    controller.stop()

    assert emitted == [0.0, pytest.approx(0.5), 0.0]
    assert controller.is_running is False


def test_stop_resets_state_and_stops_processing():
    provider = _ListProvider([_lifecycle(AnchorEvent.ADDED), _updated(40.0)])
    controller = KnobController(provider, poll_s=0.01)
    emitted = []
    controller.subscribe(emitted.append)
    controller.start()
    assert _wait_for(lambda: len(emitted) == 2)

    controller.stop()
    snap = controller.snapshot()
    assert snap.is_tracking is False
    assert snap.window == ()
    assert snap.previous_angle is None
    assert snap.last_emitted_value == 0.0
    assert provider.stop_calls == 1

    provider.channel.put(_lifecycle(AnchorEvent.ADDED))
    time.sleep(0.1)
    assert len(emitted) == 2


def test_stop_is_safe_before_start_and_when_repeated():
    controller = KnobController(_ListProvider())
    controller.stop()
    controller.start()
    controller.stop()
    controller.stop()
    assert controller.is_running is False


def test_second_start_is_rejected_while_running():
    controller = KnobController(_ListProvider(), poll_s=0.01)
    assert controller.start() is True
    assert controller.start() is False
    controller.stop()


def test_controller_can_restart_after_stop():
    provider = _ListProvider([_lifecycle(AnchorEvent.ADDED)])
    controller = KnobController(provider, poll_s=0.01)
    emitted = []
    controller.subscribe(emitted.append)
    controller.start()
    assert _wait_for(lambda: len(emitted) == 1)
    controller.stop()

    controller.start()
    assert _wait_for(lambda: len(emitted) == 2)
    controller.stop()


def test_subscriber_may_stop_controller_from_worker_thread():
    provider = _ListProvider(
        [_lifecycle(AnchorEvent.ADDED), _updated(32.0), _updated(61.0)]
    )
    controller = KnobController(provider, poll_s=0.01)
    emitted = []
    stopped = threading.Event()

    def on_value(value):
        emitted.append(value)
        controller.stop()
        stopped.set()

    controller.subscribe(on_value)
    controller.start()
    assert stopped.wait(2.0)
    time.sleep(0.1)

    assert emitted == [0.0]
    assert controller.snapshot().is_tracking is False


def test_controller_uses_knob_config():
    provider = _ListProvider([_lifecycle(AnchorEvent.ADDED), _updated(90.0)])
    controller = KnobController(
        provider,
        config=KnobConfig(start_angle=120.0, end_angle=60.0),
        poll_s=0.01,
    )
    emitted = []
    controller.subscribe(emitted.append)
    controller.start()
    assert _wait_for(lambda: len(emitted) == 2)
    controller.stop()
    assert emitted[-1] == pytest.approx(0.5)


class _RaisingProvider(HandTrackingProvider):
    name = "raising"

    def __init__(self):
        self.stop_calls = 0

    def start(self, channel: UpdateChannel) -> None:
        raise OSError("device busy")

    def stop(self) -> None:
        self.stop_calls += 1


def test_unexpected_start_error_is_logged_not_raised(caplog):
    provider = _RaisingProvider()
    controller = KnobController(provider)
    assert controller.start() is False
    assert controller.is_running is False
    assert provider.stop_calls == 1
    assert "device busy" in caplog.text
    assert controller.snapshot().is_tracking is False


def test_worker_survives_malformed_update(caplog):
    malformed = HandUpdate(
        AnchorEvent.UPDATED,
        HandAnchor(
            chirality=Chirality.LEFT,
            origin_from_anchor=identity_transform(),
            joints={"wrist": np.eye(3), "thumbKnuckle": np.eye(3)},
        ),
    )
    provider = _ListProvider([malformed, _lifecycle(AnchorEvent.ADDED), _updated(61.0)])
    controller = KnobController(provider, poll_s=0.01)
    emitted = []
    controller.subscribe(emitted.append)

    assert controller.start() is True
    assert _wait_for(lambda: len(emitted) == 2)
    assert controller.is_running is True
    controller.stop()

    assert emitted == [0.0, pytest.approx(0.5)]
    assert "failed to process hand update" in caplog.text
