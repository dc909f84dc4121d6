import threading

from handknob.control.channel import UpdateChannel
from handknob.control.emitter import RotationEmitter
from handknob.control.hand import AnchorEvent, Chirality, HandUpdate, bare_anchor


def _update() -> HandUpdate:
    return HandUpdate(AnchorEvent.ADDED, bare_anchor(Chirality.LEFT))


def test_emitter_fans_out_in_subscription_order():
    emitter = RotationEmitter()
    calls = []
    emitter.subscribe(lambda v: calls.append(("a", v)))
    emitter.subscribe(lambda v: calls.append(("b", v)))
    emitter.emit(0.25)
    assert calls == [("a", 0.25), ("b", 0.25)]


def test_emitter_unsubscribe_is_idempotent():
    emitter = RotationEmitter()
    calls = []
    unsubscribe = emitter.subscribe(calls.append)
    unsubscribe()
    unsubscribe()
    emitter.emit(0.5)
    assert calls == []
    assert len(emitter) == 0


def test_failing_subscriber_does_not_block_others(caplog):
    emitter = RotationEmitter()
    calls = []

    def broken(value):
        raise RuntimeError("boom")

    emitter.subscribe(broken)
    emitter.subscribe(calls.append)
    emitter.emit(0.75)
    assert calls == [0.75]
    assert "rotation subscriber" in caplog.text


def test_channel_is_fifo():
    channel = UpdateChannel(capacity=4)
    a, b = _update(), _update()
    assert channel.put(a)
    assert channel.put(b)
    assert channel.get(timeout=0.1) is a
    assert channel.get(timeout=0.1) is b
    assert channel.get(timeout=0.01) is None


def test_channel_applies_backpressure_when_full():
    channel = UpdateChannel(capacity=1)
    assert channel.put(_update(), timeout=0.01)
    assert not channel.put(_update(), timeout=0.01)
    assert len(channel) == 1


def test_publish_gives_up_when_cancelled():
    channel = UpdateChannel(capacity=1)
    channel.put(_update())
    cancel = threading.Event()
    cancel.set()
    assert channel.publish(_update(), cancel) is False


def test_drain_discards_pending_updates():
    channel = UpdateChannel(capacity=8)
    for _ in range(3):
        channel.put(_update())
    assert channel.drain() == 3
    assert len(channel) == 0
