"""Control plane: hand tracking session -> knob rotation notifications."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from ..config import KnobConfig
from .channel import UpdateChannel
from .emitter import RotationCallback, RotationEmitter
from .errors import UnsupportedCapability
from .hand_provider import HandTrackingProvider
from .state_machine import StateSnapshot, TrackingStateMachine

logger = logging.getLogger(__name__)


class KnobController:
    """Runs one consumer thread that feeds provider updates to the state machine.

    start()/stop() must be called from a single thread. All pipeline state is
    mutated on the consumer thread only; stop() resets it after joining.
    """

    def __init__(
        self,
        provider: HandTrackingProvider,
        config: KnobConfig | None = None,
        channel_capacity: int = 256,
        poll_s: float = 0.05,
    ):
        self.provider = provider
        self.config = config or KnobConfig()
        self.emitter = RotationEmitter()
        self.machine = TrackingStateMachine(self.config, emitter=self.emitter)
        self.channel = UpdateChannel(channel_capacity)
        self.poll_s = float(max(0.001, poll_s))

        self._stop_event = threading.Event()
        self._worker: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def subscribe(self, callback: RotationCallback) -> Callable[[], None]:
        return self.emitter.subscribe(callback)

    def snapshot(self) -> StateSnapshot:
        return self.machine.snapshot()

    def start(self) -> bool:
        if self._worker is not None:
            logger.warning("[HAND] controller already started")
            return False

        try:
            if not self.provider.is_supported():
                raise UnsupportedCapability(
                    f"hand tracking is not supported by provider={self.provider.name}"
                )
            self._stop_event = threading.Event()
            self.provider.start(self.channel)
        except UnsupportedCapability as exc:
            logger.warning("[HAND] %s", exc)
            return False
        except Exception:
            logger.exception("[HAND] failed to start hand tracking (provider=%s)", self.provider.name)
            self.provider.stop()
            self.machine.reset()
            return False

        self._worker = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="handknob-consumer",
            daemon=True,
        )
        self._worker.start()
        logger.info("[HAND] hand tracking started (provider=%s)", self.provider.name)
        return True

    def stop(self) -> None:
        self._stop_event.set()
        self.provider.stop()

        worker = self._worker
        self._worker = None
        if worker is not None and worker is not threading.current_thread():
            worker.join()
            logger.info("[HAND] hand tracking stopped (provider=%s)", self.provider.name)

        self.channel.drain()
        self.machine.reset()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            update = self.channel.get(timeout=self.poll_s)
            if update is None or stop_event.is_set():
                continue
            try:
                self.machine.handle(update)
            except Exception:
                logger.exception("[KNOB] failed to process hand update")
