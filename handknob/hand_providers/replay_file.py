"""Replay provider for JSON-lines hand anchor recordings."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from ..control.channel import UpdateChannel
from ..control.errors import SessionStartFailure
from ..control.hand import HandUpdate
from ..control.hand_provider import HandTrackingProvider
from .records import _parse_update_line

logger = logging.getLogger(__name__)


def load_recording(path: str) -> list[HandUpdate]:
    """Read and parse a recording; malformed lines are skipped with a warning."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise SessionStartFailure(f"cannot read hand recording {p}: {exc}") from exc

    updates: list[HandUpdate] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        update = _parse_update_line(line)
        if update is None:
            logger.warning("[HAND] %s:%d: skipping malformed hand record", p, lineno)
            continue
        updates.append(update)
    return updates


class ReplayHandTrackingProvider(HandTrackingProvider):
    """Publishes recorded hand updates at a fixed rate (0 = unpaced)."""

    name = "replay"

    def __init__(self, path: str, rate_hz: float = 90.0, loop: bool = False):
        self.path = str(path)
        self.rate_hz = float(max(0.0, rate_hz))
        self.loop = bool(loop)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._updates: list[HandUpdate] = []

    def start(self, channel: UpdateChannel) -> None:
        # Preload into RAM so pacing is not disturbed by file I/O.
        self._updates = load_recording(self.path)
        logger.info(
            "[HAND] provider=replay (path=%s, updates=%d, rate_hz=%.1f, loop=%s)",
            self.path,
            len(self._updates),
            self.rate_hz,
            self.loop,
        )
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(channel, self._stop_event),
            name="handknob-replay",
            daemon=True,
        )
        self._thread.start()

    def _run(self, channel: UpdateChannel, stop_event: threading.Event) -> None:
        period = (1.0 / self.rate_hz) if self.rate_hz > 0.0 else 0.0
        while not stop_event.is_set():
            for update in self._updates:
                if not channel.publish(update, stop_event):
                    return
                if period > 0.0 and stop_event.wait(period):
                    return
            if not self.loop or not self._updates:
                break
        logger.info("[HAND] replay finished (%s)", self.path)

    def is_exhausted(self) -> bool:
        thread = self._thread
        return thread is not None and not thread.is_alive() and not self._stop_event.is_set()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join()
