"""Display providers for rendering the knob rotation."""

from __future__ import annotations

import logging
import sys
import threading

from .rotation_mapper import clamp01, rotation_to_degrees

logger = logging.getLogger(__name__)

_GAUGE_CELLS = 24


class RotationLatch:
    """Subscriber that keeps the most recent rotation for a slower reader."""

    def __init__(self, initial: float = 0.0):
        self._lock = threading.Lock()
        self._value = float(initial)
        self._version = 0

    def __call__(self, value: float) -> None:
        with self._lock:
            self._value = float(value)
            self._version += 1

    def read(self) -> tuple[float, int]:
        with self._lock:
            return self._value, self._version


def gauge(value: float, cells: int = _GAUGE_CELLS) -> str:
    filled = int(round(clamp01(value) * cells))
    return "[" + "#" * filled + "-" * (cells - filled) + "]"


def status_lines(value: float, tracked_chirality: str) -> list[str]:
    return [
        "Knob Rotation",
        f"{int(rotation_to_degrees(value)):>3d} degrees",
        f"{gauge(value)} {clamp01(value):.3f}",
        f"tracked hand   = {tracked_chirality}",
    ]


class DisplayProvider:
    """Base display provider interface."""

    def update(self, value: float) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class NullDisplayProvider(DisplayProvider):
    def update(self, value: float) -> None:
        pass


class _CliStatsSink:
    def __init__(self, mode: str):
        self.mode = "live" if mode == "live" else "scroll"
        self._is_tty = bool(getattr(sys.stderr, "isatty", lambda: False)())
        self._live_enabled = self.mode == "live" and self._is_tty
        self._line_count = 0

    def emit(self, lines: list[str], scroll_line: str) -> None:
        if not self._live_enabled:
            logger.info(scroll_line)
            return

        out = sys.stderr
        if self._line_count > 0:
            out.write(f"\x1b[{self._line_count}F")

        max_lines = max(self._line_count, len(lines))
        for i in range(max_lines):
            line = lines[i] if i < len(lines) else ""
            out.write("\x1b[2K")
            out.write(line)
            out.write("\n")
        out.flush()
        self._line_count = len(lines)


class TuiDisplayProvider(DisplayProvider):
    """Terminal knob gauge display provider."""

    def __init__(self, tracked_chirality: str = "left", cli_output: str = "live"):
        self.tracked_chirality = tracked_chirality
        self.cli_sink = _CliStatsSink(cli_output)

    def update(self, value: float) -> None:
        self.cli_sink.emit(
            lines=status_lines(value, self.tracked_chirality),
            scroll_line="[DISPLAY] rotation=%.3f (%d deg) %s"
            % (clamp01(value), int(rotation_to_degrees(value)), gauge(value)),
        )
