"""Hand tracking provider interface."""

from __future__ import annotations

from .channel import UpdateChannel


class HandTrackingProvider:
    """Base interface for hand anchor sources.

    A provider owns the external session (file, socket, camera) and publishes
    HandUpdate events into the channel it is started with, usually from its
    own producer thread.
    """

    name: str = "base"

    def is_supported(self) -> bool:
        """Whether this host can produce hand anchors at all."""
        return True

    def start(self, channel: UpdateChannel) -> None:
        """Open the session and begin publishing.

        Raises SessionStartFailure when the session cannot be established.
        """
        raise NotImplementedError

    def is_exhausted(self) -> bool:
        """Whether the source will never publish another update."""
        return False

    def stop(self) -> None:
        pass


class NullHandTrackingProvider(HandTrackingProvider):
    """Host without hand tracking; never produces updates."""

    name = "none"

    def is_supported(self) -> bool:
        return False

    def start(self, channel: UpdateChannel) -> None:  # noqa: ARG002
        return None
