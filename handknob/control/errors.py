"""Hand tracking error taxonomy.

None of these are fatal for the caller: the controller logs them and degrades
to "no output produced". A missing joint on a single update is not an error;
it reads as ``None`` from ``control.angle`` and the update is skipped.
"""


class HandTrackingError(Exception):
    """Base class for hand tracking failures."""


class UnsupportedCapability(HandTrackingError):
    """The host cannot perform hand tracking at all."""


class SessionStartFailure(HandTrackingError):
    """The underlying tracking session failed to initialize."""
