"""Hand tracking provider implementations.

The MediaPipe provider is imported lazily by the app since it needs the
optional camera dependencies.
"""

from .replay_file import ReplayHandTrackingProvider
from .udp_bridge import UdpBridgeHandTrackingProvider

__all__ = [
    "ReplayHandTrackingProvider",
    "UdpBridgeHandTrackingProvider",
]
