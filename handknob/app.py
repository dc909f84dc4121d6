"""
Hand knob demo:
- Hand anchors from a UDP bridge, a JSON-lines replay or a MediaPipe webcam
- Left-hand wrist -> thumb knuckle heading drives a knob value in [0, 1]
- Triangular smoothing + minimum-delta gate before notifying subscribers
- Display provider (tui/none) renders the value as knob degrees

Deps:
  pip install numpy pyyaml
  pip install opencv-python mediapipe   (only for --hand-provider mediapipe)
"""

from __future__ import annotations

import logging
import time

from .config import AppConfig, parse_args
from .control.controller import KnobController
from .control.display_provider import (
    DisplayProvider,
    NullDisplayProvider,
    RotationLatch,
    TuiDisplayProvider,
)
from .control.hand_provider import HandTrackingProvider, NullHandTrackingProvider
from .hand_providers.replay_file import ReplayHandTrackingProvider
from .hand_providers.udp_bridge import UdpBridgeHandTrackingProvider

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_hand_provider(cfg: AppConfig) -> HandTrackingProvider:
    if cfg.hand_provider == "udp":
        return UdpBridgeHandTrackingProvider(host=cfg.udp_host, port=cfg.udp_port)
    if cfg.hand_provider == "replay":
        return ReplayHandTrackingProvider(
            cfg.replay_path, rate_hz=cfg.replay_rate_hz, loop=cfg.loop
        )
    if cfg.hand_provider == "none":
        return NullHandTrackingProvider()
    if cfg.hand_provider == "mediapipe":
        try:
            from .hand_providers.mediapipe_hands import MediaPipeHandTrackingProvider
        except ImportError:
            logger.exception("[HAND] mediapipe provider requires opencv-python and mediapipe")
            return NullHandTrackingProvider()
        return MediaPipeHandTrackingProvider(
            camera_index=cfg.camera_index,
            camera_width=cfg.camera_width,
            camera_height=cfg.camera_height,
            mirror=cfg.camera_mirror,
            task_model_path=cfg.mp_task_model,
            task_model_url=cfg.mp_task_url,
        )
    raise RuntimeError(f"Unsupported hand provider: {cfg.hand_provider}")


def build_display_provider(cfg: AppConfig) -> DisplayProvider:
    if cfg.display_provider == "tui":
        return TuiDisplayProvider(
            tracked_chirality=cfg.tracked_chirality,
            cli_output=cfg.cli_output,
        )
    if cfg.display_provider == "none":
        return NullDisplayProvider()
    raise RuntimeError(f"Unsupported display provider: {cfg.display_provider}")


def run_display_loop(
    controller: KnobController,
    latch: RotationLatch,
    display_provider: DisplayProvider,
    display_hz: float,
) -> None:
    """Render the latest rotation until the source is exhausted."""
    interval = (1.0 / display_hz) if display_hz > 0.0 else 0.1
    shown_version = -1
    while controller.is_running:
        value, version = latch.read()
        if display_hz > 0.0 and version != shown_version:
            display_provider.update(value)
            shown_version = version
        if controller.provider.is_exhausted() and len(controller.channel) == 0:
            break
        time.sleep(interval)

    # Join the consumer so its last emission reaches the latch.
    controller.stop()
    value, version = latch.read()
    if display_hz > 0.0 and version != shown_version:
        display_provider.update(value)


def main(argv=None):
    cfg = parse_args(argv)
    configure_logging(cfg.log_level)
    logger.info(
        "[CONFIG] start=%.1fdeg end=%.1fdeg hand=%s window=%d min_change=%.4f",
        cfg.start_angle,
        cfg.end_angle,
        cfg.tracked_chirality,
        cfg.smoothing_window,
        cfg.min_change_threshold,
    )

    provider = build_hand_provider(cfg)
    display_provider = build_display_provider(cfg)
    controller = KnobController(
        provider,
        config=cfg.knob(),
        channel_capacity=cfg.channel_capacity,
    )
    latch = RotationLatch()
    controller.subscribe(latch)

    if not controller.start():
        display_provider.close()
        return 1

    try:
        run_display_loop(controller, latch, display_provider, cfg.display_hz)
    except KeyboardInterrupt:
        logger.info("[HAND] interrupted")
    finally:
        controller.stop()
        display_provider.close()
    return 0
