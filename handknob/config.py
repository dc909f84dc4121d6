"""CLI config and defaults."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

CHIRALITIES = ("left", "right")
HAND_PROVIDERS = ("udp", "replay", "mediapipe", "none")


@dataclass(frozen=True)
class KnobConfig:
    """Rotation pipeline constants."""

    start_angle: float = 90.0
    end_angle: float = 32.0
    tracked_chirality: str = "left"
    smoothing_window: int = 5
    min_change_threshold: float = 0.005


@dataclass(frozen=True)
class AppConfig:
    start_angle: float = 90.0
    end_angle: float = 32.0
    tracked_chirality: str = "left"
    smoothing_window: int = 5
    min_change_threshold: float = 0.005
    hand_provider: str = "udp"
    replay_path: str = ""
    replay_rate_hz: float = 90.0
    loop: bool = False
    udp_host: str = "127.0.0.1"
    udp_port: int = 24568
    camera_index: int = 0
    camera_width: int = 1280
    camera_height: int = 720
    camera_mirror: bool = True
    mp_task_model: str = "assets/models/hand_landmarker.task"
    mp_task_url: str = (
        "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
        "hand_landmarker/float16/latest/hand_landmarker.task"
    )
    channel_capacity: int = 256
    log_level: str = "info"
    display_provider: str = "tui"
    display_hz: float = 30.0
    cli_output: str = "live"

    def knob(self) -> KnobConfig:
        return KnobConfig(
            start_angle=self.start_angle,
            end_angle=self.end_angle,
            tracked_chirality=self.tracked_chirality,
            smoothing_window=self.smoothing_window,
            min_change_threshold=self.min_change_threshold,
        )


_APP_CONFIG_FIELDS = {f.name for f in fields(AppConfig)}
_BOOL_FIELDS = {
    "loop",
    "camera_mirror",
}
_INT_FIELDS = {
    "smoothing_window",
    "udp_port",
    "camera_index",
    "camera_width",
    "camera_height",
    "channel_capacity",
}
_FLOAT_FIELDS = {
    "start_angle",
    "end_angle",
    "min_change_threshold",
    "replay_rate_hz",
    "display_hz",
}
_STRING_FIELDS = {
    "tracked_chirality",
    "hand_provider",
    "replay_path",
    "udp_host",
    "mp_task_model",
    "mp_task_url",
    "log_level",
    "display_provider",
    "cli_output",
}
_KEY_ALIASES = {
    "no_camera_mirror": "camera_mirror",
    "replay": "replay_path",
}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"1", "true", "yes", "on"}:
            return True
        if s in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"config key '{key}' expects a bool, got {value!r}")


def _coerce_config_value(key: str, value: Any) -> Any:
    try:
        if key in _BOOL_FIELDS:
            return _parse_bool(value, key)
        if key in _INT_FIELDS:
            return int(value)
        if key in _FLOAT_FIELDS:
            return float(value)
        if key in _STRING_FIELDS:
            return "" if value is None else str(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid value for config key '{key}': {value!r}") from exc
    raise ValueError(f"unsupported config key '{key}'")


def _normalize_config_key(raw_key: Any) -> str:
    if not isinstance(raw_key, str):
        raise ValueError(f"config key must be string, got {type(raw_key).__name__}")
    key = raw_key.strip().replace("-", "_")
    if not key:
        raise ValueError("config key cannot be empty")
    return _KEY_ALIASES.get(key, key)


def _load_yaml_config(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ValueError(f"--config file not found: {p}")
    if not p.is_file():
        raise ValueError(f"--config must point to a file: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"failed to read --config file {p}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse YAML config {p}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"--config root must be a mapping/object, got {type(loaded).__name__}")

    normalized: dict[str, Any] = {}
    for raw_key, raw_value in loaded.items():
        key = _normalize_config_key(raw_key)
        if key not in _APP_CONFIG_FIELDS:
            raise ValueError(f"unknown config key in {p}: {raw_key!r}")
        normalized[key] = _coerce_config_value(key, raw_value)
    return normalized


def _yaml_defaults_to_argparse_defaults(cfg: dict[str, Any]) -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for key, value in cfg.items():
        if key == "camera_mirror":
            defaults["no_camera_mirror"] = not bool(value)
        else:
            defaults[key] = value
    return defaults


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="handknob",
        description="Turn a tracked hand into a smoothed knob rotation value in [0, 1].",
    )
    ap.add_argument(
        "--config",
        type=str,
        default="",
        help="YAML config file path. CLI args override YAML values.",
    )

    ap.add_argument(
        "--start-angle",
        type=float,
        default=90.0,
        help="Heading angle (deg) mapped to rotation 0.0.",
    )
    ap.add_argument(
        "--end-angle",
        type=float,
        default=32.0,
        help="Heading angle (deg) mapped to rotation 1.0.",
    )
    ap.add_argument(
        "--tracked-chirality",
        choices=list(CHIRALITIES),
        default="left",
        help="Which hand drives the knob.",
    )
    ap.add_argument(
        "--smoothing-window",
        type=int,
        default=5,
        help="Number of recent values in the weighted moving average.",
    )
    ap.add_argument(
        "--min-change-threshold",
        type=float,
        default=0.005,
        help="Minimum smoothed delta before a new value is emitted.",
    )

    ap.add_argument(
        "--hand-provider",
        choices=list(HAND_PROVIDERS),
        default="udp",
        help="Hand anchor source: UDP JSON bridge, JSON-lines replay, webcam MediaPipe, or none.",
    )
    ap.add_argument(
        "--replay-path",
        "--replay",
        dest="replay_path",
        type=str,
        default="",
        help="JSON-lines recording for --hand-provider replay.",
    )
    ap.add_argument(
        "--replay-rate-hz",
        type=float,
        default=90.0,
        help="Replay pacing in updates per second (0 = as fast as possible).",
    )
    ap.add_argument("--loop", action="store_true", help="Loop the replay file.")
    ap.add_argument(
        "--udp-host",
        type=str,
        default="127.0.0.1",
        help="Host for the UDP hand anchor bridge.",
    )
    ap.add_argument(
        "--udp-port",
        type=int,
        default=24568,
        help="Port for the UDP hand anchor bridge.",
    )
    ap.add_argument(
        "--camera-index",
        type=int,
        default=0,
        help="OpenCV camera index for --hand-provider mediapipe.",
    )
    ap.add_argument(
        "--camera-width",
        type=int,
        default=1280,
        help="Requested camera frame width.",
    )
    ap.add_argument(
        "--camera-height",
        type=int,
        default=720,
        help="Requested camera frame height.",
    )
    ap.add_argument(
        "--no-camera-mirror",
        action="store_true",
        help="Do not mirror webcam frames (affects reported handedness).",
    )
    ap.add_argument(
        "--mp-task-model",
        type=str,
        default="assets/models/hand_landmarker.task",
        help="Path to MediaPipe HandLandmarker .task model.",
    )
    ap.add_argument(
        "--mp-task-url",
        type=str,
        default=(
            "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
            "hand_landmarker/float16/latest/hand_landmarker.task"
        ),
        help="Download URL for .task model when local file is missing.",
    )
    ap.add_argument(
        "--channel-capacity",
        type=int,
        default=256,
        help="Max pending hand updates before the provider blocks.",
    )
    ap.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Global log level.",
    )
    ap.add_argument(
        "--display-provider",
        choices=["tui", "none"],
        default="tui",
        help="Display provider: terminal knob gauge or nothing.",
    )
    ap.add_argument(
        "--display-hz",
        type=float,
        default=30.0,
        help="Display refresh rate in Hz (0 disables display updates).",
    )
    ap.add_argument(
        "--cli-output",
        choices=["live", "scroll"],
        default="live",
        help="TUI output mode: in-place live panel or scrolling logs.",
    )

    return ap


def validate_knob_config(cfg: KnobConfig | AppConfig) -> None:
    if not (0.0 <= cfg.end_angle < 360.0):
        raise ValueError(f"--end-angle must be in [0,360), got {cfg.end_angle}")
    if not (0.0 <= cfg.start_angle < 360.0):
        raise ValueError(f"--start-angle must be in [0,360), got {cfg.start_angle}")
    if cfg.start_angle <= cfg.end_angle:
        raise ValueError(
            f"--start-angle must be > --end-angle, got {cfg.start_angle} <= {cfg.end_angle}"
        )
    if cfg.tracked_chirality not in CHIRALITIES:
        raise ValueError(
            f"--tracked-chirality must be left|right, got {cfg.tracked_chirality}"
        )
    if cfg.smoothing_window < 1:
        raise ValueError(f"--smoothing-window must be >= 1, got {cfg.smoothing_window}")
    if cfg.min_change_threshold < 0.0:
        raise ValueError(
            f"--min-change-threshold must be >= 0, got {cfg.min_change_threshold}"
        )


def validate_config(cfg: AppConfig) -> None:
    validate_knob_config(cfg)
    if cfg.hand_provider not in HAND_PROVIDERS:
        raise ValueError(
            f"--hand-provider must be one of udp|replay|mediapipe|none, got {cfg.hand_provider}"
        )
    if cfg.hand_provider == "replay" and not cfg.replay_path.strip():
        raise ValueError("--replay-path must be provided for --hand-provider replay")
    if cfg.replay_rate_hz < 0.0:
        raise ValueError(f"--replay-rate-hz must be >= 0, got {cfg.replay_rate_hz}")
    if not cfg.udp_host.strip():
        raise ValueError("--udp-host must be non-empty")
    if not (1 <= cfg.udp_port <= 65535):
        raise ValueError(f"--udp-port must be in [1,65535], got {cfg.udp_port}")
    if cfg.camera_index < 0:
        raise ValueError(f"--camera-index must be >= 0, got {cfg.camera_index}")
    if cfg.camera_width < 0:
        raise ValueError(f"--camera-width must be >= 0, got {cfg.camera_width}")
    if cfg.camera_height < 0:
        raise ValueError(f"--camera-height must be >= 0, got {cfg.camera_height}")
    if cfg.channel_capacity < 1:
        raise ValueError(f"--channel-capacity must be >= 1, got {cfg.channel_capacity}")
    if cfg.display_provider not in {"tui", "none"}:
        raise ValueError(
            f"--display-provider must be one of tui|none, got {cfg.display_provider}"
        )
    if cfg.display_hz < 0.0:
        raise ValueError(f"--display-hz must be >= 0, got {cfg.display_hz}")
    if cfg.cli_output not in {"live", "scroll"}:
        raise ValueError(f"--cli-output must be live|scroll, got {cfg.cli_output}")


def parse_args(argv=None) -> AppConfig:
    bootstrap = argparse.ArgumentParser(add_help=False)
    bootstrap.add_argument("--config", type=str, default="")
    bootstrap_ns, _ = bootstrap.parse_known_args(argv)

    yaml_cfg: dict[str, Any] = {}
    yaml_error: Optional[str] = None
    if bootstrap_ns.config:
        try:
            yaml_cfg = _load_yaml_config(bootstrap_ns.config)
        except ValueError as exc:
            yaml_error = str(exc)

    ap = build_arg_parser()
    if yaml_error is not None:
        ap.error(yaml_error)
    if yaml_cfg:
        ap.set_defaults(**_yaml_defaults_to_argparse_defaults(yaml_cfg))
    args = ap.parse_args(argv)

    cfg = AppConfig(
        start_angle=args.start_angle,
        end_angle=args.end_angle,
        tracked_chirality=args.tracked_chirality,
        smoothing_window=args.smoothing_window,
        min_change_threshold=args.min_change_threshold,
        hand_provider=args.hand_provider,
        replay_path=args.replay_path,
        replay_rate_hz=float(args.replay_rate_hz),
        loop=args.loop,
        udp_host=args.udp_host,
        udp_port=args.udp_port,
        camera_index=args.camera_index,
        camera_width=args.camera_width,
        camera_height=args.camera_height,
        camera_mirror=not args.no_camera_mirror,
        mp_task_model=args.mp_task_model,
        mp_task_url=args.mp_task_url,
        channel_capacity=args.channel_capacity,
        log_level=args.log_level,
        display_provider=args.display_provider,
        display_hz=float(args.display_hz),
        cli_output=args.cli_output,
    )
    try:
        validate_config(cfg)
    except ValueError as exc:
        ap.error(str(exc))
    return cfg
