"""MediaPipe webcam hand anchor provider."""

from __future__ import annotations

import logging
import os
import threading
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional

import cv2
import mediapipe as mp

from ..control.channel import UpdateChannel
from ..control.errors import SessionStartFailure
from ..control.hand import Chirality, HandAnchor
from ..control.hand_provider import HandTrackingProvider
from .landmarks import HandPresenceTracker, landmarks_to_anchor, resolve_chirality

logger = logging.getLogger(__name__)


def _ensure_task_model(task_model_path: str, task_model_url: str) -> Path:
    path = Path(task_model_path)
    if path.exists():
        return path

    if not task_model_url:
        raise RuntimeError(
            f"MediaPipe .task model missing: {path}. Set --mp-task-url or provide local --mp-task-model."
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".download")
    logger.info("[HAND] downloading MediaPipe task model -> %s", path)
    try:
        urllib.request.urlretrieve(task_model_url, tmp_path)
    except (OSError, urllib.error.URLError, ValueError) as exc:
        try:
            if tmp_path.exists():
                tmp_path.unlink()
        except OSError:
            pass
        raise RuntimeError(
            f"Failed to download MediaPipe task model from {task_model_url}: {exc}"
        ) from exc
    os.replace(tmp_path, path)
    return path


class MediaPipeHandTrackingProvider(HandTrackingProvider):
    """
    Webcam-based hand anchor provider.

    Uses MediaPipe HandLandmarker world landmarks (meters, hand-centred) and
    exposes each detected hand as an anchor whose joints are the 21 landmarks.
    Presence changes between frames become added / removed events.
    """

    name = "mediapipe"

    def __init__(
        self,
        camera_index: int = 0,
        camera_width: int = 1280,
        camera_height: int = 720,
        mirror: bool = True,
        task_model_path: str = "assets/models/hand_landmarker.task",
        task_model_url: str = "",
    ):
        self.camera_index = int(camera_index)
        self.camera_width = int(camera_width)
        self.camera_height = int(camera_height)
        self.mirror = bool(mirror)
        self.task_model_path = str(task_model_path)
        self.task_model_url = str(task_model_url)

        self.cap = None
        self._landmarker = None
        self._presence = HandPresenceTracker()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._video_ts_ms = 0
        self._t0 = time.monotonic()

    def _open(self) -> None:
        self.cap = cv2.VideoCapture(self.camera_index, cv2.CAP_DSHOW)
        if not self.cap.isOpened():
            self.cap.release()
            self.cap = cv2.VideoCapture(self.camera_index)
        if not self.cap.isOpened():
            raise RuntimeError(f"Cannot open webcam index {self.camera_index}")

        if self.camera_width > 0:
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.camera_width)
        if self.camera_height > 0:
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.camera_height)

        model_path = _ensure_task_model(self.task_model_path, self.task_model_url)

        try:
            BaseOptions = mp.tasks.BaseOptions
            HandLandmarker = mp.tasks.vision.HandLandmarker
            HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
            RunningMode = mp.tasks.vision.RunningMode
        except (AttributeError, ImportError) as exc:
            raise RuntimeError(
                "mediapipe.tasks is unavailable. Please upgrade mediapipe (>=0.10)."
            ) from exc
        options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(model_path)),
            running_mode=RunningMode.VIDEO,
            num_hands=2,
            min_hand_detection_confidence=0.5,
            min_hand_presence_confidence=0.5,
            min_tracking_confidence=0.5,
        )
        self._landmarker = HandLandmarker.create_from_options(options)
        self._video_ts_ms = 0
        self._t0 = time.monotonic()

        logger.info(
            "[HAND] provider=mediapipe (camera=%s, mirror=%s, task=%s)",
            self.camera_index,
            self.mirror,
            model_path,
        )

    def start(self, channel: UpdateChannel) -> None:
        try:
            self._open()
        except (RuntimeError, OSError, cv2.error) as exc:
            self._release()
            raise SessionStartFailure(f"cannot start MediaPipe hand tracking: {exc}") from exc

        self._presence = HandPresenceTracker()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(channel, self._stop_event),
            name="handknob-mediapipe",
            daemon=True,
        )
        self._thread.start()

    def _detect(self, frame) -> dict[Chirality, HandAnchor]:
        if self.mirror:
            frame = cv2.flip(frame, 1)
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        ts_ms = int((time.monotonic() - self._t0) * 1000.0)
        self._video_ts_ms = max(self._video_ts_ms + 1, ts_ms)
        result = self._landmarker.detect_for_video(mp_image, self._video_ts_ms)

        anchors: dict[Chirality, HandAnchor] = {}
        for world_lm, handedness in zip(result.hand_world_landmarks, result.handedness):
            if not handedness:
                continue
            chirality = resolve_chirality(handedness[0].category_name, self.mirror)
            if chirality is None or chirality in anchors:
                continue
            anchors[chirality] = landmarks_to_anchor(world_lm, chirality)
        return anchors

    def _run(self, channel: UpdateChannel, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            ok, frame = self.cap.read()
            if not ok:
                time.sleep(0.01)
                continue
            for update in self._presence.step(self._detect(frame)):
                if not channel.publish(update, stop_event):
                    return

    def _release(self) -> None:
        landmarker = self._landmarker
        self._landmarker = None
        if landmarker is not None:
            try:
                landmarker.close()
            except (AttributeError, RuntimeError):
                pass
        cap = self.cap
        self.cap = None
        if cap is not None:
            try:
                cap.release()
            except (AttributeError, cv2.error):
                pass

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._release()
