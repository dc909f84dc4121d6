"""Hand anchor provider via external bridge (e.g. a headset companion app).

This provider intentionally avoids any device SDK bindings. It consumes hand
anchor packets from UDP JSON so an external process can own device access and
tracking; see ``records`` for the packet schema.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from typing import Optional

from ..control.channel import UpdateChannel
from ..control.errors import SessionStartFailure
from ..control.hand_provider import HandTrackingProvider
from .records import _parse_update_line

logger = logging.getLogger(__name__)


class _UdpAnchorReceiver:
    def __init__(self, host: str, port: int, timeout_s: float):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self.sock.bind((host, int(port)))
        except OSError:
            self.sock.close()
            raise
        self.sock.settimeout(timeout_s)

    def recv(self) -> Optional[bytes]:
        try:
            data, _ = self.sock.recvfrom(65535)
        except socket.timeout:
            return None
        return data

    def close(self) -> None:
        self.sock.close()


class UdpBridgeHandTrackingProvider(HandTrackingProvider):
    """Publishes every valid hand anchor datagram, in arrival order."""

    name = "udp"

    def __init__(self, host: str = "127.0.0.1", port: int = 24568, poll_ms: int = 100):
        self.host = str(host)
        self.port = int(port)
        self.poll_s = max(0.001, float(poll_ms) / 1000.0)

        self._receiver: Optional[_UdpAnchorReceiver] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_warn_t = 0.0
        self._last_recv_t = 0.0
        self._recv_count = 0
        self._reject_count = 0

    @property
    def bound_port(self) -> int:
        if self._receiver is None:
            return self.port
        return int(self._receiver.sock.getsockname()[1])

    def start(self, channel: UpdateChannel) -> None:
        try:
            self._receiver = _UdpAnchorReceiver(self.host, self.port, self.poll_s)
        except OSError as exc:
            raise SessionStartFailure(
                f"cannot bind hand bridge socket on {self.host}:{self.port}: {exc}"
            ) from exc

        logger.info("[HAND] provider=udp-bridge (host=%s, port=%s)", self.host, self.bound_port)
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(channel, self._receiver, self._stop_event),
            name="handknob-udp",
            daemon=True,
        )
        self._thread.start()

    def _poll_once(self, channel: UpdateChannel, receiver: _UdpAnchorReceiver, stop_event: threading.Event) -> None:
        try:
            data = receiver.recv()
        except OSError:
            if not stop_event.is_set():
                logger.exception("[HAND] UDP bridge receive failed")
                stop_event.set()
            return

        if data is None:
            now = time.time()
            # Only log if we have not received any packet recently.
            if (now - self._last_recv_t) > 2.0 and (now - self._last_warn_t) > 2.0:
                logger.info(
                    "[HAND] waiting for hand bridge packets on %s:%s",
                    self.host,
                    self.bound_port,
                )
                self._last_warn_t = now
            return

        self._last_recv_t = time.time()
        update = _parse_update_line(data)
        if update is None:
            self._reject_count += 1
            logger.debug("[HAND] rejected malformed bridge packet (%d so far)", self._reject_count)
            return

        self._recv_count += 1
        if self._recv_count == 1:
            logger.info(
                "[HAND] first hand bridge packet received on %s:%s",
                self.host,
                self.bound_port,
            )
        channel.publish(update, stop_event)

    def _run(self, channel: UpdateChannel, receiver: _UdpAnchorReceiver, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            self._poll_once(channel, receiver, stop_event)

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        receiver = self._receiver
        self._receiver = None
        if receiver is not None:
            try:
                receiver.close()
            except OSError:
                pass
