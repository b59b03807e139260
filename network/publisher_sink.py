# network/publisher_sink.py
from __future__ import annotations

import json
import logging
import time
from collections import deque
from typing import Deque, Optional, Protocol, Tuple, Union

import zmq

from config import DEFAULT_SEPARATOR, SLOW_JOINER_S
from network.zmq_hotplug import apply_pub_opts

logger = logging.getLogger(__name__)

Payload = Union[str, bytes, dict]


class Sink(Protocol):
    connected: bool

    def deliver(self, destination: str, payload: Payload) -> None: ...

    def create_path(self, destination: str) -> str: ...

    def close(self) -> None: ...


def _to_bytes(payload: Payload) -> bytes:
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


def _create_path(destination: str, separator: str) -> str:
    if separator == ".":
        return ".".join(destination.split("/"))
    return destination


class ZmqPublisherSink:
    """ZMQ PUB sink. Each message goes out as two frames: [topic, payload].

    Subscribers filter on the topic frame, e.g. ``producers.ais.data.`` for
    every vessel or ``producers.ais.data.477553000`` for one.

    Sends never block the replay loop: a full queue drops the message.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        bind: bool = True,
        separator: str = DEFAULT_SEPARATOR,
        slow_joiner_s: float = SLOW_JOINER_S,
        ctx: Optional[zmq.Context] = None,
    ):
        self.endpoint = endpoint
        self.bind = bool(bind)
        self.separator = separator if separator in (".", "/") else "."
        self.slow_joiner_s = float(slow_joiner_s)
        self.ctx = ctx or zmq.Context.instance()

        self.sock: Optional[zmq.Socket] = None
        self.connected = False
        self.dropped = 0

    def open(self) -> "ZmqPublisherSink":
        if self.sock is not None:
            return self
        sock = self.ctx.socket(zmq.PUB)
        apply_pub_opts(sock, linger_ms=0, snd_hwm=10_000)
        try:
            if self.bind:
                sock.bind(self.endpoint)
            else:
                sock.connect(self.endpoint)
        except zmq.ZMQError:
            sock.close(0)
            raise
        self.sock = sock

        # Slow joiner: give subscribers a moment before the first message.
        if self.slow_joiner_s > 0:
            time.sleep(self.slow_joiner_s)

        self.connected = True
        logger.info("ZMQ publisher %s %s", "bound to" if self.bind else "connected to", self.endpoint)
        return self

    def create_path(self, destination: str) -> str:
        return _create_path(destination, self.separator)

    def deliver(self, destination: str, payload: Payload) -> None:
        if not self.connected or self.sock is None:
            logger.warning("ZMQ publisher not connected, cannot send message")
            return
        topic = self.create_path(destination)
        try:
            self.sock.send_multipart([topic.encode("utf-8"), _to_bytes(payload)], flags=zmq.NOBLOCK)
        except zmq.Again:
            # Keep the replay on schedule: drop instead of blocking.
            self.dropped += 1
            logger.debug("send queue full, dropped message for %s", topic)

    def close(self) -> None:
        self.connected = False
        s = self.sock
        self.sock = None
        if s is not None:
            try:
                s.close(0)
            except zmq.ZMQError as e:
                logger.debug("error closing PUB socket: %s", e)
            logger.info("ZMQ publisher closed")

    def __enter__(self) -> "ZmqPublisherSink":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()


class LogOnlySink:
    """Sink for --dry-run: logs what would have been published.

    Only the last ``keep`` messages are remembered; ``delivered`` counts all.
    """

    def __init__(self, separator: str = DEFAULT_SEPARATOR, keep: int = 1000):
        self.separator = separator if separator in (".", "/") else "."
        self.connected = True
        self.delivered = 0
        self.sent: Deque[Tuple[str, bytes]] = deque(maxlen=max(0, int(keep)))

    def create_path(self, destination: str) -> str:
        return _create_path(destination, self.separator)

    def deliver(self, destination: str, payload: Payload) -> None:
        topic = self.create_path(destination)
        self.sent.append((topic, _to_bytes(payload)))
        self.delivered += 1
        logger.debug("dry-run %s", topic)

    def close(self) -> None:
        self.connected = False
