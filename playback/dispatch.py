# playback/dispatch.py
"""Glue between the scheduler's ``on_send`` callback and a sink."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from network.publisher_sink import Sink
from playback.scheduler import format_sim_time
from telemetry.ais_decode import extract_mmsi

logger = logging.getLogger(__name__)

CLEAR_MESSAGE = {"action": "CLEAR"}


def control_topic(topic: str) -> str:
    """producers/<name>/data -> producers/<name>/control. Anything else is unchanged."""
    parts = topic.split("/")
    if len(parts) >= 3 and parts[0] == "producers" and parts[2] == "data":
        parts[2] = "control"
        return "/".join(parts)
    return topic


class DispatchAdapter:
    """Publishes each replayed sentence to ``<topic>/<mmsi>``.

    Failures are per record: a sentence without an MMSI is skipped with a
    warning, a sink error is logged. Neither stops the replay.
    """

    def __init__(
        self,
        sink: Sink,
        topic: str,
        extract_identifier: Callable[[str], Optional[object]] = extract_mmsi,
        *,
        label: str = "ZMQ",
    ):
        self.sink = sink
        self.topic = topic.rstrip("/")
        self.extract_identifier = extract_identifier
        self.label = label

        self.sent = 0
        self.skipped = 0
        self.failed = 0

    def send_clear(self) -> None:
        """Tell consumers to drop state from a previous run."""
        dest = control_topic(self.topic)
        self.sink.deliver(dest, CLEAR_MESSAGE)
        logger.info("%s -> %s: CLEAR", self.label, self.sink.create_path(dest))

    def __call__(self, instant: float, sentence: str) -> None:
        try:
            ident = self.extract_identifier(sentence)
            if not ident:
                self.skipped += 1
                logger.warning("Skipping: no MMSI found for sentence: %s", sentence)
                return

            dest = f"{self.topic}/{ident}"
            self.sink.deliver(dest, sentence)
            self.sent += 1
            logger.info(
                "[%s] %s -> %s: %s",
                format_sim_time(instant), self.label, self.sink.create_path(dest), sentence,
            )
        except Exception as e:
            self.failed += 1
            logger.error("Failed to send or parse sentence: %s (%s)", sentence, e)
