# ais_packet.py
from __future__ import annotations
from dataclasses import dataclass

# Every AIS sentence (!AIVDM / !AIVDO) starts with this character.
MESSAGE_MARKER = "!"

USEC_PER_SEC = 1_000_000


@dataclass(frozen=True)
class Packet:
    """One timestamped record from a recorded AIS log."""

    timestamp_sec: int
    timestamp_usec: int = 0
    payload: bytes = b""

    @property
    def instant(self) -> float:
        # float seconds since epoch, for scheduling math only
        return self.timestamp_sec + self.timestamp_usec / USEC_PER_SEC

    def sentence(self) -> str:
        return self.payload.decode("utf-8", errors="replace").strip()

    def has_marker(self) -> bool:
        return self.sentence().startswith(MESSAGE_MARKER)

    @classmethod
    def from_sentence(cls, timestamp_sec: int, sentence: str, timestamp_usec: int = 0) -> "Packet":
        return cls(
            timestamp_sec=int(timestamp_sec),
            timestamp_usec=int(timestamp_usec),
            payload=sentence.encode("utf-8"),
        )
