# recording/file_stats.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from recording.ais_log import LogFormat
from schema.ais_packet import Packet
from telemetry.ais_decode import extract_mmsi


@dataclass
class FileStats:
    """Descriptive aggregates of a recorded log (``--info``)."""

    path: str
    type_label: str
    packet_count: int = 0
    unique_ids: int = 0
    start: Optional[Packet] = None
    end: Optional[Packet] = None

    @property
    def start_instant(self) -> Optional[float]:
        return self.start.instant if self.start is not None else None

    @property
    def end_instant(self) -> Optional[float]:
        return self.end.instant if self.end is not None else None

    @property
    def duration_s(self) -> Optional[float]:
        if self.start is None or self.end is None:
            return None
        return self.end.instant - self.start.instant

    @property
    def duration_h(self) -> Optional[float]:
        d = self.duration_s
        return None if d is None else d / 3600.0


def format_timestamp(sec: int, usec: int = 0) -> str:
    # millisecond precision, like the capture tools print it
    ms = int(sec) * 1000 + int(usec) // 1000
    dt = datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms % 1000:03d}Z"


def _type_label(packets: Sequence[Packet], fmt: Optional[LogFormat]) -> str:
    if fmt is not None:
        return fmt.label
    # .nm4 has no sub-second timestamps
    if all(p.timestamp_usec == 0 for p in packets):
        return LogFormat.TEXT.label
    return LogFormat.BINARY.label


def compute_file_stats(
    packets: Sequence[Packet],
    extract_identifier: Callable[[str], Optional[object]] = extract_mmsi,
    *,
    path: str = "",
    fmt: Optional[LogFormat] = None,
) -> FileStats:
    stats = FileStats(path=str(path), type_label=_type_label(packets, fmt), packet_count=len(packets))
    if not packets:
        return stats

    ids = set()
    for pkt in packets:
        if not pkt.has_marker():
            continue
        ident = extract_identifier(pkt.sentence())
        if ident:
            ids.add(ident)

    stats.unique_ids = len(ids)
    stats.start = packets[0]
    stats.end = packets[-1]
    return stats


def format_file_stats(stats: FileStats) -> List[str]:
    if stats.packet_count == 0:
        return ["No packets found in the file."]

    assert stats.start is not None and stats.end is not None
    return [
        "=== AIS File Statistics ===",
        f"File: {stats.path}",
        f"Type: {stats.type_label}",
        f"Number of packets: {stats.packet_count}",
        f"Unique MMSIs (vessels): {stats.unique_ids}",
        f"Start time (UTC): {format_timestamp(stats.start.timestamp_sec, stats.start.timestamp_usec)}",
        f"End time   (UTC): {format_timestamp(stats.end.timestamp_sec, stats.end.timestamp_usec)}",
        f"Duration (seconds): {stats.duration_s:.3f}",
        f"Duration (hours): {stats.duration_h:.3f}",
        "============================",
    ]


def print_file_stats(stats: FileStats, out: Optional[Callable[[str], None]] = None) -> None:
    emit = out or print
    for line in format_file_stats(stats):
        emit(line)
