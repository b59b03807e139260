# recording/ais_log.py
"""Readers for recorded AIS logs.

Two on-disk encodings end up as the same ordered list of ``Packet``:

  - ``.bin``: back-to-back frames, each a 12-byte little-endian header
    (seconds, microseconds, payload length) followed by the raw sentence.
  - ``.nm4``: NMEA 4.10 text where each record line carries a tag block,
    e.g. ``\\s:rORBCOMM,c:1617278403*0B\\!AIVDM,1,1,,B,...*5C``.
    Only the ``c:`` (epoch seconds) field is used; microseconds are always 0.

Both readers load the whole blob and are total over malformed input: a bad
line is skipped, a truncated trailing frame is dropped with a warning.
"""
from __future__ import annotations

import logging
import os
import re
import struct
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from schema.ais_packet import MESSAGE_MARKER, Packet

logger = logging.getLogger(__name__)

BIN_HEADER = struct.Struct("<III")
UINT32_MAX = 0xFFFFFFFF

NM4_SENTINEL = "\\s:"
_NM4_RECORD = re.compile(r"c:([0-9]{1,10})\*\w+\\(.*)")
_LINE_SPLIT = re.compile(r"\r?\n")


class LogFormat(Enum):
    BINARY = "bin"
    TEXT = "nm4"

    @property
    def label(self) -> str:
        return ".nm4 (text)" if self is LogFormat.TEXT else ".bin (binary)"


def parse_bin(blob: bytes) -> List[Packet]:
    buf = memoryview(blob)
    offset = 0
    packets: List[Packet] = []

    while offset + BIN_HEADER.size <= len(buf):
        ts_sec, ts_usec, size = BIN_HEADER.unpack_from(buf, offset)
        offset += BIN_HEADER.size

        if offset + size > len(buf):
            logger.warning(
                "Incomplete packet at end of file (offset=%d, declared=%d, available=%d)",
                offset - BIN_HEADER.size, size, len(buf) - offset,
            )
            break

        packets.append(Packet(ts_sec, ts_usec, bytes(buf[offset:offset + size])))
        offset += size

    return packets


def parse_nm4(text: str) -> List[Packet]:
    packets: List[Packet] = []

    for line in _LINE_SPLIT.split(text):
        if not line.startswith(NM4_SENTINEL):
            continue

        m = _NM4_RECORD.search(line)
        if not m:
            continue

        sentence = m.group(2).strip()
        if not sentence.startswith(MESSAGE_MARKER):
            continue

        ts_sec = int(m.group(1))
        if ts_sec > UINT32_MAX:
            continue

        packets.append(Packet.from_sentence(ts_sec, sentence))

    return packets


def _parse_nm4_blob(blob: bytes) -> List[Packet]:
    return parse_nm4(blob.decode("utf-8", errors="replace"))


_PARSERS: Dict[LogFormat, Callable[[bytes], List[Packet]]] = {
    LogFormat.BINARY: parse_bin,
    LogFormat.TEXT: _parse_nm4_blob,
}


def parse(blob: bytes, fmt: LogFormat) -> List[Packet]:
    return _PARSERS[fmt](blob)


def detect_format(path: str | os.PathLike) -> LogFormat:
    if Path(path).suffix.lower() == ".nm4":
        return LogFormat.TEXT
    return LogFormat.BINARY


def read_packets(path: str | os.PathLike, fmt: Optional[LogFormat] = None) -> List[Packet]:
    """Load a whole log file. Raises FileNotFoundError/OSError if unreadable."""
    p = Path(path)
    if fmt is None:
        fmt = detect_format(p)
    blob = p.read_bytes()
    packets = parse(blob, fmt)
    logger.debug("read %d packets from %s (%s)", len(packets), p, fmt.value)
    return packets


def encode_bin_frame(packet: Packet) -> bytes:
    return BIN_HEADER.pack(packet.timestamp_sec, packet.timestamp_usec, len(packet.payload)) + packet.payload


def write_bin(path: str | os.PathLike, packets: List[Packet]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "wb") as fh:
        for pkt in packets:
            fh.write(encode_bin_frame(pkt))
    return out
