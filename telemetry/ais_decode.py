# telemetry/ais_decode.py
"""Minimal AIS sentence field extraction.

Only what the player needs: the MMSI (vessel id) of the first fragment.
An AIVDM sentence looks like

    !AIVDM,1,1,,B,177KQJ5000G?tO`K>RA1wUbN0TKH,0*5C
           | |  | |                          |
           | |  | channel                    fill bits
           | |  sequential message id
           | fragment number
           fragment count

The payload is "6-bit armoured": each character carries 6 bits, MSB first.
Bits 0..5 are the message type, 6..7 the repeat indicator, 8..37 the MMSI.
"""
from __future__ import annotations

from typing import Optional

_MMSI_FIRST_BIT = 8
_MMSI_BITS = 30


def _dearmor(ch: str) -> Optional[int]:
    v = ord(ch) - 48
    if v > 40:
        v -= 8
    if v < 0 or v > 63:
        return None
    return v


def _payload(sentence: str) -> Optional[str]:
    """Return the armoured payload of a first (or only) fragment, else None."""
    s = sentence.strip()
    if not s.startswith("!") or len(s) < 6:
        return None
    body = s.split("*", 1)[0]
    fields = body.split(",")
    if len(fields) < 7:
        return None
    if fields[0][3:6] not in ("VDM", "VDO"):
        return None
    if fields[2].strip() != "1":
        # continuation fragment: no header bits
        return None
    return fields[5]


def _bits(payload: str, start: int, length: int) -> Optional[int]:
    need_chars = (start + length + 5) // 6
    if len(payload) < need_chars:
        return None

    acc = 0
    for ch in payload[:need_chars]:
        v = _dearmor(ch)
        if v is None:
            return None
        acc = (acc << 6) | v

    total = need_chars * 6
    shift = total - (start + length)
    return (acc >> shift) & ((1 << length) - 1)


def extract_mmsi(sentence: str) -> Optional[int]:
    """MMSI of an AIVDM/AIVDO sentence, or None if there isn't a usable one."""
    payload = _payload(sentence)
    if payload is None:
        return None
    mmsi = _bits(payload, _MMSI_FIRST_BIT, _MMSI_BITS)
    if not mmsi:
        return None
    return mmsi
