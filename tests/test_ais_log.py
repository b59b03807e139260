import logging
import struct
from pathlib import Path

import pytest

from ais_samples import SENTENCE_A, SENTENCE_B
from recording.ais_log import (
    LogFormat,
    detect_format,
    encode_bin_frame,
    parse,
    parse_bin,
    parse_nm4,
    read_packets,
    write_bin,
)
from schema.ais_packet import Packet


def _frame(sec: int, usec: int, payload: bytes) -> bytes:
    return struct.pack("<III", sec, usec, len(payload)) + payload


def test_packet_instant_and_sentence():
    p = Packet(1002, 500000, b"  " + SENTENCE_A.encode() + b"\r\n")
    assert p.instant == pytest.approx(1002.5)
    assert p.sentence() == SENTENCE_A
    assert p.has_marker()
    assert not Packet(1, 0, b"\xff\xfe garbage").has_marker()


def test_parse_bin_two_frames():
    blob = _frame(1000, 0, SENTENCE_A.encode()) + _frame(1002, 500000, SENTENCE_B.encode())
    packets = parse_bin(blob)
    assert len(packets) == 2
    assert packets[0] == Packet(1000, 0, SENTENCE_A.encode())
    assert packets[1].timestamp_usec == 500000
    assert packets[1].instant == pytest.approx(1002.5)


def test_parse_bin_truncated_trailing_frame_is_dropped(caplog):
    good = _frame(1000, 0, SENTENCE_A.encode())
    partial = _frame(1001, 0, SENTENCE_B.encode())[:-5]
    with caplog.at_level(logging.WARNING):
        packets = parse_bin(good + partial)
    assert [p.timestamp_sec for p in packets] == [1000]
    assert "Incomplete packet" in caplog.text


def test_parse_bin_short_header_tail_is_end_of_stream(caplog):
    blob = _frame(1000, 0, b"!x") + b"\x01\x02\x03"
    with caplog.at_level(logging.WARNING):
        packets = parse_bin(blob)
    assert len(packets) == 1
    assert "Incomplete packet" not in caplog.text


def test_parse_bin_empty_and_zero_length_payload():
    assert parse_bin(b"") == []
    packets = parse_bin(_frame(5, 1, b"") + _frame(6, 2, b"!a"))
    assert [p.payload for p in packets] == [b"", b"!a"]


def test_parse_bin_huge_declared_length():
    blob = struct.pack("<III", 1, 0, 0xFFFFFFFF) + b"abc"
    assert parse_bin(blob) == []


NM4_TEXT = "\r\n".join([
    r"\s:2573345,c:1617278403*0B\!AIVDM,1,1,,B,177KQJ5000G?tO`K>RA1wUbN0TKH,0*5C",
    r"!AIVDM,1,1,,A,15RTgt0PAso;90TKcjM8h6g208CQ,0*4A",
    r"# comment line",
    r"\s:2573345,c:notanumber*0B\!AIVDM,1,1,,A,15RTgt0PAso;90TKcjM8h6g208CQ,0*4A",
    r"\s:2573345,c:1617278404*0B\$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47",
    r"\s:2573345,c:1617278405*0B\  !AIVDM,1,1,,A,15RTgt0PAso;90TKcjM8h6g208CQ,0*4A  ",
    "",
])


def test_parse_nm4_filters_and_zero_usec(caplog):
    with caplog.at_level(logging.DEBUG):
        packets = parse_nm4(NM4_TEXT)
    # non-record lines are skipped quietly
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
    assert [p.timestamp_sec for p in packets] == [1617278403, 1617278405]
    assert all(p.timestamp_usec == 0 for p in packets)
    assert packets[0].sentence() == SENTENCE_A
    assert packets[1].sentence() == SENTENCE_B


def test_parse_nm4_overlong_timestamp_is_skipped():
    line = "\\s:2573345,c:" + "9" * 5000 + "*0B\\" + SENTENCE_A
    assert parse_nm4(line) == []


def test_parse_nm4_timestamp_must_fit_uint32():
    text = "\n".join([
        "\\s:2573345,c:4294967296*0B\\" + SENTENCE_A,
        "\\s:2573345,c:4294967295*0B\\" + SENTENCE_B,
        "\\s:2573345,c:99999999999*0B\\" + SENTENCE_A,
    ])
    packets = parse_nm4(text)
    assert [p.timestamp_sec for p in packets] == [4294967295]
    assert packets[0].sentence() == SENTENCE_B


def test_parse_dispatches_on_format_tag():
    blob = _frame(1000, 0, SENTENCE_A.encode())
    assert len(parse(blob, LogFormat.BINARY)) == 1
    assert parse(blob, LogFormat.TEXT) == []
    assert len(parse(NM4_TEXT.encode(), LogFormat.TEXT)) == 2
    # invalid utf-8 must not escape
    assert parse(b"\xff\xfe\n\\s:c:1*00\\!x", LogFormat.TEXT) == [Packet(1, 0, b"!x")]


def test_detect_format():
    assert detect_format("day1.nm4") is LogFormat.TEXT
    assert detect_format("DAY1.NM4") is LogFormat.TEXT
    assert detect_format("DonneesBrutesAIS.bin") is LogFormat.BINARY
    assert detect_format("capture") is LogFormat.BINARY


def test_read_packets_and_write_bin(tmp_path: Path):
    src = tmp_path / "day1.nm4"
    src.write_text(NM4_TEXT)
    packets = read_packets(src)
    assert len(packets) == 2

    out = write_bin(tmp_path / "out" / "day1.bin", packets)
    assert out.read_bytes() == b"".join(encode_bin_frame(p) for p in packets)
    assert read_packets(out) == packets


def test_read_packets_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_packets(tmp_path / "nope.bin")
