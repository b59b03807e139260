from ais_samples import FRAGMENT_2, MMSI_A, MMSI_B, SENTENCE_A, SENTENCE_B
from telemetry.ais_decode import extract_mmsi


def test_extract_mmsi_known_sentences():
    assert extract_mmsi(SENTENCE_A) == MMSI_A
    assert extract_mmsi(SENTENCE_B) == MMSI_B


def test_extract_mmsi_tolerates_whitespace_and_aivdo():
    assert extract_mmsi("  " + SENTENCE_A + "\r\n") == MMSI_A
    own = SENTENCE_B.replace("!AIVDM", "!AIVDO", 1)
    assert extract_mmsi(own) == MMSI_B


def test_extract_mmsi_rejects_non_ais():
    assert extract_mmsi("") is None
    assert extract_mmsi("$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47") is None
    assert extract_mmsi("!AIVDM,1,1") is None
    assert extract_mmsi("hello world") is None


def test_extract_mmsi_continuation_fragment_has_no_id():
    assert extract_mmsi(FRAGMENT_2) is None


def test_extract_mmsi_short_or_bad_payload():
    assert extract_mmsi("!AIVDM,1,1,,A,15RT,0*00") is None
    # '~' is outside the 6-bit armour alphabet
    assert extract_mmsi("!AIVDM,1,1,,A,1~~~~~~~~,0*00") is None
    # all-zero MMSI
    assert extract_mmsi("!AIVDM,1,1,,A,10000000000,0*00") is None
