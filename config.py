"""
Global-ish config for the AIS player.

You can import this from anywhere:

    from config import DEFAULT_FILE, PUB_ENDPOINT, DEFAULT_TOPIC
"""

import os


def _env_float(var: str, default: float) -> float:
    s = os.environ.get(var, "").strip()
    if not s:
        return float(default)
    try:
        return float(s)
    except ValueError:
        return float(default)


def _env_bool(var: str, default: bool) -> bool:
    s = os.environ.get(var, "").strip().lower()
    if not s:
        return bool(default)
    return s in ("1", "true", "yes")


# Recorded AIS log (.bin binary frames or .nm4 tag-block text)
DEFAULT_FILE = os.environ.get("AIS_PLAYER_FILE", "./DonneesBrutesAIS.bin")

# ZMQ PUB endpoint. Empty means "must be given on the command line"
# (not needed for --info / --dry-run).
#
#   AIS_PLAYER_ENDPOINT=tcp://*:6100 python -m main_player -f day1.nm4
PUB_ENDPOINT = os.environ.get("AIS_PLAYER_ENDPOINT", "").strip()

# The player usually owns the endpoint (bind). Set AIS_PLAYER_BIND=0 to connect
# to an XSUB/XPUB proxy instead.
PUB_BIND = _env_bool("AIS_PLAYER_BIND", True)

# Topic prefix. Every sentence goes to <topic>/<mmsi>; the CLEAR control
# message goes to producers/<x>/control.
DEFAULT_TOPIC = os.environ.get("AIS_PLAYER_TOPIC", "producers/ais/data")

# Topic separator on the wire: "." (producers.ais.data.123456789) or "/".
_SEP_ENV = os.environ.get("AIS_PLAYER_SEPARATOR", ".").strip()
DEFAULT_SEPARATOR = _SEP_ENV if _SEP_ENV in (".", "/") else "."

# Playback rate multiplier (1 = real time, 2 = twice as fast). Kept as a string
# so the entry point validates it the same way as the CLI flag.
DEFAULT_RATE = os.environ.get("AIS_PLAYER_RATE", "1").strip() or "1"

# ---------------------------------------------------------------------------
# Scheduler timing
# ---------------------------------------------------------------------------
# Heartbeats are keyed to *simulated* time, the poll tick to wall-clock time.
HEARTBEAT_INTERVAL_S = _env_float("AIS_PLAYER_HEARTBEAT_S", 5.0)
TICK_S = _env_float("AIS_PLAYER_TICK_S", 0.05)

# PUB sockets drop everything sent before subscribers have joined.
SLOW_JOINER_S = _env_float("AIS_PLAYER_SLOW_JOINER_S", 0.5)

# Drop back-to-back repeats of the same (time, sentence) pair.
DEDUPE_DEFAULT = _env_bool("AIS_PLAYER_DEDUPE", False)

LOG_LEVEL = os.environ.get("AIS_PLAYER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
