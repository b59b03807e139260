# playback/scheduler.py
"""Wall-clock synchronized replay of a recorded packet sequence.

The scheduler is poll driven: every tick it maps elapsed wall-clock time to
*simulated* time (``start + elapsed * rate``) and drains every packet whose
timestamp has been reached. That keeps the rate a pure function of elapsed
time, needs no per-packet timers, and lets bursts (or a slow tick) catch up
in one go instead of drifting.

Heartbeats are keyed to simulated time, so at ``rate=10`` a 5 s heartbeat
shows up every half second of wall time.

Threading:
  - ``run()`` blocks in the calling thread
  - ``start()`` runs it on a daemon thread; ``stop()`` can be called from
    anywhere (signal handler, GUI, another thread) and takes effect at the
    next tick boundary
"""
from __future__ import annotations

import logging
import math
import threading
import time
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Sequence

from config import HEARTBEAT_INTERVAL_S, TICK_S
from schema.ais_packet import MESSAGE_MARKER, Packet

logger = logging.getLogger(__name__)

OnSend = Callable[[float, str], None]


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Monotonic wall clock. ``time.time()`` can jump (NTP) and must not be used."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


def format_hms(seconds: float) -> str:
    s = max(0, int(seconds))
    h, rem = divmod(s, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_sim_time(instant: float) -> str:
    try:
        dt = datetime.fromtimestamp(int(instant), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        # past datetime range (huge rate multipliers)
        return f"t={instant:.0f}"
    return dt.strftime("%Y/%m/%d %H:%M:%S")


def progress_percent(start: float, end: float, simulated: float) -> float:
    total = end - start
    if total <= 0:
        return 100.0
    pct = (simulated - start) / total * 100.0
    return max(0.0, min(100.0, pct))


@dataclass(frozen=True)
class Heartbeat:
    simulated_time: float
    percent: float
    remaining_s: float

    def format(self) -> str:
        return (
            f"[{format_sim_time(self.simulated_time)}] Waiting... "
            f"({self.percent:.1f}%, {format_hms(self.remaining_s)} remaining)"
        )


@dataclass
class PlaybackResult:
    delivered: int = 0
    skipped: int = 0
    heartbeats: int = 0
    stopped: bool = False
    elapsed_s: float = 0.0


class PlaybackScheduler:
    def __init__(
        self,
        packets: Sequence[Packet],
        on_send: OnSend,
        rate: float = 1.0,
        *,
        clock: Optional[Clock] = None,
        heartbeat_interval_s: float = HEARTBEAT_INTERVAL_S,
        tick_s: float = TICK_S,
        on_heartbeat: Optional[Callable[[Heartbeat], None]] = None,
    ):
        rate = float(rate)
        if not math.isfinite(rate) or rate <= 0:
            raise ValueError(f"Invalid playback rate: {rate}")
        if tick_s <= 0:
            raise ValueError(f"tick must be > 0 (got {tick_s})")

        self.packets = packets
        self.on_send = on_send
        self.rate = rate
        self.clock: Clock = clock or SystemClock()
        self.heartbeat_interval_s = float(heartbeat_interval_s)
        self.tick_s = float(tick_s)
        self.on_heartbeat = on_heartbeat

        self.result: Optional[PlaybackResult] = None

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # --- control -------------------------------------------------------

    def start(self, threaded: bool = True):
        if threaded:
            if self._thread and self._thread.is_alive():
                return
            self._thread = threading.Thread(target=self.run, daemon=True)
            self._thread.start()
        else:
            self.run()

    def stop(self):
        # Sticky: a stop issued before start() still cancels the run.
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for a threaded run. Returns True if it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    # --- loop ----------------------------------------------------------

    def run(self) -> PlaybackResult:
        result = PlaybackResult()
        self.result = result

        n = len(self.packets)
        if n == 0:
            logger.info("No packets to play")
            return result

        start_instant = self.packets[0].instant
        end_instant = self.packets[-1].instant
        wall0 = self.clock.now()
        last_heartbeat = start_instant
        i = 0

        while i < n:
            if self._stop.is_set():
                result.stopped = True
                logger.info("Playback stopped at packet %d/%d", i, n)
                break

            # A backward clock step must never replay into the past.
            elapsed = max(0.0, self.clock.now() - wall0)
            simulated = start_instant + elapsed * self.rate

            if simulated - last_heartbeat >= self.heartbeat_interval_s:
                last_heartbeat = simulated
                self._heartbeat(result, start_instant, end_instant, simulated)

            while i < n and self.packets[i].instant <= simulated:
                pkt = self.packets[i]
                i += 1
                sentence = pkt.sentence()
                if not sentence.startswith(MESSAGE_MARKER):
                    result.skipped += 1
                    continue
                self._deliver(pkt.instant, sentence)
                result.delivered += 1

            if i < n:
                self.clock.sleep(self.tick_s)

        result.elapsed_s = max(0.0, self.clock.now() - wall0)
        logger.debug(
            "playback finished: delivered=%d skipped=%d heartbeats=%d elapsed=%.3fs",
            result.delivered, result.skipped, result.heartbeats, result.elapsed_s,
        )
        return result

    def _heartbeat(self, result: PlaybackResult, start: float, end: float, simulated: float):
        hb = Heartbeat(
            simulated_time=simulated,
            percent=progress_percent(start, end, simulated),
            remaining_s=max(0.0, end - simulated),
        )
        result.heartbeats += 1
        logger.info(hb.format())
        if self.on_heartbeat:
            try:
                self.on_heartbeat(hb)
            except Exception as e:
                logger.error("heartbeat callback failed: %s", e)

    def _deliver(self, instant: float, sentence: str):
        try:
            self.on_send(instant, sentence)
        except Exception as e:
            # One bad record never halts the stream.
            logger.error("Failed to send sentence: %s (%s)", sentence, e)
            logger.debug(traceback.format_exc())
