# playback/filters.py
from __future__ import annotations

import logging
from typing import Optional, Tuple

from playback.scheduler import OnSend

logger = logging.getLogger(__name__)


def suppress_consecutive_duplicates(on_send: OnSend) -> OnSend:
    """Wrap ``on_send`` so a record identical to the one just before it is dropped.

    Some receivers log every sentence twice (two antennas, two channels).
    Only back-to-back repeats of the same (instant, sentence) are dropped;
    the same sentence at a different time goes through.
    """
    last: Optional[Tuple[float, str]] = None

    def _filtered(instant: float, sentence: str) -> None:
        nonlocal last
        key = (instant, sentence)
        if key == last:
            logger.debug("duplicate suppressed: %s", sentence)
            return
        last = key
        on_send(instant, sentence)

    return _filtered
