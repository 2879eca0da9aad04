"""
Host-side guard around matchmaking runs.

The engine itself is synchronous and fast; runs are delayed by
MATCHMAKING_DELAY_MS and a tournament may only have one run outstanding.
"""

import logging
import os
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Set

logger = logging.getLogger(__name__)

MATCHMAKING_DELAY_MS = int(os.getenv("MATCHMAKING_DELAY_MS", "0"))

_lock = threading.Lock()
_in_flight: Set[int] = set()


class MatchmakingBusyError(Exception):
    """A matchmaking run is already outstanding for this tournament"""

    pass


def is_running(tournament_id: int) -> bool:
    with _lock:
        return tournament_id in _in_flight


@contextmanager
def matchmaking_slot(tournament_id: int, delay_ms: int = MATCHMAKING_DELAY_MS) -> Iterator[None]:
    with _lock:
        if tournament_id in _in_flight:
            logger.warning("Matchmaking re-entry refused for tournament %d", tournament_id)
            raise MatchmakingBusyError(f"Matchmaking already running for tournament {tournament_id}")
        _in_flight.add(tournament_id)
    try:
        if delay_ms > 0:
            time.sleep(delay_ms / 1000)
        yield
    finally:
        with _lock:
            _in_flight.discard(tournament_id)
