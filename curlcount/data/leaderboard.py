from __future__ import annotations
import logging
import time
from typing import Callable, List, Optional, Tuple

from curlcount.data import db
from curlcount.data.db import LeaderboardEntry

log = logging.getLogger(__name__)

Listener = Callable[[List[LeaderboardEntry]], None]


class Leaderboard:
    """
    Reps per username, with live top-N subscriptions.
    Subscribers get a snapshot on subscribe and after every record().
    """
    def __init__(self, default_limit: int = 10):
        self.default_limit = default_limit
        self._listeners: List[Tuple[Listener, int]] = []

    def record(self, username: str, reps: int, ts: Optional[float] = None):
        db.upsert_user(username, reps, ts if ts is not None else time.time())
        self._notify()

    def top(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        return db.top_users(limit or self.default_limit)

    def subscribe(self, listener: Listener, limit: Optional[int] = None) -> Callable[[], None]:
        entry = (listener, limit or self.default_limit)
        self._listeners.append(entry)
        self._deliver(entry)

        def unsubscribe():
            try:
                self._listeners.remove(entry)
            except ValueError:
                pass
        return unsubscribe

    def _deliver(self, entry: Tuple[Listener, int]):
        listener, limit = entry
        try:
            listener(self.top(limit))
        except Exception:
            log.exception("leaderboard listener failed")

    def _notify(self):
        for entry in list(self._listeners):
            self._deliver(entry)
