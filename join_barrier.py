"""Epoch-scoped barrier that waits for a fixed set of parties."""

from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional

from errors import JOIN_VIOLATION
from logger import get_logger

logger = get_logger("join_barrier")

JoinCallback = Callable[[int], None]


class JoinBarrier:
    """Fires ``on_joined(epoch)`` once every named party has arrived.

    Each ``reset`` opens a new epoch. Arrivals tagged with an older epoch,
    repeated arrivals of the same party and arrivals of unknown parties are
    ignored, so a late completion from an abandoned round can never release
    the current one.
    """

    def __init__(self, parties: Iterable[str], on_joined: Optional[JoinCallback] = None) -> None:
        self._parties = frozenset(parties)
        if not self._parties:
            raise ValueError("a barrier needs at least one party")
        self._on_joined = on_joined
        self._lock = threading.Lock()
        self._epoch = 0
        self._arrived: set[str] = set()
        self._open = False

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def parties(self) -> frozenset[str]:
        return self._parties

    @property
    def pending(self) -> frozenset[str]:
        with self._lock:
            if not self._open:
                return frozenset()
            return self._parties - self._arrived

    def is_current(self, epoch: int) -> bool:
        return self._open and epoch == self._epoch

    def reset(self) -> int:
        with self._lock:
            self._epoch += 1
            self._arrived = set()
            self._open = True
            return self._epoch

    def cancel(self) -> None:
        """Close the current epoch; later arrivals for it are discarded."""
        with self._lock:
            self._epoch += 1
            self._arrived = set()
            self._open = False

    def arrive(self, epoch: int, party: str) -> bool:
        """Record ``party`` for ``epoch``. Returns False when the arrival is discarded."""
        with self._lock:
            if not self._open or epoch != self._epoch:
                logger.warning(
                    f"{JOIN_VIOLATION}: stale completion from {party} "
                    f"(epoch {epoch}, current {self._epoch})"
                )
                return False
            if party not in self._parties:
                logger.warning(f"{JOIN_VIOLATION}: unknown party {party}")
                return False
            if party in self._arrived:
                logger.warning(f"{JOIN_VIOLATION}: duplicate completion from {party}")
                return False
            self._arrived.add(party)
            joined = self._arrived == self._parties
            if joined:
                self._open = False

        if joined and self._on_joined is not None:
            self._on_joined(epoch)
        return True
