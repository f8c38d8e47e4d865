"""
clubhouse.engine.locks — Per-Entity Serialization
==================================================

Operations on the same club (or on the registry) must not interleave:
two concurrent ``add_channel`` calls both have to land, each at its own
position.  Operations on different clubs run in parallel.

Inside one process this is a table of :class:`threading.Lock` objects,
one per entity key.  Across processes the service layer additionally
takes a row lock (``SELECT … FOR UPDATE``) on PostgreSQL.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from threading import Lock

logger = logging.getLogger(__name__)

REGISTRY_KEY = "registry"


def club_key(club_id: str) -> str:
    return f"club:{club_id}"


class EntityLocks:
    """Keyed lock table.  Thread-safe; locks are created on first use."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[str, Lock] = {}

    def _lock_for(self, key: str) -> Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = Lock()
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Acquire every lock in *keys*.

        Keys are taken in sorted order so two callers needing the same pair
        can never deadlock.
        """
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._lock_for(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Module-level default instance (tests can inject their own)
_default_locks = EntityLocks()


def resolve_locks(locks: EntityLocks | None = None) -> EntityLocks:
    """Return *locks* when injected, else the process-wide lock table.

    An injected table is used even while it is still empty.
    """
    return locks if locks is not None else _default_locks
