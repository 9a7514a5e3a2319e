"""
Per-game exclusive locks.

Every read-modify-write of a game record happens while holding that game's lock.
Different game ids never share a lock, so unrelated games never wait on each other.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from src.core.exceptions import LockUnavailableError

logger = logging.getLogger(__name__)


class GameLocks:
    """
    Registry of one (non-reentrant) lock per game id.
    An entry only lives while some thread holds or waits for it, so the registry does not grow with every game ever played.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        # None: wait as long as it takes
        self.timeout = timeout
        self._locks: dict[str, threading.Lock] = {}
        # threads holding or waiting for each lock
        self._users: dict[str, int] = {}
        self._owners: dict[str, int] = {}
        self._registry_lock = threading.Lock()

    def __len__(self) -> int:
        """Number of game ids currently tracked."""
        with self._registry_lock:
            return len(self._locks)

    def _checkout(self, game_id: str) -> threading.Lock:
        with self._registry_lock:
            self._users[game_id] = self._users.get(game_id, 0) + 1
            return self._locks.setdefault(game_id, threading.Lock())

    def _checkin(self, game_id: str) -> None:
        with self._registry_lock:
            self._users[game_id] -= 1
            if self._users[game_id] == 0:
                del self._users[game_id]
                del self._locks[game_id]

    def is_held(self, game_id: str) -> bool:
        with self._registry_lock:
            lock = self._locks.get(game_id)
        return lock is not None and lock.locked()

    @contextmanager
    def hold(self, game_id: str) -> Generator[None, None, None]:
        """Block until the game's lock is ours. Always released on the way out."""
        me = threading.get_ident()
        if self._owners.get(game_id) == me:
            raise LockUnavailableError(
                f"Lock for game {game_id!r} is already held by this thread (locks are not reentrant)"
            )

        lock = self._checkout(game_id)
        try:
            logger.debug("Waiting for lock on game %s", game_id)
            acquired = (
                lock.acquire() if self.timeout is None else lock.acquire(timeout=self.timeout)
            )
            if not acquired:
                raise LockUnavailableError(
                    f"Unable to acquire lock for game {game_id!r} within {self.timeout}s"
                )

            self._owners[game_id] = me
            try:
                yield
            finally:
                self._owners.pop(game_id, None)
                lock.release()
                logger.debug("Released lock on game %s", game_id)
        finally:
            self._checkin(game_id)


# Shared by every repository in this process unless told otherwise
DEFAULT_LOCKS = GameLocks()
