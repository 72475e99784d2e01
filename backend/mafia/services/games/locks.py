import threading
from contextlib import contextmanager
from typing import Dict

from mafia.errors import GameBusy


class GameLocks:
    """Serializes phase transitions per game id.

    Triggers for the same game queue on one lock; different games never
    contend with each other.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._locks: Dict[str, threading.Lock] = {}
        self._registry = threading.Lock()

    def _lock_for(self, game_id: str) -> threading.Lock:
        with self._registry:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = self._locks[game_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, game_id: str):
        lock = self._lock_for(game_id)
        if not lock.acquire(timeout=self.timeout):
            raise GameBusy(f"Game '{game_id}' is busy with another phase transition")
        try:
            yield
        finally:
            lock.release()

    def discard(self, game_id: str) -> None:
        """Forget a finished game's lock; a holder keeps its reference until release."""
        with self._registry:
            self._locks.pop(game_id, None)

    def __contains__(self, game_id: str) -> bool:
        with self._registry:
            return game_id in self._locks

    def locked(self, game_id: str) -> bool:
        with self._registry:
            lock = self._locks.get(game_id)
        return bool(lock and lock.locked())
