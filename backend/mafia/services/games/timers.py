import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional


@dataclass(eq=False)
class TimerEntry:
    game_id: str
    phase: str
    duration: float
    started_at: float
    callback: Callable[[str, str], None]


class PhaseTimers:
    """One countdown per game; expiry hands ``(game_id, phase)`` to a callback.

    - ``start`` always supersedes the game's previous timer, never stacks
    - a superseded or stopped worker wakes up, finds its entry gone and aborts
    - ``spawn`` / ``sleep`` default to plain threads and ``time.sleep``; the
      app passes Socket.IO's background task helpers instead
    """

    def __init__(self, on_expire: Optional[Callable[[str, str], None]] = None, spawn=None, sleep=None,
                 clock=time.monotonic, logger: Optional[logging.Logger] = None, heartbeat_sec: int = 0):
        self.on_expire = on_expire
        self._spawn = spawn or _spawn_thread
        self._sleep = sleep or time.sleep
        self._clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.heartbeat_sec = heartbeat_sec
        self._entries: Dict[str, TimerEntry] = {}
        self._lock = threading.Lock()

    def bind(self, on_expire: Callable[[str, str], None]) -> None:
        self.on_expire = on_expire

    def start(self, game_id: str, duration: float, phase: str) -> TimerEntry:
        if self.on_expire is None:
            raise RuntimeError('PhaseTimers has no expiry callback bound')
        entry = TimerEntry(game_id=game_id, phase=phase, duration=max(0, duration),
                           started_at=self._clock(), callback=self.on_expire)
        with self._lock:
            replaced = self._entries.get(game_id)
            self._entries[game_id] = entry
        if replaced is not None:
            self.logger.info(f"[timer-replace] game={game_id} old_phase={replaced.phase} new_phase={phase}")
        self.logger.info(f"[timer-set] game={game_id} phase={phase} duration={entry.duration}s")
        self._spawn(self._worker, entry)
        return entry

    def stop(self, game_id: str) -> None:
        with self._lock:
            entry = self._entries.pop(game_id, None)
        if entry is not None:
            self.logger.info(f"[timer-stop] game={game_id} phase={entry.phase}")

    def remaining(self, game_id: str) -> Optional[int]:
        with self._lock:
            entry = self._entries.get(game_id)
        if entry is None:
            return None
        elapsed = self._clock() - entry.started_at
        return max(0, math.ceil(entry.duration - elapsed))

    def active(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def _is_current(self, entry: TimerEntry) -> bool:
        with self._lock:
            return self._entries.get(entry.game_id) is entry

    def _worker(self, entry: TimerEntry) -> None:
        hb = self.heartbeat_sec
        if hb and hb > 0:
            slept = 0
            while slept < entry.duration:
                step = min(hb, entry.duration - slept)
                self._sleep(step)
                slept += step
                if not self._is_current(entry):
                    break
                self.logger.info(
                    f"[timer-heartbeat] game={entry.game_id} phase={entry.phase} remaining={max(0, entry.duration - slept)}s"
                )
        else:
            self._sleep(entry.duration)

        with self._lock:
            fired = self._entries.get(entry.game_id) is entry
            if fired:
                del self._entries[entry.game_id]
        if not fired:
            self.logger.info(f"[timer-abort] game={entry.game_id} phase={entry.phase} superseded or stopped")
            return

        self.logger.info(f"[timer-fire] game={entry.game_id} phase={entry.phase}")
        try:
            entry.callback(entry.game_id, entry.phase)
        except Exception:
            self.logger.exception(f"[timer-error] game={entry.game_id} phase={entry.phase}")


def _spawn_thread(target, *args):
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread
