import threading
from typing import Callable, Optional

from scoreboard import socketio


class Clock:
    """Cancellable ticker that calls ``on_tick(generation)`` once per interval.

    Runs as a Socket.IO background task. Every ``start`` opens a new
    generation and ``cancel`` closes it, so a worker that wakes up after
    being cancelled (or superseded) exits without firing. The generation is
    also handed to ``on_tick`` so the owner can drop a tick that raced with
    a cancel.
    """

    def __init__(self, on_tick: Callable[[int], None], interval: float = 1.0,
                 heartbeat: int = 0, logger=None,
                 spawn: Optional[Callable] = None, sleep: Optional[Callable] = None):
        self._on_tick = on_tick
        self.interval = interval
        self.heartbeat = heartbeat
        self.logger = logger
        self._spawn = spawn or socketio.start_background_task
        self._sleep = sleep or socketio.sleep
        self._lock = threading.Lock()
        self._generation = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return self._running and generation == self._generation

    def start(self) -> int:
        with self._lock:
            if self._running:
                return self._generation
            self._generation += 1
            self._running = True
            generation = self._generation
        self._spawn(self._worker, generation)
        return generation

    def cancel(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._generation += 1
            self._running = False

    def _worker(self, generation: int) -> None:
        ticks = 0
        while self.is_current(generation):
            self._sleep(self.interval)
            if not self.is_current(generation):
                return
            ticks += 1
            if self.heartbeat and self.logger and ticks % self.heartbeat == 0:
                self.logger.info(f"[clock-heartbeat] generation={generation} ticks={ticks}")
            self._on_tick(generation)
