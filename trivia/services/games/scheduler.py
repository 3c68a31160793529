import logging
import time
from typing import Callable


logger = logging.getLogger(__name__)

# Longest single sleep; a cancelled task notices within this many seconds
MAX_SLEEP_SEC = 1.0


class TimerHandle:
    """A scheduled callback that can be cancelled until it fires."""

    __slots__ = ('when', 'cancelled', 'fired')

    def __init__(self, when: float):
        self.when = when
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class SocketIOScheduler:
    """Runs timers as Flask-SocketIO background tasks.

    Every callback runs while holding ``lock``, the same lock the command
    dispatcher holds, so a timer never interleaves with an inbound action. The
    handle is checked under the lock: once ``cancel()`` has returned inside a
    locked section the callback will not run.
    """

    def __init__(self, socketio, lock):
        self._socketio = socketio
        self._lock = lock

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self.now() + max(0.0, delay))
        self._socketio.start_background_task(self._run, handle, callback)
        return handle

    def _run(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        remaining = handle.when - self.now()
        while remaining > 0 and not handle.cancelled:
            self._socketio.sleep(min(remaining, MAX_SLEEP_SEC))
            remaining = handle.when - self.now()
        if handle.cancelled:
            return
        with self._lock:
            if handle.cancelled:
                return
            handle.fired = True
            try:
                callback()
            except Exception:
                # A background task has nobody to propagate to
                logger.exception(f"[timer-error] callback={getattr(callback, '__qualname__', callback)}")
