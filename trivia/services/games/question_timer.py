import math
from typing import Callable, Optional

from .scheduler import TimerHandle


class QuestionTimer:
    """Countdown for the question currently on screen.

    One run at a time: ``start`` always cancels the previous run. A run is a
    1-second tick chain reporting the whole seconds left and one deadline
    callback after exactly ``duration`` seconds. With a fractional duration the
    first tick comes early so each tick lands on a whole second left.
    """

    def __init__(self, scheduler, on_tick: Callable[[int], None], on_deadline: Callable[[], None],
                 is_paused: Callable[[], bool] = lambda: False):
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._on_deadline = on_deadline
        self._is_paused = is_paused
        self._tick_handle: Optional[TimerHandle] = None
        self._deadline_handle: Optional[TimerHandle] = None
        self.seconds_left = 0

    @property
    def running(self) -> bool:
        return self._deadline_handle is not None and self._deadline_handle.pending

    def start(self, duration: float) -> int:
        """Start a run and return the initial tick value."""
        self.cancel()
        duration = max(0.0, duration)
        self.seconds_left = math.ceil(duration)
        if self.seconds_left > 1:
            self._tick_handle = self._scheduler.call_later(duration - (self.seconds_left - 1), self._tick)
        self._deadline_handle = self._scheduler.call_later(duration, self._expire)
        return self.seconds_left

    def cancel(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
            self._deadline_handle = None

    def _tick(self) -> None:
        self._tick_handle = None
        self.seconds_left -= 1
        if self.seconds_left > 1:
            self._tick_handle = self._scheduler.call_later(1, self._tick)
        if not self._is_paused():
            self._on_tick(self.seconds_left)

    def _expire(self) -> None:
        if self._is_paused():
            return
        self.cancel()
        self.seconds_left = 0
        self._on_deadline()
