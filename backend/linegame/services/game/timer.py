from typing import Callable, Optional

from linegame.models import TimerState
from .scheduler import ScheduledCall


class CountdownTimer:
    """Per-round countdown that ticks once per ``tick_seconds``.

    At most one tick is pending at any time: ``start`` cancels the previous
    countdown before scheduling a new one. ``on_expire`` fires exactly once
    when the counter reaches zero.
    """

    def __init__(
        self,
        scheduler,
        on_tick: Callable[[Optional[int]], None],
        on_expire: Callable[[], None],
        tick_seconds: float = 1.0,
    ):
        self.scheduler = scheduler
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.tick_seconds = tick_seconds
        self.state = TimerState()
        self._pending: Optional[ScheduledCall] = None

    @property
    def active(self) -> bool:
        return self.state.active

    def start(self, duration_seconds: int) -> None:
        self.cancel()
        self.state.remaining = int(duration_seconds)
        self.state.active = True
        self.on_tick(self.state.remaining)
        self._schedule_tick()

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self.state.active = False

    def _schedule_tick(self) -> None:
        handle = None

        def _fire():
            self._tick(handle)

        handle = self.scheduler.call_later(self.tick_seconds, _fire, label='timer-tick')
        self._pending = handle

    def _tick(self, handle: Optional[ScheduledCall]) -> None:
        # A tick from a cancelled or superseded countdown must not touch the new one
        if handle is None or handle is not self._pending or handle.cancelled:
            return
        self._pending = None
        if not self.state.active:
            return
        self.state.remaining -= 1
        if self.state.remaining <= 0:
            self.state.remaining = 0
            self.state.active = False
            self.on_tick(0)
            self.on_expire()
            return
        self.on_tick(self.state.remaining)
        self._schedule_tick()
