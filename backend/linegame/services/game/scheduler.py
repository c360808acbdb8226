import heapq
import itertools
from typing import Callable, List, Tuple

from linegame import socketio


class ScheduledCall:
    """Handle for a delayed callback; cancelling it before it fires skips it."""

    def __init__(self, delay: float, label: str = ''):
        self.delay = delay
        self.label = label
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class BackgroundScheduler:
    """Runs delayed callbacks on Socket.IO background tasks.

    Each callback runs inside the app context so it can log and emit.
    """

    def __init__(self, app):
        self.app = app

    def call_later(self, delay: float, fn: Callable[[], None], label: str = '') -> ScheduledCall:
        handle = ScheduledCall(delay, label)

        def _worker():
            socketio.sleep(delay)
            if handle.cancelled:
                self.app.logger.debug(f"[timer-abort] {label or 'call'} cancelled before firing")
                return
            handle.fired = True
            with self.app.app_context():
                fn()

        socketio.start_background_task(_worker)
        return handle


class ManualScheduler:
    """Virtual-clock scheduler; time only moves when ``advance`` is called."""

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, ScheduledCall, Callable[[], None]]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, fn: Callable[[], None], label: str = '') -> ScheduledCall:
        handle = ScheduledCall(delay, label)
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle, fn))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due calls in order.

        Calls scheduled while advancing fire too if they fall due in the window.
        """
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, fn = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            handle.fired = True
            fn()
        self.now = target

    def pending(self) -> List[ScheduledCall]:
        return [entry[2] for entry in self._queue if entry[2].pending]
