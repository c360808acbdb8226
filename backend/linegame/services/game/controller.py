"""Round lifecycle for the find-the-line game.

A round is ``active`` while the player picks points and ``locked`` while the
verdict is on screen. Leaving ``active`` always cancels the countdown, and the
next round starts after ``ROUND_ADVANCE_DELAY_MS``.
"""

import logging
import random
import threading
from typing import Any, Dict, Optional

from linegame.models import (
    GridPoint,
    Line,
    MAX_SELECTED_POINTS,
    RoundState,
    TimerConfig,
    VERDICT_CORRECT,
    VERDICT_TIMEOUT,
)
from .geometry import (
    DEFAULT_CLICK_TOLERANCE,
    DEFAULT_ON_LINE_EPSILON,
    Viewport,
    clip_line_to_box,
    generate_line,
    segment_to_dict,
    snap_and_validate,
    viewport_to_grid,
)
from .scheduler import ScheduledCall
from .scoring import equation_values, judge_selection, record_verdict
from .timer import CountdownTimer


SEVERITY_INFO = 'info'
SEVERITY_SUCCESS = 'success'
SEVERITY_WARNING = 'warning'
SEVERITY_ERROR = 'error'

MSG_SELECT_TWO = 'Select exactly two points before submitting.'
MSG_CORRECT = 'Correct! Both points lie on the line.'
MSG_INCORRECT = 'Not quite. At least one point is off the line.'
MSG_TIMEOUT = 'Out of time!'


class RoundListener:
    """Outbound notifications; subclasses override what they need."""

    def on_feedback(self, message: str, severity: str) -> None:
        pass

    def on_score_changed(self, wins: int, losses: int) -> None:
        pass

    def on_timer_tick(self, remaining: Optional[int]) -> None:
        pass

    def on_state_changed(self, snapshot: Dict[str, Any]) -> None:
        pass


class RoundController:
    def __init__(self, config, scheduler, listener: Optional[RoundListener] = None,
                 rng: Optional[random.Random] = None, logger: Optional[logging.Logger] = None):
        self.config = config
        self.scheduler = scheduler
        self.listener = listener or RoundListener()
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger('linegame')
        self.coord_min = int(config.get('COORD_MIN', -6))
        self.coord_max = int(config.get('COORD_MAX', 6))
        self.tolerance = float(config.get('CLICK_TOLERANCE', DEFAULT_CLICK_TOLERANCE))
        self.eps = float(config.get('ON_LINE_EPSILON', DEFAULT_ON_LINE_EPSILON))
        self.advance_delay = int(config.get('ROUND_ADVANCE_DELAY_MS', 3000)) / 1000.0
        self.default_duration = int(config.get('TIMER_DEFAULT_SEC', 30))
        self.viewport = Viewport.from_config(config)

        self.state = RoundState(timer_config=TimerConfig(
            enabled=bool(config.get('TIMER_ENABLED_DEFAULT', False)),
            duration_seconds=self.default_duration,
        ))
        self.timer = CountdownTimer(
            self,
            on_tick=self._timer_tick,
            on_expire=self.timer_expired,
            tick_seconds=float(config.get('TIMER_TICK_SEC', 1)),
        )
        self.state.timer = self.timer.state
        self._advance: Optional[ScheduledCall] = None
        # Scheduler callbacks and request handlers may run on different threads
        self._lock = threading.RLock()

    # ---- Round lifecycle ----

    def start(self, line: Optional[Line] = None) -> None:
        with self._lock:
            self._start_round(line)

    def new_round(self, line: Optional[Line] = None) -> None:
        """Abandon the current round (or the verdict delay) and deal a new line."""
        with self._lock:
            self._cancel_advance()
            self.timer.cancel()
            self._start_round(line)

    def call_later(self, delay: float, fn, label: str = '') -> ScheduledCall:
        """Schedule ``fn`` so that it runs under the controller lock.

        Cancellation is re-checked once the lock is held, since a worker may
        have been waiting on it while the call was cancelled.
        """
        handle = None

        def _run():
            with self._lock:
                if handle is not None and handle.cancelled:
                    return
                fn()
        handle = self.scheduler.call_later(delay, _run, label=label)
        return handle

    def _start_round(self, line: Optional[Line] = None) -> None:
        self._advance = None
        state = self.state
        state.line = line or generate_line(self.coord_min, self.coord_max, self.rng)
        state.selected = []
        state.hover = None
        state.locked = False
        state.last_verdict = None
        state.round_number += 1
        self.logger.info(
            f"[round-start] round={state.round_number} k={state.line.k:g} m={state.line.m:g} "
            f"timer={'on' if state.timer_config.enabled else 'off'}"
        )
        self._apply_timer_config()
        self._notify_state()

    def _apply_timer_config(self) -> None:
        cfg = self.state.timer_config
        if cfg.enabled:
            self.logger.info(f"[timer-set] round={self.state.round_number} duration={cfg.duration_seconds}s")
            self.timer.start(cfg.duration_seconds)
        else:
            self.timer.cancel()
            self.listener.on_timer_tick(None)

    def _schedule_advance(self) -> None:
        self._cancel_advance()
        self._advance = self.call_later(self.advance_delay, self._advance_elapsed, label='round-advance')

    def _cancel_advance(self) -> None:
        if self._advance is not None:
            self._advance.cancel()
            self._advance = None

    def _advance_elapsed(self) -> None:
        if not self.state.locked:
            return
        self._start_round()

    # ---- Input ----

    def pointer_select(self, vx: float, vy: float) -> bool:
        x, y = viewport_to_grid(vx, vy, self.viewport)
        point = snap_and_validate(x, y, self.coord_min, self.coord_max, self.tolerance)
        if point is None:
            return False
        return self.select_point(point)

    def pointer_hover(self, vx: float, vy: float) -> None:
        x, y = viewport_to_grid(vx, vy, self.viewport)
        self.hover_point(snap_and_validate(x, y, self.coord_min, self.coord_max, self.tolerance))

    def select_point(self, point: GridPoint) -> bool:
        """Add a point to the selection; returns False when the click is ignored."""
        with self._lock:
            state = self.state
            if state.locked or point in state.selected or len(state.selected) >= MAX_SELECTED_POINTS:
                return False
            if not (self.coord_min <= point.x <= self.coord_max and self.coord_min <= point.y <= self.coord_max):
                return False
            state.selected.append(point)
            self._notify_state()
            return True

    def hover_point(self, point: Optional[GridPoint]) -> None:
        with self._lock:
            if self.state.locked or self.state.hover == point:
                return
            self.state.hover = point
            self._notify_state()

    def submit_answer(self) -> Optional[str]:
        """Judge the current selection.

        Returns the verdict, or None if the submit was rejected.
        """
        with self._lock:
            state = self.state
            if state.locked:
                return None
            if not state.settings_frozen:
                state.settings_frozen = True
                self.logger.info(
                    f"[settings-frozen] timer={'on' if state.timer_config.enabled else 'off'} "
                    f"duration={state.timer_config.duration_seconds}s"
                )
            if len(state.selected) != MAX_SELECTED_POINTS:
                self.listener.on_feedback(MSG_SELECT_TWO, SEVERITY_WARNING)
                self._notify_state()
                return None
            was_counting = self.timer.active
            self.timer.cancel()
            if was_counting:
                self.listener.on_timer_tick(None)
            verdict = judge_selection(state.line, state.selected, self.eps)
            record_verdict(state, verdict)
            self.logger.info(
                f"[verdict] round={state.round_number} verdict={verdict} "
                f"points={[(p.x, p.y) for p in state.selected]} wins={state.wins} losses={state.losses}"
            )
            if verdict == VERDICT_CORRECT:
                self.listener.on_feedback(MSG_CORRECT, SEVERITY_SUCCESS)
            else:
                self.listener.on_feedback(MSG_INCORRECT, SEVERITY_ERROR)
            self._finish_round()
            return verdict

    def timer_expired(self) -> None:
        with self._lock:
            state = self.state
            if state.locked or not state.timer_config.enabled:
                self.logger.info(f"[timer-abort] round={state.round_number} expiry ignored")
                return
            self.logger.info(f"[timer-fire] round={state.round_number} out of time")
            self.timer.cancel()
            record_verdict(state, VERDICT_TIMEOUT)
            self.listener.on_feedback(MSG_TIMEOUT, SEVERITY_ERROR)
            self._finish_round()

    def _finish_round(self) -> None:
        self.listener.on_score_changed(self.state.wins, self.state.losses)
        self._schedule_advance()
        self._notify_state()

    # ---- Settings ----

    def apply_settings(self, settings) -> bool:
        """Replace the timer config unless it has been frozen by a submit.

        While the round is active a changed config restarts the countdown.
        """
        with self._lock:
            state = self.state
            if state.settings_frozen:
                return False
            if not isinstance(settings, TimerConfig):
                settings = TimerConfig.parse(settings, self.default_duration)
            state.timer_config = settings
            if not state.locked and state.line is not None:
                self._apply_timer_config()
            self._notify_state()
            return True

    # ---- Queries ----

    def get_round_state(self) -> Dict[str, Any]:
        with self._lock:
            snapshot = self.state.to_dict()
            if self.state.locked and self.state.line is not None:
                line = self.state.line
                snapshot['solution'] = {
                    'a': line.a.to_dict(),
                    'b': line.b.to_dict(),
                    'segment': segment_to_dict(
                        clip_line_to_box(line.a, line.b, self.coord_min, self.coord_max), self.viewport
                    ),
                }
                if len(self.state.selected) == MAX_SELECTED_POINTS:
                    p1, p2 = self.state.selected
                    snapshot['player_line'] = segment_to_dict(
                        clip_line_to_box(p1, p2, self.coord_min, self.coord_max), self.viewport
                    )
            return snapshot

    def get_equation(self, line: Optional[Line] = None) -> Optional[Dict[str, Any]]:
        line = line or self.state.line
        return equation_values(line) if line is not None else None

    def close(self) -> None:
        with self._lock:
            self._cancel_advance()
            self.timer.cancel()

    def _timer_tick(self, remaining: Optional[int]) -> None:
        self.listener.on_timer_tick(remaining)

    def _notify_state(self) -> None:
        self.listener.on_state_changed(self.get_round_state())
