from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


PHASE_ACTIVE = 'active'
PHASE_LOCKED = 'locked'

VERDICT_CORRECT = 'correct'
VERDICT_INCORRECT = 'incorrect'
VERDICT_TIMEOUT = 'timeout'

DEFAULT_TIMER_DURATION_SEC = 30
MAX_SELECTED_POINTS = 2


@dataclass(frozen=True)
class GridPoint:
    x: int
    y: int

    def to_dict(self):
        return {'x': self.x, 'y': self.y}


@dataclass(frozen=True)
class Line:
    """Line through the y-intercept point ``a`` (a.x == 0) and a second point ``b``."""
    a: GridPoint
    b: GridPoint

    def __post_init__(self):
        if self.b.x == self.a.x:
            raise ValueError(f"vertical line through {self.a} and {self.b} has no slope-intercept form")

    @property
    def k(self) -> float:
        return (self.b.y - self.a.y) / (self.b.x - self.a.x)

    @property
    def m(self) -> float:
        # a.x is 0 for generated lines; evaluate at x=0 for any other pair
        return self.a.y - self.k * self.a.x

    def to_dict(self):
        return {'a': self.a.to_dict(), 'b': self.b.to_dict(), 'k': self.k, 'm': self.m}


@dataclass(frozen=True)
class TimerConfig:
    enabled: bool = False
    duration_seconds: int = DEFAULT_TIMER_DURATION_SEC

    @classmethod
    def parse(cls, raw: Optional[Dict[str, Any]], default_duration: int = DEFAULT_TIMER_DURATION_SEC) -> 'TimerConfig':
        """Build a config from settings-control values.

        The duration falls back to ``default_duration`` when it is missing,
        not a number, or not positive.
        """
        raw = raw or {}
        enabled = raw.get('enabled', False)
        if isinstance(enabled, str):
            enabled = enabled.strip().lower() in ('1', 'true', 'yes', 'on')
        duration = raw.get('duration_seconds', raw.get('durationSeconds'))
        try:
            duration = int(float(duration))
        except (TypeError, ValueError, OverflowError):
            duration = default_duration
        if duration <= 0:
            duration = default_duration
        return cls(enabled=bool(enabled), duration_seconds=duration)

    def to_dict(self):
        return {'enabled': self.enabled, 'duration_seconds': self.duration_seconds}


@dataclass
class TimerState:
    remaining: int = 0
    active: bool = False

    def to_dict(self):
        return {'remaining': self.remaining if self.active else None, 'active': self.active}


@dataclass
class RoundState:
    """Everything the board needs to render the current round.

    Mutated only by the round controller; presentation code reads
    ``to_dict()`` snapshots.
    """
    line: Optional[Line] = None
    selected: List[GridPoint] = field(default_factory=list)
    hover: Optional[GridPoint] = None
    locked: bool = False
    wins: int = 0
    losses: int = 0
    round_number: int = 0
    settings_frozen: bool = False
    last_verdict: Optional[str] = None
    timer: TimerState = field(default_factory=TimerState)
    timer_config: TimerConfig = field(default_factory=TimerConfig)

    @property
    def phase(self) -> str:
        return PHASE_LOCKED if self.locked else PHASE_ACTIVE

    def to_dict(self):
        return {
            'round_number': self.round_number,
            'phase': self.phase,
            'locked': self.locked,
            # Generating points stay hidden until the verdict is shown
            'line': {'k': self.line.k, 'm': self.line.m} if self.line else None,
            'selected': [
                dict(p.to_dict(), label=chr(ord('A') + idx)) for idx, p in enumerate(self.selected)
            ],
            'hover': self.hover.to_dict() if self.hover else None,
            'wins': self.wins,
            'losses': self.losses,
            'settings_frozen': self.settings_frozen,
            'last_verdict': self.last_verdict,
            'timer': self.timer.to_dict(),
            'timer_config': self.timer_config.to_dict(),
        }
