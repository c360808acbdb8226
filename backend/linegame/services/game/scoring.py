from math import gcd
from typing import Sequence

from linegame.models import (
    GridPoint,
    Line,
    RoundState,
    VERDICT_CORRECT,
    VERDICT_INCORRECT,
    VERDICT_TIMEOUT,
)
from .geometry import DEFAULT_ON_LINE_EPSILON, is_on_line


def judge_selection(line: Line, selected: Sequence[GridPoint], eps: float = DEFAULT_ON_LINE_EPSILON) -> str:
    """Verdict for a two-point answer.

    Both points must lie on the line; one miss fails the round.
    """
    if all(is_on_line(p, line, eps) for p in selected):
        return VERDICT_CORRECT
    return VERDICT_INCORRECT


def record_verdict(state: RoundState, verdict: str) -> None:
    """Apply a verdict to the running tally and lock input for the round."""
    if verdict == VERDICT_CORRECT:
        state.wins += 1
    elif verdict in (VERDICT_INCORRECT, VERDICT_TIMEOUT):
        state.losses += 1
    else:
        raise ValueError(f"unknown verdict {verdict!r}")
    state.last_verdict = verdict
    state.locked = True


def equation_values(line: Line):
    """Numeric parts of y = kx + m for display.

    The slope is also given as a reduced fraction so the front end can show
    "3/2" rather than "1.5".
    """
    num = line.b.y - line.a.y
    den = line.b.x - line.a.x
    if den < 0:
        num, den = -num, -den
    divisor = gcd(num, den) or 1
    return {
        'k': line.k,
        'k_numerator': num // divisor,
        'k_denominator': den // divisor,
        'm': line.m,
    }
