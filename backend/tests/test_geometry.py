import itertools
import random

import pytest

from linegame.models import GridPoint, Line, TimerConfig
from linegame.services.game.geometry import (
    Viewport,
    clip_line_to_box,
    generate_line,
    grid_to_viewport,
    is_on_line,
    snap_and_validate,
    viewport_to_grid,
)
from linegame.services.game.scoring import equation_values, judge_selection


COORDS = range(-6, 7)


class ScriptedRandom:
    """Stands in for random.Random with a fixed sequence of randint results."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def randint(self, lo, hi):
        self.calls += 1
        value = self.values.pop(0)
        assert lo <= value <= hi
        return value


def test_viewport_round_trip_for_every_grid_point():
    viewport = Viewport(width=500, height=500, unit=40)
    for x, y in itertools.product(COORDS, COORDS):
        vx, vy = grid_to_viewport(x, y, viewport)
        gx, gy = viewport_to_grid(vx, vy, viewport)
        assert abs(gx - x) <= 1e-9
        assert abs(gy - y) <= 1e-9


def test_grid_to_viewport_flips_y_axis():
    assert grid_to_viewport(0, 0) == (250, 250)
    assert grid_to_viewport(1, 1) == (290, 210)
    assert grid_to_viewport(-6, -6) == (10, 490)


def test_snap_rejects_point_outside_tolerance():
    assert snap_and_validate(2.4, 2.1, -6, 6, tolerance=0.3) is None


def test_snap_accepts_point_within_tolerance():
    assert snap_and_validate(2.2, 2.1, -6, 6, tolerance=0.3) == GridPoint(2, 2)
    assert snap_and_validate(-3.25, 0.3, -6, 6, tolerance=0.3) == GridPoint(-3, 0)


def test_snap_rejects_off_board_points():
    assert snap_and_validate(7.0, 0.0, -6, 6) is None
    assert snap_and_validate(0.1, -6.9, -6, 6) is None
    assert snap_and_validate(6.1, -5.9, -6, 6) == GridPoint(6, -6)


def test_snap_rejects_non_finite_coordinates():
    assert snap_and_validate(float('nan'), 0.0, -6, 6) is None
    assert snap_and_validate(0.0, float('inf'), -6, 6) is None
    assert snap_and_validate(float('-inf'), float('nan'), -6, 6) is None


def test_generate_line_properties_hold_for_many_seeds():
    rng = random.Random(1234)
    for _ in range(500):
        line = generate_line(-6, 6, rng)
        assert line.a.x == 0
        assert line.b.x != line.a.x
        assert -6 <= line.a.y <= 6
        assert -6 <= line.b.x <= 6 and -6 <= line.b.y <= 6
        assert line.m == line.a.y


def test_generate_line_resamples_until_not_vertical():
    rng = ScriptedRandom([1, 0, 3, 0, -2, 2, 4])
    line = generate_line(-6, 6, rng)
    assert line.a == GridPoint(0, 1)
    assert line.b == GridPoint(2, 4)
    assert rng.calls == 7


def test_vertical_line_is_rejected():
    with pytest.raises(ValueError):
        Line(GridPoint(0, 1), GridPoint(0, 5))


def test_slope_and_intercept():
    line = Line(GridPoint(0, 2), GridPoint(3, 5))
    assert line.k == 1
    assert line.m == 2
    assert is_on_line(GridPoint(-2, 0), line)
    assert not is_on_line(GridPoint(1, 1), line)


def test_is_on_line_handles_fractional_slopes():
    line = Line(GridPoint(0, 1), GridPoint(3, 2))
    assert is_on_line(GridPoint(-3, 0), line)
    assert is_on_line(GridPoint(6, 3), line)
    assert not is_on_line(GridPoint(1, 1), line)


def test_clip_returns_two_points_for_every_pair():
    points = [GridPoint(x, y) for x, y in itertools.product(COORDS, COORDS)]
    for p1, p2 in itertools.combinations(points, 2):
        segment = clip_line_to_box(p1, p2, -6, 6)
        assert len(segment) == 2, (p1, p2, segment)
        (x1, y1), (x2, y2) = segment
        assert (x1, y1) != (x2, y2)


def test_clip_checks_edges_in_fixed_order():
    # y = x + 2 hits x=-6 at y=-4 first, then y=6 at x=4
    segment = clip_line_to_box(GridPoint(0, 2), GridPoint(3, 5), -6, 6)
    assert segment == [(-6, -4), (4, 6)]


def test_clip_counts_corner_once():
    segment = clip_line_to_box(GridPoint(0, 0), GridPoint(1, 1), -6, 6)
    assert segment == [(-6, -6), (6, 6)]


def test_clip_vertical_and_horizontal_lines():
    assert clip_line_to_box(GridPoint(2, 0), GridPoint(2, 3), -6, 6) == [(2, -6), (2, 6)]
    assert clip_line_to_box(GridPoint(-1, 4), GridPoint(5, 4), -6, 6) == [(-6, 4), (6, 4)]


def test_clip_same_point_is_an_error():
    with pytest.raises(ValueError):
        clip_line_to_box(GridPoint(1, 1), GridPoint(1, 1), -6, 6)


def test_judge_selection_needs_both_points_on_line():
    line = Line(GridPoint(0, 2), GridPoint(3, 5))
    assert judge_selection(line, [GridPoint(0, 2), GridPoint(3, 5)]) == 'correct'
    assert judge_selection(line, [GridPoint(0, 2), GridPoint(1, 1)]) == 'incorrect'
    assert judge_selection(line, [GridPoint(6, 6), GridPoint(1, 1)]) == 'incorrect'


def test_equation_values_reduce_the_slope():
    assert equation_values(Line(GridPoint(0, 2), GridPoint(3, 5))) == {
        'k': 1.0, 'k_numerator': 1, 'k_denominator': 1, 'm': 2.0,
    }
    values = equation_values(Line(GridPoint(0, 1), GridPoint(-4, -1)))
    assert (values['k_numerator'], values['k_denominator']) == (1, 2)
    assert values['k'] == 0.5
    values = equation_values(Line(GridPoint(0, -3), GridPoint(2, 1)))
    assert (values['k_numerator'], values['k_denominator']) == (2, 1)
    values = equation_values(Line(GridPoint(0, 4), GridPoint(-5, 4)))
    assert (values['k_numerator'], values['k_denominator']) == (0, 1)


@pytest.mark.parametrize('raw, expected', [
    (None, TimerConfig(False, 30)),
    ({'enabled': True, 'duration_seconds': 5}, TimerConfig(True, 5)),
    ({'enabled': 'true', 'durationSeconds': '12'}, TimerConfig(True, 12)),
    ({'enabled': True, 'duration_seconds': 0}, TimerConfig(True, 30)),
    ({'enabled': True, 'duration_seconds': -4}, TimerConfig(True, 30)),
    ({'enabled': True, 'duration_seconds': 'soon'}, TimerConfig(True, 30)),
    ({'enabled': True, 'duration_seconds': 'inf'}, TimerConfig(True, 30)),
    ({'enabled': True, 'duration_seconds': float('inf')}, TimerConfig(True, 30)),
    ({'enabled': True, 'duration_seconds': 'nan'}, TimerConfig(True, 30)),
])
def test_timer_config_parse(raw, expected):
    assert TimerConfig.parse(raw) == expected
