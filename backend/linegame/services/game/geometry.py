"""Coordinate geometry for the board.

Grid coordinates are integer math coordinates with y growing upwards;
viewport coordinates are canvas pixels with y growing downwards and the
origin at the canvas centre.
"""

import math
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from linegame.models import GridPoint, Line


DEFAULT_CLICK_TOLERANCE = 0.3
DEFAULT_ON_LINE_EPSILON = 1e-3
DEFAULT_CLIP_EPSILON = 1e-3


@dataclass(frozen=True)
class Viewport:
    width: float = 500.0
    height: float = 500.0
    unit: float = 40.0

    @property
    def origin(self) -> Tuple[float, float]:
        return (self.width / 2, self.height / 2)

    @classmethod
    def from_config(cls, config) -> 'Viewport':
        return cls(
            width=float(config.get('VIEWPORT_WIDTH_PX', 500)),
            height=float(config.get('VIEWPORT_HEIGHT_PX', 500)),
            unit=float(config.get('UNIT_SIZE_PX', 40)),
        )


DEFAULT_VIEWPORT = Viewport()


def grid_to_viewport(x: float, y: float, viewport: Viewport = DEFAULT_VIEWPORT) -> Tuple[float, float]:
    ox, oy = viewport.origin
    return (ox + x * viewport.unit, oy - y * viewport.unit)


def viewport_to_grid(vx: float, vy: float, viewport: Viewport = DEFAULT_VIEWPORT) -> Tuple[float, float]:
    ox, oy = viewport.origin
    return ((vx - ox) / viewport.unit, (oy - vy) / viewport.unit)


def snap_and_validate(
    x: float,
    y: float,
    coord_min: int,
    coord_max: int,
    tolerance: float = DEFAULT_CLICK_TOLERANCE,
) -> Optional[GridPoint]:
    """Snap real grid coordinates to the nearest grid point.

    Returns None when either axis is further than ``tolerance`` from the
    nearest integer, or when the snapped point falls off the board.
    """
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    gx, gy = round(x), round(y)
    if abs(x - gx) > tolerance or abs(y - gy) > tolerance:
        return None
    if not (coord_min <= gx <= coord_max and coord_min <= gy <= coord_max):
        return None
    return GridPoint(int(gx), int(gy))


def generate_line(coord_min: int, coord_max: int, rng: Optional[random.Random] = None) -> Line:
    """Random non-vertical line through (0, m) and another grid point."""
    rng = rng or random
    a = GridPoint(0, rng.randint(coord_min, coord_max))
    b = GridPoint(rng.randint(coord_min, coord_max), rng.randint(coord_min, coord_max))
    while b.x == a.x:
        b = GridPoint(rng.randint(coord_min, coord_max), rng.randint(coord_min, coord_max))
    return Line(a, b)


def is_on_line(p: GridPoint, line: Line, eps: float = DEFAULT_ON_LINE_EPSILON) -> bool:
    return abs(p.y - (line.k * p.x + line.m)) < eps


def clip_line_to_box(
    p1: GridPoint,
    p2: GridPoint,
    coord_min: float,
    coord_max: float,
    eps: float = DEFAULT_CLIP_EPSILON,
) -> List[Tuple[float, float]]:
    """Intersect the infinite line through p1 and p2 with the board edges.

    Edges are tried in the order x=min, x=max, y=min, y=max and the first two
    distinct hits are returned, so a line through a corner yields that corner
    once.
    """
    if p1 == p2:
        raise ValueError(f"cannot clip a line through a single point {p1}")
    a = p2.y - p1.y
    b = p1.x - p2.x
    c = -(a * p1.x + b * p1.y)

    candidates = []
    if b != 0:
        for x in (coord_min, coord_max):
            candidates.append((x, -(a * x + c) / b))
    if a != 0:
        for y in (coord_min, coord_max):
            candidates.append((-(b * y + c) / a, y))

    hits: List[Tuple[float, float]] = []
    for px, py in candidates:
        if not (coord_min - eps <= px <= coord_max + eps and coord_min - eps <= py <= coord_max + eps):
            continue
        if any(abs(px - hx) <= eps and abs(py - hy) <= eps for hx, hy in hits):
            continue
        hits.append((px, py))
        if len(hits) == 2:
            break
    return hits


def segment_to_dict(segment: List[Tuple[float, float]], viewport: Viewport = DEFAULT_VIEWPORT):
    """Serialize a clipped segment in both grid and viewport coordinates."""
    out = []
    for gx, gy in segment:
        vx, vy = grid_to_viewport(gx, gy, viewport)
        out.append({'x': gx, 'y': gy, 'vx': vx, 'vy': vy})
    return out
