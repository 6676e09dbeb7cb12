"""
Octant-symmetric recursive shadow casting over a 2‑D grid.

Eight 45° wedges are scanned row by row. Each wedge keeps an explicit
stack of ``(row, start, finish)`` slope windows; an occluder splits the
current window and pushes the part left of it one row further out.

Public API
----------
evaluate(initial_state, x0, y0, radius, params=None, **options)
    – fold *initial_state* through the hooks of every visible cell and
      return the final state
ShadowCastingParams
    – frozen bundle of oracle, bounds, directions, metric and hooks
"""
from __future__ import annotations

import dataclasses
import math
from typing import Callable, Generic, Optional, Tuple, TypeVar

from .strategies import DIRECTIONS_8, Direction, as_direction_table, euclidean

T = TypeVar("T")

Bounds = Tuple[float, float, float, float]

UNBOUNDED: Bounds = (-math.inf, -math.inf, math.inf, math.inf)


def always_blocked(state, x, y) -> bool:
    return True


def keep_state(state, *_):
    return state


# --------------------------------------------------------------------------- #
# Configuration
# --------------------------------------------------------------------------- #

@dataclasses.dataclass(frozen=True)
class ShadowCastingParams(Generic[T]):
    """
    Everything a scan needs besides origin, radius and initial state.

    ``is_blocked`` is effectively required: the default reports every cell
    as opaque, so only the origin and its eight neighbours are ever seen.
    """
    is_blocked: Callable[[T, float, float], bool] = always_blocked
    bounds: Bounds = UNBOUNDED
    directions: Tuple[Direction, ...] = DIRECTIONS_8
    metric: Callable[[float, float], float] = euclidean
    on_start: Callable[[T, float, float], T] = keep_state
    on_visible: Callable[[T, float, float, float], T] = keep_state
    on_end: Callable[[T], T] = keep_state

    def __post_init__(self) -> None:
        bounds = tuple(float(b) for b in self.bounds)
        if len(bounds) != 4:
            raise ValueError("bounds must be (min_x, min_y, max_x, max_y)")
        object.__setattr__(self, "bounds", bounds)
        object.__setattr__(self, "directions", as_direction_table(self.directions))
        for name in ("is_blocked", "metric", "on_start", "on_visible", "on_end"):
            if not callable(getattr(self, name)):
                raise TypeError(f"{name} must be callable")

    def in_bounds(self, x: float, y: float) -> bool:
        min_x, min_y, max_x, max_y = self.bounds
        return min_x <= x <= max_x and min_y <= y <= max_y


def check_radius(radius: float) -> float:
    """Return *radius* as float or raise ``ValueError`` if it is unusable."""
    radius = float(radius)
    if not math.isfinite(radius) or radius < 0.0:
        raise ValueError(f"radius must be finite and non-negative, got {radius!r}")
    return radius


# --------------------------------------------------------------------------- #
# Per-octant slope-interval scan
# --------------------------------------------------------------------------- #

def _scan_octant(state, x0, y0, radius, last_row, direction, params):
    xx, xy, yx, yy = direction
    min_x, min_y, max_x, max_y = params.bounds
    is_blocked = params.is_blocked
    metric = params.metric
    on_visible = params.on_visible

    stack = [(1, 1.0, 0.0)]
    while stack:
        row, start, finish = stack.pop()
        if start < finish:
            continue
        new_start = 0.0
        blocked = False
        for dy in range(-row, -last_row - 1, -1):
            inv_plus = 1.0 / (dy + 0.5)
            inv_minus = 1.0 / (dy - 0.5)
            left_slope = (dy - 1.5) * inv_plus
            right_slope = (dy - 0.5) * inv_minus
            xydy = xy * dy
            yydy = yy * dy
            for dx in range(dy, 0):
                x = x0 + dx * xx + xydy
                y = y0 + yx * dx + yydy
                left_slope += inv_plus
                right_slope += inv_minus

                if not (min_x <= x <= max_x and min_y <= y <= max_y) or start < right_slope:
                    pass
                elif finish > left_slope:
                    break
                else:
                    distance = metric(dx, dy)
                    if distance <= radius:
                        state = on_visible(state, x, y, distance)

                if blocked:
                    if is_blocked(state, x, y):
                        new_start = right_slope
                    else:
                        blocked = False
                        start = new_start
                elif is_blocked(state, x, y) and -dy < radius:
                    blocked = True
                    stack.append((-dy + 1, start, left_slope))
                    new_start = right_slope
            if blocked:
                break
    return state


# --------------------------------------------------------------------------- #
# Straight rays along the axes, walked after the octants
# --------------------------------------------------------------------------- #

_CARDINALS = ((1, 0), (-1, 0), (0, 1), (0, -1))


def _cast_cardinals(state, x0, y0, last_row, params):
    is_blocked = params.is_blocked
    on_visible = params.on_visible
    for sx, sy in _CARDINALS:
        for i in range(1, last_row + 1):
            x = x0 + sx * i
            y = y0 + sy * i
            # emitted before the stop test, unlike octant cells
            state = on_visible(state, x, y, i)
            if not params.in_bounds(x, y) or is_blocked(state, x, y):
                break
    return state


# --------------------------------------------------------------------------- #
# Public entry point
# --------------------------------------------------------------------------- #

def evaluate(initial_state: T,
             x0: float,
             y0: float,
             radius: float,
             params: Optional[ShadowCastingParams[T]] = None,
             **options) -> T:
    """
    Scan everything visible from ``(x0, y0)`` within *radius* and return the
    folded state.

    Parameters
    ----------
    initial_state : anything; passed to ``on_start`` and threaded onward
    x0, y0        : origin cell
    radius        : inclusive, finite, non-negative
    params        : a :class:`ShadowCastingParams`; keyword *options* name
                    its fields and override it (or build one when omitted)

    The origin is reported first at distance 0, then the octants in
    direction-table order, then the +x, -x, +y, -y rays. ``is_blocked``
    always sees the latest folded state.
    """
    if params is None:
        params = ShadowCastingParams(**options)
    elif options:
        params = dataclasses.replace(params, **options)
    radius = check_radius(radius)
    last_row = math.floor(radius)

    state = params.on_start(initial_state, x0, y0)
    state = params.on_visible(state, x0, y0, 0)
    for direction in params.directions:
        state = _scan_octant(state, x0, y0, radius, last_row, direction, params)
    state = _cast_cardinals(state, x0, y0, last_row, params)
    return params.on_end(state)
