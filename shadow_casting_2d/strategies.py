"""
Pluggable strategies for the scan: distance metrics and direction tables.
"""
import math
from typing import Sequence, Tuple

Direction = Tuple[int, int, int, int]

# (xx, xy, yx, yy): world offset of local (dx, dy) is
#   x = xx*dx + xy*dy,  y = yx*dx + yy*dy
DIRECTIONS_8: Tuple[Direction, ...] = (
    (0, -1, -1, 0),
    (-1, 0, 0, -1),
    (0, 1, -1, 0),
    (1, 0, 0, -1),
    (0, -1, 1, 0),
    (-1, 0, 0, 1),
    (0, 1, 1, 0),
    (1, 0, 0, 1),
)


def manhattan(dx: float, dy: float) -> float:
    """Taxicab distance, |dx| + |dy|."""
    return float(abs(dx) + abs(dy))


def euclidean(dx: float, dy: float) -> float:
    """Straight-line distance; gives round fields of view."""
    return math.sqrt(dx * dx + dy * dy)


def chebyshev(dx: float, dy: float) -> float:
    """King-move distance, max(|dx|, |dy|); gives square fields of view."""
    return float(max(abs(dx), abs(dy)))


def as_direction_table(directions: Sequence[Sequence[float]]) -> Tuple[Direction, ...]:
    """Normalize *directions* into a tuple of 4-tuples, rejecting malformed rows."""
    table = []
    for row in directions:
        row = tuple(row)
        if len(row) != 4:
            raise ValueError(f"direction must be (xx, xy, yx, yy), got {row!r}")
        table.append(row)
    return tuple(table)
