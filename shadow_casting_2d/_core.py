"""
Low-level Numba kernel running the shadow-casting scan over a boolean mask.
"""
import math
import numpy as np
from numba import njit

# metric codes understood by the kernel
EUCLIDEAN = 0
MANHATTAN = 1
CHEBYSHEV = 2


@njit(cache=True)
def _distance(metric: int, dx: int, dy: int) -> float:
    if metric == MANHATTAN:
        return float(abs(dx) + abs(dy))
    if metric == CHEBYSHEV:
        return float(max(abs(dx), abs(dy)))
    return math.sqrt(float(dx * dx + dy * dy))


@njit(cache=True)
def _opaque_at(opaque: np.ndarray, x: int, y: int) -> bool:
    """Cells off the array count as opaque."""
    if x < 0 or y < 0 or x >= opaque.shape[0] or y >= opaque.shape[1]:
        return True
    return opaque[x, y]


@njit(cache=True)
def _mark(out: np.ndarray, x: int, y: int, distance: float) -> None:
    if 0 <= x < out.shape[0] and 0 <= y < out.shape[1]:
        out[x, y] = distance


@njit(cache=True)
def _scan_mask(opaque: np.ndarray,
               x0: int, y0: int,
               radius: float,
               bounds: np.ndarray,
               directions: np.ndarray,
               metric: int,
               out: np.ndarray) -> int:
    """
    Shadow-cast from ``(x0, y0)`` over ``opaque[x, y]``.

    Writes the distance of every reported cell into *out* (cells outside
    *out* are counted but not stored) and returns the number of reports.
    No fastmath: slope sums must round exactly like the Python fold.
    """
    min_x = bounds[0]
    min_y = bounds[1]
    max_x = bounds[2]
    max_y = bounds[3]
    last_row = int(math.floor(radius))

    _mark(out, x0, y0, 0.0)
    count = 1

    # 1) Octants
    for k in range(directions.shape[0]):
        xx = directions[k, 0]
        xy = directions[k, 1]
        yx = directions[k, 2]
        yy = directions[k, 3]
        stack = [(1, 1.0, 0.0)]
        while len(stack) > 0:
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
                        d = _distance(metric, dx, dy)
                        if d <= radius:
                            _mark(out, x, y, d)
                            count += 1

                    if blocked:
                        if _opaque_at(opaque, x, y):
                            new_start = right_slope
                        else:
                            blocked = False
                            start = new_start
                    elif _opaque_at(opaque, x, y) and -dy < radius:
                        blocked = True
                        stack.append((-dy + 1, start, left_slope))
                        new_start = right_slope
                if blocked:
                    break

    # 2) Cardinal rays: report first, then stop on bound or occluder
    for k in range(4):
        sx = 1 if k == 0 else (-1 if k == 1 else 0)
        sy = 1 if k == 2 else (-1 if k == 3 else 0)
        for i in range(1, last_row + 1):
            x = x0 + sx * i
            y = y0 + sy * i
            _mark(out, x, y, float(i))
            count += 1
            if not (min_x <= x <= max_x and min_y <= y <= max_y):
                break
            if _opaque_at(opaque, x, y):
                break

    return count
