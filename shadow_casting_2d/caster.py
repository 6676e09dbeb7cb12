"""
User‑facing ShadowCaster class and top‑level helpers.
"""
import dataclasses
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
import structlog
from matplotlib.axes import Axes

from . import _core
from .casting import ShadowCastingParams, evaluate, check_radius, keep_state
from .strategies import chebyshev, euclidean, manhattan

log = structlog.get_logger(__name__)

Event = Tuple[float, float, float]

_METRIC_CODES = {
    euclidean: _core.EUCLIDEAN,
    manhattan: _core.MANHATTAN,
    chebyshev: _core.CHEBYSHEV,
}


def _as_mask(opaque) -> np.ndarray:
    mask = np.asarray(opaque, dtype=np.bool_)
    if mask.ndim != 2:
        raise ValueError("opaque must be 2‑D, indexed [x, y]")
    return mask


def _clip_bounds(bounds, shape) -> Tuple[float, float, float, float]:
    min_x, min_y, max_x, max_y = bounds
    return (max(min_x, 0.0), max(min_y, 0.0),
            min(max_x, float(shape[0] - 1)), min(max_y, float(shape[1] - 1)))


class ShadowCaster:
    """Reusable scanner holding an oracle, bounds, metric, directions and hooks."""

    def __init__(
        self,
        *,
        is_blocked: Optional[Callable] = None,
        opaque: Optional[np.ndarray] = None,
        bounds: Optional[Sequence[float]] = None,
        directions: Optional[Sequence[Sequence[int]]] = None,
        metric: Optional[Callable[[float, float], float]] = None,
        on_start: Optional[Callable] = None,
        on_visible: Optional[Callable] = None,
        on_end: Optional[Callable] = None,
    ) -> None:
        # Choose representation mode
        if is_blocked is not None and opaque is not None:
            raise ValueError("Specify either is_blocked or opaque, not both.")
        options = dict(
            is_blocked=is_blocked,
            bounds=bounds,
            directions=directions,
            metric=metric,
            on_start=on_start,
            on_visible=on_visible,
            on_end=on_end,
        )
        if opaque is not None:
            self.opaque = _as_mask(opaque)
            options["is_blocked"] = self._mask_blocked
        elif is_blocked is not None:
            self.opaque = None
        else:
            raise ValueError("Must specify either is_blocked or opaque.")

        params = ShadowCastingParams(**{k: v for k, v in options.items() if v is not None})
        if self.opaque is not None:
            params = dataclasses.replace(
                params, bounds=_clip_bounds(params.bounds, self.opaque.shape))
        self.params = params

    def _mask_blocked(self, state, x, y) -> bool:
        w, h = self.opaque.shape
        if not (0 <= x < w and 0 <= y < h):
            return True
        return bool(self.opaque[int(x), int(y)])

    # ---------------------------------------------------------------------
    # Scans
    # ---------------------------------------------------------------------
    def evaluate(self, state, x0: float, y0: float, radius: float):
        """Fold *state* through this caster's hooks; see :func:`evaluate`."""
        return evaluate(state, x0, y0, radius, self.params)

    def report(self, state, x0: float, y0: float, radius: float, on_visible: Callable):
        """
        Scan with this caster's oracle, bounds, metric and directions, folding
        *state* through *on_visible* only. The caster's own ``on_start``,
        ``on_visible`` and ``on_end`` are not called.
        """
        return evaluate(state, x0, y0, radius, self.params,
                        on_start=keep_state, on_visible=on_visible, on_end=keep_state)

    def events(self, x0: float, y0: float, radius: float) -> List[Event]:
        """Return every ``(x, y, distance)`` report in the order it happened."""
        def record(events, x, y, distance):
            events.append((x, y, distance))
            return events

        return self.report([], x0, y0, radius, record)

    def visible_cells(self, x0: float, y0: float, radius: float) -> Dict[Tuple[float, float], float]:
        """Map each visible cell to its distance from the origin."""
        func_log = log.bind(origin=(x0, y0), radius=radius)
        start_time = time.perf_counter()
        cells = {}
        for x, y, distance in self.events(x0, y0, radius):
            cells[(x, y)] = distance
        func_log.debug(
            "visible cells computed",
            duration_ms=f"{(time.perf_counter() - start_time) * 1000:.2f}",
            visible_count=len(cells),
        )
        return cells

    def visibility_map(self, x0: int, y0: int, radius: float) -> np.ndarray:
        """
        Rasterize a scan over the opacity array.

        Returns a float array shaped like ``opaque`` holding the distance of
        each visible cell and NaN elsewhere. Built-in metrics run the Numba
        kernel; any other metric goes through :meth:`report`. Hooks are not
        called either way.
        """
        if self.opaque is None:
            raise ValueError("visibility_map needs a caster built from an opaque array")
        radius = check_radius(radius)
        func_log = log.bind(origin=(x0, y0), radius=radius, grid_shape=self.opaque.shape)
        start_time = time.perf_counter()

        out = np.full(self.opaque.shape, np.nan, dtype=np.float64)
        code = _METRIC_CODES.get(self.params.metric)
        if code is not None:
            _core._scan_mask(
                self.opaque,
                int(x0),
                int(y0),
                radius,
                np.asarray(self.params.bounds, dtype=np.float64),
                np.asarray(self.params.directions, dtype=np.int64).reshape(-1, 4),
                code,
                out,
            )
        else:
            w, h = out.shape

            def mark(state, x, y, distance):
                if 0 <= x < w and 0 <= y < h:
                    state[int(x), int(y)] = distance
                return state

            self.report(out, x0, y0, radius, mark)

        func_log.debug(
            "visibility map computed",
            native=code is not None,
            duration_ms=f"{(time.perf_counter() - start_time) * 1000:.2f}",
            visible_count=int(np.count_nonzero(~np.isnan(out))),
        )
        return out

    # ---------------------------------------------------------------------
    # Visualization
    # ---------------------------------------------------------------------
    def plot(
        self,
        distances: np.ndarray,
        ax: Optional[Axes] = None,
        cmap: str = 'viridis_r',
        occluder_color: str = 'k',
        show: bool = True,
    ) -> Axes:
        """Plot a visibility map with x to the right and y downward, occluders on top."""
        if ax is None:
            fig = plt.figure()
            ax = fig.add_subplot(111)

        ax.imshow(np.ma.masked_invalid(distances).T, cmap=cmap, origin='upper',
                  interpolation='nearest')
        if self.opaque is not None:
            ys, xs = np.nonzero(self.opaque.T)
            ax.scatter(xs, ys, marker='s', c=occluder_color)
        ax.set_xlabel('x')
        ax.set_ylabel('y')

        if show:
            plt.show()
        return ax


# -------------------------------------------------------------------------
# Convenience top‑level helpers
# -------------------------------------------------------------------------
def visible_cells(is_blocked, x0, y0, radius, **options):
    """One-shot :meth:`ShadowCaster.visible_cells` for an oracle function."""
    return ShadowCaster(is_blocked=is_blocked, **options).visible_cells(x0, y0, radius)


def visibility_map(
    opaque,
    x0,
    y0,
    radius,
    *,
    bounds=None,
    directions=None,
    metric=None,
) -> np.ndarray:
    """One-shot :meth:`ShadowCaster.visibility_map` for a boolean array."""
    caster = ShadowCaster(opaque=opaque, bounds=bounds, directions=directions, metric=metric)
    return caster.visibility_map(x0, y0, radius)
