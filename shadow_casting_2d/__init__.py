"""
2‑D recursive shadow casting: field of view, line of sight and radial light.
"""
from .casting import ShadowCastingParams, UNBOUNDED, always_blocked, evaluate
from .caster import ShadowCaster, visibility_map, visible_cells
from .light import Light, brightness_hook
from .logging_utils import setup_logging
from .strategies import DIRECTIONS_8, chebyshev, euclidean, manhattan

__all__ = [
    "DIRECTIONS_8",
    "Light",
    "ShadowCaster",
    "ShadowCastingParams",
    "UNBOUNDED",
    "always_blocked",
    "brightness_hook",
    "chebyshev",
    "euclidean",
    "evaluate",
    "manhattan",
    "setup_logging",
    "visibility_map",
    "visible_cells",
]
