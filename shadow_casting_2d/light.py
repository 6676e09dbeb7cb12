"""
Light class and linear-falloff hook built on top of a ShadowCaster.
"""
from typing import Callable

import numpy as np

from .caster import ShadowCaster

LightCallback = Callable[[float, float, float], None]


def brightness_hook(x0: float, y0: float, power: float, on_light: LightCallback):
    """
    Build an ``on_visible`` hook reporting ``(x, y, brightness)`` to *on_light*.

    Brightness falls off linearly from 1 at the origin ``(x0, y0)`` to 0 at
    ``|power|``. Negative *power* darkens instead of lighting.

    Only diagonal cells carry half brightness per report, since two octants
    report each of them. Axis cells are reported once, by the straight rays,
    and carry the full value.
    """
    radius = abs(power)
    sign = -1.0 if power < 0 else 1.0

    def on_visible(state, x, y, distance):
        brightness = 1.0 if distance == 0 else 1.0 - distance / radius
        dx = x - x0
        dy = y - y0
        if dx != 0 and abs(dx) == abs(dy):
            brightness *= 0.5
        on_light(x, y, sign * brightness)
        return state

    return on_visible


class Light:
    """Point light at ``(x, y)`` reaching ``|power|`` cells; negative power darkens."""

    def __init__(self, x: float, y: float, power: float):
        self.x = x
        self.y = y
        self.power = float(power)

    @property
    def radius(self) -> float:
        return abs(self.power)

    def illuminate(self, caster: ShadowCaster, on_light: LightCallback) -> None:
        """Report the brightness this light casts on every cell it reaches."""
        hook = brightness_hook(self.x, self.y, self.power, on_light)
        caster.report(None, self.x, self.y, self.radius, hook)

    def accumulate(self, caster: ShadowCaster, light_map: np.ndarray) -> np.ndarray:
        """Add this light's brightness into ``light_map[x, y]``; off-map cells are ignored."""
        w, h = light_map.shape

        def add(x, y, brightness):
            if 0 <= x < w and 0 <= y < h:
                light_map[int(x), int(y)] += brightness

        self.illuminate(caster, add)
        return light_map
