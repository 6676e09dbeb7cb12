import math

import numpy as np
import pytest

from shadow_casting_2d import (
    DIRECTIONS_8,
    ShadowCastingParams,
    chebyshev,
    evaluate,
    manhattan,
)


def never_blocked(state, x, y):
    return False


def collect(events, x, y, distance):
    return events + [(x, y, distance)]


def scan(radius, is_blocked=never_blocked, x0=0, y0=0, **options):
    return evaluate([], x0, y0, radius,
                    is_blocked=is_blocked, on_visible=collect, **options)


def cells(events):
    return {(x, y) for x, y, _ in events}


def disk(r, x0=0, y0=0):
    return {(x0 + dx, y0 + dy)
            for dx in range(-r, r + 1)
            for dy in range(-r, r + 1)
            if dx * dx + dy * dy <= r * r}


AXIS_3X3 = {(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)}


def test_origin_reported_first_and_once():
    events = scan(4)
    assert events[0] == (0, 0, 0)
    assert [e[:2] for e in events].count((0, 0)) == 1


def test_open_field_radius_3_has_29_cells():
    assert len(cells(scan(3))) == 29
    assert cells(scan(3)) == disk(3)


@pytest.mark.parametrize("radius", range(0, 8))
def test_open_field_matches_euclidean_disk(radius):
    assert cells(scan(radius, x0=5, y0=-3)) == disk(radius, 5, -3)


def test_visible_set_grows_with_radius():
    for r1, r2 in [(1, 2), (2, 5), (3, 4)]:
        assert cells(scan(r1)) <= cells(scan(r2))


def test_blocker_on_axis_hides_the_ray_behind_it():
    seen = cells(scan(3, lambda s, x, y: (x, y) == (1, 0)))
    assert (1, 0) in seen
    assert (2, 0) not in seen
    assert (3, 0) not in seen
    assert {(1, 1), (1, -1)} <= seen
    assert seen == disk(3) - {(2, 0), (3, 0)}


def test_blocker_casts_a_cone_inside_its_octant():
    seen = cells(scan(4, lambda s, x, y: (x, y) == (2, 1)))
    # the occluder itself and the cells beside it stay visible
    assert {(1, 1), (2, 2), (2, 1), (2, -1), (3, -1), (3, 0), (4, 0)} <= seen
    # the cells behind it do not
    assert not {(3, 1), (4, 1), (4, 2)} & seen
    assert seen <= disk(4)
    untouched = {(x, y) for x, y in disk(4) if x <= 0 or y <= 0 or y >= x}
    assert untouched <= seen


def test_default_oracle_blocks_everything():
    events = evaluate([], 0, 0, 5, on_visible=collect)
    assert cells(events) == AXIS_3X3


def test_oracle_receives_the_latest_state():
    def mark(state, x, y, distance):
        return state | {(x, y)}

    def seen_blocks(state, x, y):
        return (x, y) in state

    final = evaluate(frozenset(), 0, 0, 5, is_blocked=seen_blocks, on_visible=mark)
    assert final == AXIS_3X3

    final = evaluate(frozenset(), 0, 0, 5, is_blocked=never_blocked, on_visible=mark)
    assert final == disk(5)


def test_cardinal_rays_come_last_in_fixed_order():
    events = scan(2)
    assert events[-8:] == [
        (1, 0, 1), (2, 0, 2),
        (-1, 0, 1), (-2, 0, 2),
        (0, 1, 1), (0, 2, 2),
        (0, -1, 1), (0, -2, 2),
    ]


def test_hooks_fold_in_order():
    def on_start(state, x, y):
        return state + [("start", x, y)]

    def on_visible(state, x, y, distance):
        return state + [("visible", x, y, distance)]

    def on_end(state):
        return state + [("end",)]

    result = evaluate([], 2, 3, 1, is_blocked=never_blocked,
                      on_start=on_start, on_visible=on_visible, on_end=on_end)
    assert result[0] == ("start", 2, 3)
    assert result[1] == ("visible", 2, 3, 0)
    assert result[-1] == ("end",)
    assert sum(1 for entry in result if entry[0] == "end") == 1


def test_manhattan_and_chebyshev_shapes():
    diamond = {(dx, dy) for dx in range(-2, 3) for dy in range(-2, 3)
               if abs(dx) + abs(dy) <= 2}
    assert cells(scan(2, metric=manhattan)) == diamond

    square = {(dx, dy) for dx in range(-2, 3) for dy in range(-2, 3)}
    assert cells(scan(2, metric=chebyshev)) == square


def test_octant_distances_come_from_the_metric():
    distances = {(x, y): d for x, y, d in scan(3)}
    assert distances[(1, 1)] == pytest.approx(math.sqrt(2))
    assert distances[(2, 1)] == pytest.approx(math.sqrt(5))
    assert distances[(-3, 0)] == 3


def test_bounds_skip_cells_but_rays_report_their_first_step():
    seen = cells(scan(3, bounds=(0, 0, 10, 10)))
    quadrant = {(x, y) for x, y in disk(3) if x >= 0 and y >= 0}
    assert seen == quadrant | {(-1, 0), (0, -1)}


def test_bounds_excluding_everything():
    seen = cells(scan(3, bounds=(5, 5, 10, 10)))
    assert seen == {(0, 0), (1, 0), (-1, 0), (0, 1), (0, -1)}


def test_radius_zero_reports_only_origin():
    assert scan(0) == [(0, 0, 0)]


def test_fractional_radius():
    assert cells(scan(2.5)) == {(dx, dy) for dx, dy in disk(3)
                                if dx * dx + dy * dy <= 6.25}


def test_custom_direction_table():
    seen = cells(scan(2, directions=[(1, 0, 0, 1)]))
    axes = {(i, 0) for i in range(-2, 3)} | {(0, i) for i in range(-2, 3)}
    assert seen == axes | {(-1, -1)}


def test_options_override_params():
    params = ShadowCastingParams(is_blocked=never_blocked)
    events = evaluate([], 0, 0, 1, params, on_visible=collect)
    assert cells(events) == disk(1)
    # the original bundle is left alone
    assert evaluate([], 0, 0, 1, params) == []


@pytest.mark.parametrize("radius", [-1, math.inf, math.nan])
def test_invalid_radius(radius):
    with pytest.raises(ValueError):
        scan(radius)


def test_invalid_bounds():
    with pytest.raises(ValueError):
        ShadowCastingParams(bounds=(0, 0, 1))


def test_invalid_direction():
    with pytest.raises(ValueError):
        ShadowCastingParams(directions=[(1, 0, 0)])


def test_non_callable_hook():
    with pytest.raises(TypeError):
        ShadowCastingParams(on_visible=42)


def test_hook_exceptions_propagate():
    def boom(state, x, y, distance):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        evaluate(None, 0, 0, 2, is_blocked=never_blocked, on_visible=boom)


def _random_blockers(seed, size=6, density=0.2):
    rng = np.random.default_rng(seed)
    return {(x, y)
            for x in range(-size, size + 1)
            for y in range(-size, size + 1)
            if (x, y) != (0, 0) and rng.random() < density}


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_symmetric_under_reflection(seed):
    blockers = _random_blockers(seed)
    seen = cells(scan(6, lambda s, x, y: (x, y) in blockers))

    mirrored = {(-x, y) for x, y in blockers}
    seen_m = cells(scan(6, lambda s, x, y: (x, y) in mirrored))
    assert seen_m == {(-x, y) for x, y in seen}

    flipped = {(y, x) for x, y in blockers}
    seen_f = cells(scan(6, lambda s, x, y: (x, y) in flipped))
    assert seen_f == {(y, x) for x, y in seen}


def test_identical_inputs_identical_events():
    blockers = _random_blockers(3)

    def run():
        return scan(6, lambda s, x, y: (x, y) in blockers)

    assert run() == run()


def test_every_default_octant_is_scanned():
    assert len(DIRECTIONS_8) == 8
    seen = cells(scan(3))
    for xx, xy, yx, yy in DIRECTIONS_8:
        # local (dx, dy) = (-1, -2) lands strictly inside each octant
        assert (xx * -1 + xy * -2, yx * -1 + yy * -2) in seen
