"""Branch-mining layouts composed from shaft / cap / poke primitives.

Every layout is a central corridor along ``base_direction`` with branch pairs
leaving it perpendicularly every ``spacing`` blocks. Offsets are arranged so
that no two calls in one composition sample the same coordinate: the corridor
slice at each branch origin, the slice after it and the slice before the next
origin are sampled by ``expand_corridor`` itself, and only the span between
them goes through the generic ``shaft`` sampler.
"""

from __future__ import annotations

import logging
from typing import Callable

from . import primitives
from .coords import Coordinate, Direction, perpendicular_pair, shift_coords
from .errors import InvalidParameter
from .lookup import CachingLookup
from .results import AggregateResult, SampledBlock

LOG = logging.getLogger("mining_sim.techniques")

POKE_REACH = 5
CORRIDOR_SLICE = (-1, 0, 1, 2)
CORRIDOR_EXCAVATED_PER_SAMPLE = 2
CORRIDOR_EXPOSED_PER_SAMPLE = 4

BranchLayer = Callable[[Direction, Coordinate], AggregateResult]


def _check_spacing(spacing: int) -> None:
    if spacing < 2:
        raise InvalidParameter("spacing must be >= 2 to avoid duplicate sampling of adjacent slices")


def _check_positive(**values: int) -> None:
    for name, value in values.items():
        if value < 1:
            raise InvalidParameter(f"{name} must be >= 1 (got {value})")


def branch(lookup: CachingLookup, length: int, direction: Direction, coord: Coordinate) -> AggregateResult:
    """Body of ``length`` blocks from ``coord`` then the cap past its last block."""
    result = primitives.shaft(lookup, direction, coord, length)
    return result.extend(primitives.shaft_end(lookup, direction, shift_coords(direction, coord, length - 1)))


def expand_corridor(lookup: CachingLookup, direction: Direction, spacing: int, coord: Coordinate) -> AggregateResult:
    """Corridor span from one branch origin up to (not including) the next.

    Samples the slices at offset 0, 1 and ``spacing - 1`` directly over
    y-1..y+2, then the span between them as a shaft. At ``spacing == 2`` the
    slice after the origin is also the slice before the next origin; it is
    sampled once and the remaining span is empty.
    """
    offsets = sorted({0, 1, spacing - 1})
    result = AggregateResult()
    for dy in CORRIDOR_SLICE:
        for offset in offsets:
            x, y, z = shift_coords(direction, coord, offset)
            pos = (x, y + dy, z)
            result.add(
                SampledBlock(pos, lookup.get_block(pos)),
                excavated=CORRIDOR_EXCAVATED_PER_SAMPLE,
                exposed=CORRIDOR_EXPOSED_PER_SAMPLE,
            )
    return result.extend(primitives.shaft(lookup, direction, shift_coords(direction, coord, 2), spacing - 3))


def poke_branch(
    lookup: CachingLookup,
    pokes_per_branch: int,
    poke_spacing: int,
    direction: Direction,
    coord: Coordinate,
) -> AggregateResult:
    """Branch with side pokes every ``poke_spacing`` blocks.

    Pokes are placed first, from anchors at ``n * poke_spacing - 1``; the body
    is then sampled in one pass from the branch origin.
    """
    result = AggregateResult()
    for n in range(pokes_per_branch):
        anchor = shift_coords(direction, coord, n * poke_spacing - 1)
        for side in perpendicular_pair(direction):
            result.extend(primitives.poke(lookup, side, anchor, POKE_REACH))
    total = poke_spacing * pokes_per_branch
    result.extend(primitives.shaft(lookup, direction, coord, total))
    return result.extend(primitives.shaft_end(lookup, direction, shift_coords(direction, coord, total - 1)))


def _compose(
    lookup: CachingLookup,
    base_direction: Direction,
    start: Coordinate,
    pair_count: int,
    spacing: int,
    lay_branch: BranchLayer,
) -> AggregateResult:
    sides = perpendicular_pair(base_direction)
    result = AggregateResult()
    for side in sides:
        result.extend(lay_branch(side, shift_coords(side, start, 1)))
    for n in range(pair_count - 1):
        result.extend(expand_corridor(lookup, base_direction, spacing, shift_coords(base_direction, start, n * spacing)))
        for side in sides:
            origin = shift_coords(base_direction, shift_coords(side, start, 1), (n + 1) * spacing)
            result.extend(lay_branch(side, origin))
    return result


def branch_mining(
    lookup: CachingLookup,
    base_direction: Direction,
    start: Coordinate,
    pair_count: int,
    branch_length: int,
    spacing: int,
) -> AggregateResult:
    _check_spacing(spacing)
    _check_positive(pair_count=pair_count, branch_length=branch_length)

    def lay(direction: Direction, coord: Coordinate) -> AggregateResult:
        return branch(lookup, branch_length, direction, coord)

    result = _compose(lookup, base_direction, start, pair_count, spacing, lay)
    LOG.debug(
        "branch mining %s from %s: pairs=%s length=%s spacing=%s -> excavated=%s exposed=%s",
        base_direction.name,
        start,
        pair_count,
        branch_length,
        spacing,
        result.excavated,
        result.exposed,
    )
    return result


def branch_mining_with_pokes(
    lookup: CachingLookup,
    base_direction: Direction,
    start: Coordinate,
    pair_count: int,
    pokes_per_branch: int,
    poke_spacing: int,
    spacing: int,
) -> AggregateResult:
    _check_spacing(spacing)
    _check_positive(pair_count=pair_count, pokes_per_branch=pokes_per_branch, poke_spacing=poke_spacing)

    def lay(direction: Direction, coord: Coordinate) -> AggregateResult:
        return poke_branch(lookup, pokes_per_branch, poke_spacing, direction, coord)

    result = _compose(lookup, base_direction, start, pair_count, spacing, lay)
    LOG.debug(
        "poke branch mining %s from %s: pairs=%s pokes=%s poke_spacing=%s spacing=%s -> excavated=%s exposed=%s",
        base_direction.name,
        start,
        pair_count,
        pokes_per_branch,
        poke_spacing,
        spacing,
        result.excavated,
        result.exposed,
    )
    return result
