"""Geometry primitives the technique composer builds layouts from.

Counting contract (per call):

- ``shaft``: each step samples the vertical slice y-1..y+2 (floor, two body
  blocks, ceiling); +2 excavated, +6 exposed (four walls, floor, ceiling).
  Wall blocks are counted but not sampled.
- ``shaft_end``: samples the two blocks past the last step; +2 exposed.
- ``poke``: a 1x1 tunnel at head height; each step samples its block,
  +1 excavated, +4 exposed; the tip past the last step adds +1 exposed.

A non-positive length or reach yields an empty result.
"""

from __future__ import annotations

from .coords import Coordinate, Direction, shift_coords
from .lookup import CachingLookup
from .results import AggregateResult, SampledBlock

SHAFT_SLICE = (-1, 0, 1, 2)
SHAFT_EXCAVATED_PER_STEP = 2
SHAFT_EXPOSED_PER_STEP = 6
SHAFT_END_EXPOSED = 2
POKE_EXPOSED_PER_STEP = 4


def sample(lookup: CachingLookup, coord: Coordinate) -> SampledBlock:
    return SampledBlock(coord, lookup.get_block(coord))


def shaft(lookup: CachingLookup, direction: Direction, start: Coordinate, length: int) -> AggregateResult:
    result = AggregateResult()
    for i in range(max(0, length)):
        x, y, z = shift_coords(direction, start, i)
        for dy in SHAFT_SLICE:
            result.blocks.append(sample(lookup, (x, y + dy, z)))
        result.excavated += SHAFT_EXCAVATED_PER_STEP
        result.exposed += SHAFT_EXPOSED_PER_STEP
    return result


def shaft_end(lookup: CachingLookup, direction: Direction, coord: Coordinate) -> AggregateResult:
    x, y, z = shift_coords(direction, coord, 1)
    result = AggregateResult()
    for dy in (0, 1):
        result.blocks.append(sample(lookup, (x, y + dy, z)))
    result.exposed += SHAFT_END_EXPOSED
    return result


def poke(lookup: CachingLookup, direction: Direction, coord: Coordinate, reach: int) -> AggregateResult:
    result = AggregateResult()
    if reach <= 0:
        return result
    x, y, z = coord
    head = (x, y + 1, z)
    for i in range(1, reach + 1):
        result.add(sample(lookup, shift_coords(direction, head, i)), excavated=1, exposed=POKE_EXPOSED_PER_STEP)
    result.add(sample(lookup, shift_coords(direction, head, reach + 1)), excavated=0, exposed=1)
    return result
