from __future__ import annotations

from enum import Enum
from typing import Tuple

Coordinate = Tuple[int, int, int]


class Direction(Enum):
    NORTH = (0, -1)
    SOUTH = (0, 1)
    EAST = (1, 0)
    WEST = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dz(self) -> int:
        return self.value[1]

    @property
    def is_x_axis(self) -> bool:
        return self.dx != 0


_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}


def opposite(direction: Direction) -> Direction:
    return _OPPOSITES[direction]


def perpendicular_pair(direction: Direction) -> Tuple[Direction, Direction]:
    if direction.is_x_axis:
        return Direction.NORTH, Direction.SOUTH
    return Direction.EAST, Direction.WEST


def shift_coords(direction: Direction, coord: Coordinate, amount: int) -> Coordinate:
    """Translate ``coord`` by ``amount`` blocks along ``direction``; negative moves backward."""
    x, y, z = coord
    return x + direction.dx * amount, y, z + direction.dz * amount


def parse_direction(raw: str) -> Direction:
    try:
        return Direction[raw.strip().upper()]
    except KeyError as exc:
        raise ValueError(f"unknown direction: {raw!r}") from exc
