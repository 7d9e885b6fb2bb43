from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from .coords import Coordinate


@dataclass(frozen=True)
class SampledBlock:
    position: Coordinate
    identity: str


@dataclass
class AggregateResult:
    """Samples plus the two counters every geometry call returns."""

    blocks: List[SampledBlock] = field(default_factory=list)
    excavated: int = 0
    exposed: int = 0

    def add(self, block: SampledBlock, *, excavated: int, exposed: int) -> None:
        self.blocks.append(block)
        self.excavated += excavated
        self.exposed += exposed

    def extend(self, other: "AggregateResult") -> "AggregateResult":
        self.blocks.extend(other.blocks)
        self.excavated += other.excavated
        self.exposed += other.exposed
        return self

    def __add__(self, other: "AggregateResult") -> "AggregateResult":
        return AggregateResult(
            blocks=[*self.blocks, *other.blocks],
            excavated=self.excavated + other.excavated,
            exposed=self.exposed + other.exposed,
        )

    @property
    def positions(self) -> List[Coordinate]:
        return [b.position for b in self.blocks]

    def tally(self) -> Dict[str, int]:
        counts = Counter(b.identity for b in self.blocks)
        return dict(sorted(counts.items()))
