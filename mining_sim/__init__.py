"""Evaluate branch-mining techniques against saved Anvil world regions."""

from .baseline import chunk_baseline
from .coords import Direction, opposite, perpendicular_pair, shift_coords
from .errors import InvalidParameter, MiningSimError, OutOfRange, UnknownTechnique
from .lookup import CachingLookup
from .registry import Technique, canonical_name, display_label, parse_label, parse_name
from .results import AggregateResult, SampledBlock
from .techniques import branch_mining, branch_mining_with_pokes

__all__ = [
    "AggregateResult",
    "CachingLookup",
    "Direction",
    "InvalidParameter",
    "MiningSimError",
    "OutOfRange",
    "SampledBlock",
    "Technique",
    "UnknownTechnique",
    "branch_mining",
    "branch_mining_with_pokes",
    "canonical_name",
    "chunk_baseline",
    "display_label",
    "opposite",
    "parse_label",
    "parse_name",
    "perpendicular_pair",
    "shift_coords",
]
