from __future__ import annotations

from enum import Enum
from typing import List

from .errors import UnknownTechnique


class Technique(Enum):
    BRANCH = ("branch", "Branch Mining")
    BRANCH_WITH_POKE = ("poke", "Branch Mining With Pokes")
    CHUNK_BASELINE = ("chunk", "Chunk Baseline")

    def __init__(self, canonical: str, label: str):
        self.canonical = canonical
        self.label = label


def canonical_name(technique: Technique) -> str:
    """Machine-facing name, used in report file names and on the command line."""
    return technique.canonical


def display_label(technique: Technique) -> str:
    """Human-facing label; not interchangeable with the canonical name."""
    return technique.label


def parse_label(label: str) -> Technique:
    for technique in Technique:
        if technique.label == label:
            return technique
    raise UnknownTechnique(f"unknown technique label: {label!r}")


def parse_name(name: str) -> Technique:
    for technique in Technique:
        if technique.canonical == name:
            return technique
    raise UnknownTechnique(f"unknown technique name: {name!r}")


def iter_techniques() -> List[Technique]:
    return list(Technique)


def composed_techniques() -> List[Technique]:
    """Techniques that lay out a corridor layout (everything but the chunk baseline)."""
    return [t for t in Technique if t is not Technique.CHUNK_BASELINE]
