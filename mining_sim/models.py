from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .coords import Direction, parse_direction
from .registry import Technique, parse_name

SweepKind = Literal["single", "range", "techniques", "parameters", "chunk"]
UnitStatus = Literal["succeeded", "failed"]


class LayoutParameters(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    direction: str = "east"
    pair_count: int = Field(default=10, ge=1)
    spacing: int = Field(default=4, ge=2)

    @field_validator("direction")
    @classmethod
    def validate_direction(cls, value: str) -> str:
        return parse_direction(value).name.lower()

    @property
    def base_direction(self) -> Direction:
        return parse_direction(self.direction)


class BranchParameters(LayoutParameters):
    branch_length: int = Field(default=32, ge=1)


class PokeParameters(LayoutParameters):
    pokes_per_branch: int = Field(default=8, ge=1)
    poke_spacing: int = Field(default=4, ge=1)


class SweepRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: SweepKind
    techniques: list[str] = Field(default_factory=list)
    min_y: int
    max_y: int
    threads: int = Field(default=1, ge=1)

    @field_validator("techniques")
    @classmethod
    def validate_techniques(cls, value: list[str]) -> list[str]:
        for name in value:
            parse_name(name)
        return value

    @model_validator(mode="after")
    def validate_shape(self) -> "SweepRequest":
        if self.max_y < self.min_y:
            raise ValueError("max_y must be >= min_y")
        if self.kind != "chunk" and not self.techniques:
            raise ValueError(f"a {self.kind} sweep needs at least one technique")
        if self.kind in ("single", "range") and len(self.techniques) != 1:
            raise ValueError(f"a {self.kind} sweep takes exactly one technique")
        return self

    @property
    def technique_members(self) -> list[Technique]:
        return [parse_name(name) for name in self.techniques]


class UnitReport(BaseModel):
    technique: str
    region: str
    y: int
    parameters: Dict[str, object]
    status: UnitStatus
    excavated: int = 0
    exposed: int = 0
    samples: int = 0
    tally: Dict[str, int] = Field(default_factory=dict)
    decodes: int = 0
    mean_latency_sec: Optional[float] = None
    elapsed_sec: float = 0.0
    error: Optional[str] = None


class SweepReport(BaseModel):
    kind: SweepKind
    techniques: list[str]
    started_at: str
    finished_at: str
    units: list[UnitReport]

    @property
    def failed(self) -> list[UnitReport]:
        return [u for u in self.units if u.status == "failed"]
