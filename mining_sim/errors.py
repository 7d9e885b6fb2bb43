from __future__ import annotations


class MiningSimError(RuntimeError):
    """Base class for failures raised by technique evaluation."""


class InvalidParameter(MiningSimError, ValueError):
    """Raised before any sampling when a technique parameter is unusable."""


class OutOfRange(MiningSimError, IndexError):
    """Raised when a coordinate addresses a chunk outside the owned shard's grid."""


class UnknownTechnique(MiningSimError, ValueError):
    """Raised when a technique label or name is not recognised."""
