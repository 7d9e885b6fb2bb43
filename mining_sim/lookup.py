from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Tuple

from .anvil import AIR_BLOCK, CHUNK_WIDTH, Chunk
from .coords import Coordinate
from .errors import OutOfRange

LOG = logging.getLogger("mining_sim.lookup")


class Shard(Protocol):
    """What the lookup needs from a decoded world shard (``RegionFile`` satisfies it)."""

    def contains_chunk(self, cx: int, cz: int) -> bool: ...

    def decode_chunk(self, cx: int, cz: int) -> Optional[Chunk]: ...


class CachingLookup:
    """Block identity lookup over one shard, decoding each chunk at most once.

    Owned by a single caller for the lifetime of one run and passed down the
    whole call tree of a technique; it is not thread-safe and never evicts.
    A shard holds at most 32x32 chunks, so keeping every touched chunk is bounded.
    """

    def __init__(self, shard: Shard):
        self.shard = shard
        self._chunks: Dict[Tuple[int, int], Optional[Chunk]] = {}
        self.lookups = 0
        self.decodes = 0
        self.hits = 0

    def chunk(self, cx: int, cz: int) -> Optional[Chunk]:
        key = (cx, cz)
        if key in self._chunks:
            self.hits += 1
            return self._chunks[key]
        if not self.shard.contains_chunk(cx, cz):
            raise OutOfRange(f"chunk ({cx}, {cz}) is outside the shard grid")
        chunk = self.shard.decode_chunk(cx, cz)
        self.decodes += 1
        LOG.debug("decoded chunk (%s, %s)%s", cx, cz, "" if chunk is not None else " (not generated)")
        self._chunks[key] = chunk
        return chunk

    def get_block(self, coord: Coordinate) -> str:
        x, y, z = coord
        self.lookups += 1
        chunk = self.chunk(x // CHUNK_WIDTH, z // CHUNK_WIDTH)
        if chunk is None:
            return AIR_BLOCK
        return chunk.block_at(x % CHUNK_WIDTH, y, z % CHUNK_WIDTH)

    @property
    def cached_chunks(self) -> int:
        return len(self._chunks)

    def stats(self) -> Dict[str, int]:
        return {
            "lookups": self.lookups,
            "decodes": self.decodes,
            "hits": self.hits,
            "cached_chunks": self.cached_chunks,
        }
