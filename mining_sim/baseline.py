from __future__ import annotations

import time
from typing import List, Tuple

from .anvil import CHUNK_WIDTH, Chunk


def chunk_baseline(chunk: Chunk, y: int) -> Tuple[List[str], float]:
    """Read a full 16x16 layer straight from a decoded chunk, bypassing any cache.

    Returns the 256 identities (x-major) and the mean seconds per lookup; the
    latency is the floor the caching lookup's amortised cost is compared to.
    """
    identities: List[str] = []
    elapsed = 0.0
    for x in range(CHUNK_WIDTH):
        for z in range(CHUNK_WIDTH):
            t0 = time.perf_counter()
            name = chunk.block_at(x, y, z)
            elapsed += time.perf_counter() - t0
            identities.append(name)
    return identities, elapsed / len(identities)
