from __future__ import annotations

import struct
import sys
import zlib
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mining_sim.anvil import VOID_BLOCK  # noqa: E402
from mining_sim.lookup import CachingLookup  # noqa: E402


class FakeChunk:
    def __init__(self, shard: "FakeShard", cx: int, cz: int):
        self.shard = shard
        self.cx = cx
        self.cz = cz

    def block_at(self, lx: int, y: int, lz: int) -> str:
        if not (self.shard.min_y <= y <= self.shard.max_y):
            return VOID_BLOCK
        return self.shard.blocks.get((self.cx * 16 + lx, y, self.cz * 16 + lz), self.shard.default_block)


class FakeShard:
    """Chunk grid from (cx1, cz1) to (cx2, cz2) inclusive; counts every decode."""

    def __init__(self, bounds=(-2, -2, 2, 2), default_block="minecraft:stone", min_y=-64, max_y=319):
        self.bounds = bounds
        self.default_block = default_block
        self.min_y = min_y
        self.max_y = max_y
        self.blocks: Dict[Tuple[int, int, int], str] = {}
        self.missing_chunks = set()
        self.decode_calls: List[Tuple[int, int]] = []

    def set_block(self, x, y, z, name):
        self.blocks[(x, y, z)] = name

    def contains_chunk(self, cx, cz):
        cx1, cz1, cx2, cz2 = self.bounds
        return cx1 <= cx <= cx2 and cz1 <= cz <= cz2

    def iter_chunk_coords(self):
        cx1, cz1, cx2, cz2 = self.bounds
        for cz in range(cz1, cz2 + 1):
            for cx in range(cx1, cx2 + 1):
                yield cx, cz

    def decode_chunk(self, cx, cz) -> Optional[FakeChunk]:
        self.decode_calls.append((cx, cz))
        if (cx, cz) in self.missing_chunks:
            return None
        return FakeChunk(self, cx, cz)


@pytest.fixture()
def shard() -> FakeShard:
    return FakeShard()


@pytest.fixture()
def lookup(shard: FakeShard) -> CachingLookup:
    return CachingLookup(shard)


# --- Minimal NBT / region writer for building test worlds ---
TAG_END = 0
TAG_BYTE = 1
TAG_INT = 3
TAG_STRING = 8
TAG_LIST = 9
TAG_COMPOUND = 10
TAG_LONG_ARRAY = 12


def _enc_u8(v: int) -> bytes:
    return bytes([v & 0xFF])


def _enc_i32(v: int) -> bytes:
    return struct.pack(">i", int(v))


def _enc_string(s: str) -> bytes:
    b = s.encode("utf-8")
    return struct.pack(">H", len(b)) + b


def _tag(tag_id: int, name: str, payload: bytes) -> bytes:
    return _enc_u8(tag_id) + _enc_string(name) + payload


def _compound_payload(items: Iterable[bytes]) -> bytes:
    return b"".join(items) + _enc_u8(TAG_END)


def _list_payload(inner_tag: int, items_payload: Iterable[bytes]) -> bytes:
    items = list(items_payload)
    return _enc_u8(inner_tag) + _enc_i32(len(items)) + b"".join(items)


def _long_array_payload(vals: List[int]) -> bytes:
    signed = [v - (1 << 64) if v >= (1 << 63) else v for v in vals]
    return _enc_i32(len(signed)) + b"".join(struct.pack(">q", v) for v in signed)


def pack_section(palette: List[str], blocks: Dict[Tuple[int, int, int], str]) -> List[int]:
    """Pack local (x, y, z) -> name into 1.16+ padded long storage; unset entries use palette[0]."""
    bits = max(4, (len(palette) - 1).bit_length())
    per_long = 64 // bits
    longs = [0] * ((4096 + per_long - 1) // per_long)
    for (lx, ly, lz), name in blocks.items():
        idx = (ly << 8) | (lz << 4) | lx
        longs[idx // per_long] |= palette.index(name) << ((idx % per_long) * bits)
    return longs


def section_payload(y: int, palette: List[str], blocks: Dict[Tuple[int, int, int], str]) -> bytes:
    palette_items = (_compound_payload([_tag(TAG_STRING, "Name", _enc_string(n))]) for n in palette)
    states = [_tag(TAG_LIST, "palette", _list_payload(TAG_COMPOUND, palette_items))]
    if len(palette) > 1:
        states.append(_tag(TAG_LONG_ARRAY, "data", _long_array_payload(pack_section(palette, blocks))))
    return _compound_payload([
        _tag(TAG_BYTE, "Y", _enc_u8(y)),
        _tag(TAG_COMPOUND, "block_states", _compound_payload(states)),
    ])


def chunk_nbt(cx: int, cz: int, sections: List[bytes]) -> bytes:
    root = [
        _tag(TAG_INT, "xPos", _enc_i32(cx)),
        _tag(TAG_INT, "zPos", _enc_i32(cz)),
        _tag(TAG_LIST, "sections", _list_payload(TAG_COMPOUND, sections)),
    ]
    return _enc_u8(TAG_COMPOUND) + _enc_string("") + _compound_payload(root)


def write_region(path: Path, chunks: Dict[Tuple[int, int], bytes], rx: int = 0, rz: int = 0) -> Path:
    """Write an .mca holding the given (absolute chunk coords) -> uncompressed chunk NBT."""
    locations = bytearray(4096)
    body = bytearray()
    sector = 2
    for (cx, cz), raw in sorted(chunks.items()):
        data = zlib.compress(raw)
        blob = struct.pack(">I", len(data) + 1) + bytes([2]) + data
        blob += b"\x00" * (-len(blob) % 4096)
        count = len(blob) // 4096
        idx = (cx - rx * 32) + (cz - rz * 32) * 32
        locations[idx * 4 : idx * 4 + 4] = bytes([(sector >> 16) & 0xFF, (sector >> 8) & 0xFF, sector & 0xFF, count])
        body += blob
        sector += count
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(bytes(locations) + bytes(4096) + bytes(body))
    return path


@pytest.fixture()
def region_path(tmp_path: Path) -> Path:
    """r.0.0.mca with chunk (16, 16) generated: stone from y=64..79, one diamond ore at (257, 65, 258)."""
    palette = ["minecraft:stone", "minecraft:diamond_ore"]
    sec = section_payload(4, palette, {(1, 1, 2): "minecraft:diamond_ore"})
    return write_region(tmp_path / "regions" / "r.0.0.mca", {(16, 16): chunk_nbt(16, 16, [sec])})
