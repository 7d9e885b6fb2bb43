"""Anvil region / chunk NBT decoding for technique sampling.

A region file (``r.<rx>.<rz>.mca``) is the shard unit: a fixed 32x32 grid of
chunks. Decoding converts one chunk's compressed NBT into a ``Chunk`` that
answers block identities by local (x, y, z).

Supports the modern layout (``sections`` / ``block_states`` at the root, 1.18+)
and the 1.16/1.17 layout (``Level`` / ``Sections`` / ``Palette`` /
``BlockStates``). No external dependencies.
"""

from __future__ import annotations

import gzip
import re
import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple


SECTOR_BYTES = 4096
REGION_HEADER_BYTES = SECTOR_BYTES * 2
REGION_WIDTH = 32
CHUNK_WIDTH = 16
SECTION_HEIGHT = 16

TAG_END = 0
TAG_BYTE = 1
TAG_SHORT = 2
TAG_INT = 3
TAG_LONG = 4
TAG_FLOAT = 5
TAG_DOUBLE = 6
TAG_BYTE_ARRAY = 7
TAG_STRING = 8
TAG_LIST = 9
TAG_COMPOUND = 10
TAG_INT_ARRAY = 11
TAG_LONG_ARRAY = 12

AIR_BLOCK = "minecraft:air"
VOID_BLOCK = "minecraft:void_air"

_REGION_NAME_RE = re.compile(r"^r\.(-?\d+)\.(-?\d+)\.mca$")
_FIXED_WIDTH = {TAG_BYTE: ">b", TAG_SHORT: ">h", TAG_INT: ">i", TAG_LONG: ">q", TAG_FLOAT: ">f", TAG_DOUBLE: ">d"}


class NBTError(Exception):
    pass


class _Buf:
    __slots__ = ("b", "o")

    def __init__(self, b: bytes):
        self.b = b
        self.o = 0

    def take(self, n: int) -> bytes:
        if n < 0 or self.o + n > len(self.b):
            raise NBTError("unexpected EOF")
        v = self.b[self.o : self.o + n]
        self.o += n
        return v

    def unpack(self, fmt: str):
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]

    def read_u8(self) -> int:
        return self.unpack(">B")

    def read_i32(self) -> int:
        return self.unpack(">i")

    def read_length(self, what: str) -> int:
        ln = self.read_i32()
        if ln < 0:
            raise NBTError(f"negative {what} length")
        return ln

    def read_string(self) -> str:
        return self.take(self.unpack(">H")).decode("utf-8", errors="strict")


def _read_payload(tag: int, buf: _Buf):
    fmt = _FIXED_WIDTH.get(tag)
    if fmt is not None:
        return buf.unpack(fmt)
    if tag == TAG_BYTE_ARRAY:
        return buf.take(buf.read_length("byte array"))
    if tag == TAG_STRING:
        return buf.read_string()
    if tag == TAG_LIST:
        inner = buf.read_u8()
        return [_read_payload(inner, buf) for _ in range(buf.read_length("list"))]
    if tag == TAG_COMPOUND:
        out = {}
        while True:
            t = buf.read_u8()
            if t == TAG_END:
                return out
            name = buf.read_string()
            out[name] = _read_payload(t, buf)
    if tag == TAG_INT_ARRAY:
        ln = buf.read_length("int array")
        return list(struct.unpack(f">{ln}i", buf.take(4 * ln)))
    if tag == TAG_LONG_ARRAY:
        ln = buf.read_length("long array")
        return list(struct.unpack(f">{ln}q", buf.take(8 * ln)))
    raise NBTError(f"unknown tag {tag}")


def load_nbt_bytes(raw: bytes) -> Dict:
    if raw[:2] == b"\x1f\x8b":
        raw = gzip.decompress(raw)
    buf = _Buf(raw)
    root_t = buf.read_u8()
    if root_t != TAG_COMPOUND:
        raise NBTError(f"unexpected root tag: {root_t}")
    buf.read_string()
    return _read_payload(TAG_COMPOUND, buf)


@dataclass
class Section:
    y: int
    palette: List[str]
    data: Optional[List[int]]

    @property
    def bits(self) -> int:
        n = len(self.palette)
        if n <= 1:
            return 0
        return max(4, (n - 1).bit_length())

    def palette_index(self, idx: int) -> int:
        bits = self.bits
        if self.data is None or bits == 0:
            return 0
        # Since 1.16 entries never straddle two longs; the tail of each long is padding.
        values_per_long = 64 // bits
        li = idx // values_per_long
        if li >= len(self.data):
            return 0
        off = (idx % values_per_long) * bits
        return (self.data[li] >> off) & ((1 << bits) - 1)

    def block_at(self, lx: int, ly: int, lz: int) -> str:
        pi = self.palette_index((ly << 8) | (lz << 4) | lx)
        if pi >= len(self.palette):
            return AIR_BLOCK
        return self.palette[pi]


@dataclass
class Chunk:
    cx: int
    cz: int
    sections: Dict[int, Section]

    @property
    def y_range(self) -> Tuple[int, int]:
        """Inclusive block y bounds covered by the stored sections."""
        if not self.sections:
            return 0, -1
        lo = min(self.sections)
        hi = max(self.sections)
        return lo * SECTION_HEIGHT, (hi + 1) * SECTION_HEIGHT - 1

    def contains_y(self, y: int) -> bool:
        lo, hi = self.y_range
        return lo <= y <= hi

    def block_at(self, lx: int, y: int, lz: int) -> str:
        """Block identity at chunk-local (lx, lz) and absolute y."""
        if not (0 <= lx < CHUNK_WIDTH and 0 <= lz < CHUNK_WIDTH):
            raise ValueError(f"local coordinates out of chunk: ({lx}, {lz})")
        if not self.contains_y(y):
            return VOID_BLOCK
        sy = y // SECTION_HEIGHT
        sec = self.sections.get(sy)
        if sec is None:
            return AIR_BLOCK
        return sec.block_at(lx, y - sy * SECTION_HEIGHT, lz)


def _unsigned(values: List[int]) -> List[int]:
    return [v & 0xFFFFFFFFFFFFFFFF for v in values]


def _palette_names(entries) -> List[str]:
    names = []
    for entry in entries or []:
        name = entry.get("Name") if isinstance(entry, dict) else None
        names.append(name if isinstance(name, str) else AIR_BLOCK)
    return names or [AIR_BLOCK]


def _section_from_nbt(raw: Dict) -> Optional[Section]:
    if "Y" not in raw:
        return None
    y = int(raw["Y"])
    states = raw.get("block_states")
    if isinstance(states, dict):
        data = states.get("data")
        return Section(y=y, palette=_palette_names(states.get("palette")), data=_unsigned(data) if data else None)
    if "Palette" in raw:
        data = raw.get("BlockStates")
        return Section(y=y, palette=_palette_names(raw.get("Palette")), data=_unsigned(data) if data else None)
    # Light-only sections carry no blocks.
    return None


def parse_chunk(root: Dict) -> Chunk:
    level = root.get("Level") if isinstance(root.get("Level"), dict) else root
    raw_sections = level.get("sections", level.get("Sections", []))
    if not isinstance(raw_sections, list):
        raise NBTError("chunk sections is not a list")
    sections: Dict[int, Section] = {}
    for raw in raw_sections:
        if not isinstance(raw, dict):
            raise NBTError("chunk section is not a compound")
        sec = _section_from_nbt(raw)
        if sec is not None:
            sections[sec.y] = sec
    return Chunk(cx=int(level.get("xPos", 0)), cz=int(level.get("zPos", 0)), sections=sections)


def region_coords_from_path(path: Path) -> Tuple[int, int]:
    m = _REGION_NAME_RE.match(path.name)
    if m is None:
        raise ValueError(f"not a region file name (expected r.<x>.<z>.mca): {path.name}")
    return int(m.group(1)), int(m.group(2))


class RegionFile:
    """One opened ``.mca`` file; chunk coordinates are absolute world chunk coordinates."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.rx, self.rz = region_coords_from_path(self.path)
        with self.path.open("rb") as f:
            hdr = f.read(REGION_HEADER_BYTES)
        if len(hdr) < REGION_HEADER_BYTES:
            raise NBTError(f"short region header: {self.path}")
        self._locations = hdr[:SECTOR_BYTES]

    @property
    def chunk_bounds(self) -> Tuple[int, int, int, int]:
        """Inclusive (cx1, cz1, cx2, cz2) of the chunk grid this region owns."""
        cx1 = self.rx * REGION_WIDTH
        cz1 = self.rz * REGION_WIDTH
        return cx1, cz1, cx1 + REGION_WIDTH - 1, cz1 + REGION_WIDTH - 1

    def contains_chunk(self, cx: int, cz: int) -> bool:
        cx1, cz1, cx2, cz2 = self.chunk_bounds
        return cx1 <= cx <= cx2 and cz1 <= cz <= cz2

    def iter_chunk_coords(self):
        cx1, cz1, cx2, cz2 = self.chunk_bounds
        for cz in range(cz1, cz2 + 1):
            for cx in range(cx1, cx2 + 1):
                yield cx, cz

    def read_chunk_nbt(self, cx: int, cz: int) -> Optional[bytes]:
        if not self.contains_chunk(cx, cz):
            raise ValueError(f"chunk ({cx}, {cz}) is not in region {self.path.name}")
        idx = (cx - self.rx * REGION_WIDTH) + (cz - self.rz * REGION_WIDTH) * REGION_WIDTH
        loc = self._locations[idx * 4 : idx * 4 + 4]
        offset = (loc[0] << 16) | (loc[1] << 8) | loc[2]
        if offset == 0:
            return None
        with self.path.open("rb") as f:
            f.seek(offset * SECTOR_BYTES)
            head = f.read(5)
            if len(head) < 5:
                raise NBTError(f"chunk ({cx}, {cz}) offset past end of {self.path}")
            length = struct.unpack(">I", head[:4])[0]
            ctype = head[4]
            data = f.read(length - 1)
        if ctype == 1:
            return gzip.decompress(data)
        if ctype == 2:
            try:
                return zlib.decompress(data)
            except zlib.error as exc:
                raise NBTError(f"chunk ({cx}, {cz}) in {self.path.name}: {exc}") from exc
        if ctype == 3:
            return data
        raise NBTError(f"unknown chunk compression type {ctype} in {self.path}")

    def decode_chunk(self, cx: int, cz: int) -> Optional[Chunk]:
        raw = self.read_chunk_nbt(cx, cz)
        if raw is None:
            return None
        return parse_chunk(load_nbt_bytes(raw))


def open_region(path: Path) -> RegionFile:
    return RegionFile(path)


def list_regions(regions_dir: Path) -> List[Path]:
    return sorted(p for p in Path(regions_dir).glob("r.*.mca") if _REGION_NAME_RE.match(p.name))
