from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .anvil import list_regions

LOG = logging.getLogger("mining_sim.config")

DEFAULT_THREADS = 4


@dataclass(frozen=True)
class Settings:
    regions_dir: Path
    output_dir: Path
    threads: int
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        regions_dir = Path(os.environ.get("MINING_SIM_REGIONS_DIR", "regions"))
        output_dir = Path(os.environ.get("MINING_SIM_OUTPUT_DIR", "mining_data"))
        threads_raw = os.environ.get("MINING_SIM_THREADS", str(DEFAULT_THREADS)).strip() or str(DEFAULT_THREADS)
        try:
            threads = max(1, int(threads_raw))
        except ValueError as exc:
            raise SystemExit(f"Invalid MINING_SIM_THREADS: {threads_raw}") from exc
        log_level = os.environ.get("MINING_SIM_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        return cls(regions_dir=regions_dir, output_dir=output_dir, threads=threads, log_level=log_level)


def ensure_directories(settings: Settings) -> bool:
    """Create the regions and output directories; return True when at least one region is present."""
    for path in (settings.regions_dir, settings.output_dir):
        if not path.exists():
            LOG.info("creating %s", path)
            path.mkdir(parents=True, exist_ok=True)
    has_regions = bool(list_regions(settings.regions_dir))
    if not has_regions:
        LOG.warning("no .mca files in %s; place region files there before simulating", settings.regions_dir)
    return has_regions
