"""Run techniques over regions and y levels on a fixed pool of worker threads.

Each worker owns a private ``CachingLookup`` per region it touches; lookups
are never shared between workers. A failure inside one work unit (bad
coordinate, corrupt region, missing file) is recorded on that unit's report
and the sweep carries on with the rest.
"""

from __future__ import annotations

import csv
import json
import logging
import queue
import threading
import time
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .anvil import CHUNK_WIDTH, REGION_WIDTH, NBTError, open_region, region_coords_from_path
from .baseline import chunk_baseline
from .coords import Coordinate
from .errors import MiningSimError
from .lookup import CachingLookup
from .models import BranchParameters, LayoutParameters, PokeParameters, SweepReport, SweepRequest, UnitReport
from .registry import Technique, canonical_name
from .results import AggregateResult
from .techniques import branch_mining, branch_mining_with_pokes

LOG = logging.getLogger("mining_sim.sweep")

SPACING_SWEEP = range(2, 7)
POKE_SPACING_SWEEP = range(2, 7)


@dataclass(frozen=True)
class WorkUnit:
    index: int
    technique: Technique
    region_path: Path
    y: int
    parameters: Optional[LayoutParameters] = None


def default_parameters(technique: Technique) -> Optional[LayoutParameters]:
    if technique is Technique.BRANCH:
        return BranchParameters()
    if technique is Technique.BRANCH_WITH_POKE:
        return PokeParameters()
    return None


def parameter_variants(technique: Technique) -> List[Optional[LayoutParameters]]:
    if technique is Technique.BRANCH:
        return [BranchParameters(spacing=s) for s in SPACING_SWEEP]
    if technique is Technique.BRANCH_WITH_POKE:
        return [PokeParameters(poke_spacing=s) for s in POKE_SPACING_SWEEP]
    return [None]


def region_center(region_path: Path, y: int) -> Coordinate:
    rx, rz = region_coords_from_path(region_path)
    half = REGION_WIDTH * CHUNK_WIDTH // 2
    return rx * REGION_WIDTH * CHUNK_WIDTH + half, y, rz * REGION_WIDTH * CHUNK_WIDTH + half


def build_units(request: SweepRequest, regions: Sequence[Path]) -> List[WorkUnit]:
    techniques = request.technique_members if request.kind != "chunk" else [Technique.CHUNK_BASELINE]
    units: List[WorkUnit] = []
    for technique in techniques:
        if request.kind == "parameters":
            variants = parameter_variants(technique)
        else:
            variants = [default_parameters(technique)]
        for region_path in regions:
            for y in range(request.min_y, request.max_y + 1):
                for params in variants:
                    units.append(WorkUnit(len(units), technique, Path(region_path), y, params))
    return units


def _run_layout(lookup: CachingLookup, unit: WorkUnit) -> AggregateResult:
    start = region_center(unit.region_path, unit.y)
    params = unit.parameters
    if unit.technique is Technique.BRANCH:
        assert isinstance(params, BranchParameters)
        return branch_mining(
            lookup,
            params.base_direction,
            start,
            params.pair_count,
            params.branch_length,
            params.spacing,
        )
    if unit.technique is Technique.BRANCH_WITH_POKE:
        assert isinstance(params, PokeParameters)
        return branch_mining_with_pokes(
            lookup,
            params.base_direction,
            start,
            params.pair_count,
            params.pokes_per_branch,
            params.poke_spacing,
            params.spacing,
        )
    raise ValueError(f"{unit.technique.name} is not a corridor layout")


def _run_chunk_baseline(lookup: CachingLookup, unit: WorkUnit) -> Tuple[Counter, int, Optional[float]]:
    region = lookup.shard
    tally: Counter = Counter()
    samples = 0
    latency_total = 0.0
    for cx, cz in region.iter_chunk_coords():
        chunk = lookup.chunk(cx, cz)
        if chunk is None:
            continue
        identities, mean_latency = chunk_baseline(chunk, unit.y)
        tally.update(identities)
        samples += len(identities)
        latency_total += mean_latency * len(identities)
    return tally, samples, (latency_total / samples if samples else None)


def run_unit(lookups: Dict[Path, CachingLookup], unit: WorkUnit) -> UnitReport:
    """Evaluate one unit with the calling worker's own lookups."""
    base = {
        "technique": canonical_name(unit.technique),
        "region": unit.region_path.name,
        "y": unit.y,
        "parameters": unit.parameters.model_dump() if unit.parameters is not None else {},
    }
    t0 = time.perf_counter()
    try:
        lookup = lookups.get(unit.region_path)
        if lookup is None:
            lookup = CachingLookup(open_region(unit.region_path))
            lookups[unit.region_path] = lookup
        decodes_before = lookup.decodes
        if unit.technique is Technique.CHUNK_BASELINE:
            tally, samples, mean_latency = _run_chunk_baseline(lookup, unit)
            return UnitReport(
                **base,
                status="succeeded",
                samples=samples,
                tally=dict(sorted(tally.items())),
                decodes=lookup.decodes - decodes_before,
                mean_latency_sec=mean_latency,
                elapsed_sec=time.perf_counter() - t0,
            )
        result = _run_layout(lookup, unit)
    except (MiningSimError, NBTError, OSError, ValueError) as exc:
        LOG.warning("unit %s (%s %s y=%s) failed: %s", unit.index, base["technique"], base["region"], unit.y, exc)
        return UnitReport(**base, status="failed", error=f"{type(exc).__name__}: {exc}", elapsed_sec=time.perf_counter() - t0)
    return UnitReport(
        **base,
        status="succeeded",
        excavated=result.excavated,
        exposed=result.exposed,
        samples=len(result.blocks),
        tally=result.tally(),
        decodes=lookup.decodes - decodes_before,
        elapsed_sec=time.perf_counter() - t0,
    )


class WorkerPool:
    def __init__(self, threads: int) -> None:
        if threads < 1:
            raise ValueError("threads must be >= 1")
        self.threads = threads
        self._lock = threading.Lock()

    def run(self, units: Sequence[WorkUnit]) -> List[UnitReport]:
        work: "queue.Queue[Optional[WorkUnit]]" = queue.Queue()
        for unit in units:
            work.put(unit)
        reports: Dict[int, UnitReport] = {}
        workers = []
        for i in range(min(self.threads, max(1, len(units)))):
            work.put(None)
            workers.append(threading.Thread(target=self._worker_loop, args=(work, reports), name=f"mining-sim-worker-{i}", daemon=True))
        for t in workers:
            t.start()
        for t in workers:
            t.join()
        return [reports[unit.index] for unit in units]

    def _worker_loop(self, work: "queue.Queue[Optional[WorkUnit]]", reports: Dict[int, UnitReport]) -> None:
        lookups: Dict[Path, CachingLookup] = {}
        while True:
            unit = work.get()
            if unit is None:
                work.task_done()
                return
            LOG.info("unit %s: %s %s y=%s", unit.index, canonical_name(unit.technique), unit.region_path.name, unit.y)
            try:
                report = run_unit(lookups, unit)
            except Exception as exc:  # noqa: BLE001
                LOG.exception("unit %s crashed", unit.index)
                report = UnitReport(
                    technique=canonical_name(unit.technique),
                    region=unit.region_path.name,
                    y=unit.y,
                    parameters=unit.parameters.model_dump() if unit.parameters is not None else {},
                    status="failed",
                    error=f"{type(exc).__name__}: {exc}",
                )
            finally:
                work.task_done()
            with self._lock:
                reports[unit.index] = report


def run_sweep(request: SweepRequest, regions: Sequence[Path]) -> SweepReport:
    started_at = datetime.now(tz=timezone.utc).isoformat()
    units = build_units(request, regions)
    LOG.info("%s sweep: %s units on %s threads", request.kind, len(units), request.threads)
    reports = WorkerPool(request.threads).run(units)
    return SweepReport(
        kind=request.kind,
        techniques=request.techniques if request.kind != "chunk" else [canonical_name(Technique.CHUNK_BASELINE)],
        started_at=started_at,
        finished_at=datetime.now(tz=timezone.utc).isoformat(),
        units=reports,
    )


def report_stem(report: SweepReport) -> str:
    return f"{report.kind}_{'-'.join(report.techniques)}"


def write_report(report: SweepReport, output_dir: Path) -> Tuple[Path, Path]:
    """Write the JSON summary and a long-format CSV of block tallies; return both paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = report_stem(report)
    json_path = output_dir / f"{stem}.json"
    json_path.write_text(json.dumps(report.model_dump(), indent=2, sort_keys=True) + "\n", encoding="utf-8")

    csv_path = output_dir / f"{stem}.csv"
    with csv_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["technique", "region", "y", "parameters", "status", "excavated", "exposed", "block", "count"])
        for unit in report.units:
            params = json.dumps(unit.parameters, sort_keys=True)
            head = [unit.technique, unit.region, unit.y, params, unit.status, unit.excavated, unit.exposed]
            if not unit.tally:
                writer.writerow(head + ["", 0])
                continue
            for block, count in unit.tally.items():
                writer.writerow(head + [block, count])
    return json_path, csv_path
