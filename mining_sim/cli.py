"""Command line front end for technique simulations.

Examples:
  python -m mining_sim single --technique branch --region regions/r.0.0.mca --y 11
  python -m mining_sim range --technique poke --region regions/r.0.0.mca --min-y -59 --max-y 16
  python -m mining_sim techniques --technique branch --technique poke --min-y 5 --max-y 15 --threads 8
  python -m mining_sim parameters --technique branch --min-y 11 --max-y 11
  python -m mining_sim chunk --min-y -64 --max-y 16
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from .anvil import list_regions
from .config import Settings, ensure_directories
from .models import SweepReport, SweepRequest
from .registry import canonical_name, composed_techniques, display_label
from .sweep import run_sweep, write_report

LOG = logging.getLogger("mining_sim.cli")


def _technique_choices() -> List[str]:
    return [canonical_name(t) for t in composed_techniques()]


def _add_common(ap: argparse.ArgumentParser, settings: Settings) -> None:
    ap.add_argument("--regions-dir", default=str(settings.regions_dir), help=f"Region directory (default: {settings.regions_dir})")
    ap.add_argument("--output-dir", default=str(settings.output_dir), help=f"Report directory (default: {settings.output_dir})")
    ap.add_argument("--json-out", default=None, help="Also write the JSON summary to this path")
    ap.add_argument("--verbose", action="store_true", help="Debug logging to stderr")


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    labels = ", ".join(f"{canonical_name(t)} ({display_label(t)})" for t in composed_techniques())
    ap = argparse.ArgumentParser(
        prog="mining-sim",
        description=f"Evaluate mining techniques against saved world regions. Techniques: {labels}.",
    )
    sub = ap.add_subparsers(dest="kind", required=True)

    single = sub.add_parser("single", help="One technique, one region, one y level")
    single.add_argument("--technique", required=True, choices=_technique_choices())
    single.add_argument("--region", required=True, help="Region file (r.<x>.<z>.mca)")
    single.add_argument("--y", type=int, required=True)

    ranged = sub.add_parser("range", help="One technique, one region, every y in a range")
    ranged.add_argument("--technique", required=True, choices=_technique_choices())
    ranged.add_argument("--region", required=True, help="Region file (r.<x>.<z>.mca)")
    ranged.add_argument("--min-y", type=int, required=True)
    ranged.add_argument("--max-y", type=int, required=True)

    for kind, text in (
        ("techniques", "Several techniques over every region and y level"),
        ("parameters", "Sweep each technique's spacing parameters over every region and y level"),
    ):
        p = sub.add_parser(kind, help=text)
        p.add_argument("--technique", action="append", required=True, choices=_technique_choices())
        p.add_argument("--min-y", type=int, required=True)
        p.add_argument("--max-y", type=int, required=True)
        p.add_argument("--threads", type=int, default=settings.threads)

    chunk = sub.add_parser("chunk", help="Uncached full-layer reads of every chunk (baseline)")
    chunk.add_argument("--min-y", type=int, required=True)
    chunk.add_argument("--max-y", type=int, required=True)
    chunk.add_argument("--threads", type=int, default=settings.threads)

    for p in sub.choices.values():
        _add_common(p, settings)
    return ap


def _request_from_args(args: argparse.Namespace) -> SweepRequest:
    if args.kind == "chunk":
        techniques = []
    elif isinstance(args.technique, list):
        techniques = args.technique
    else:
        techniques = [args.technique]
    min_y = args.y if args.kind == "single" else args.min_y
    max_y = args.y if args.kind == "single" else args.max_y
    return SweepRequest(
        kind=args.kind,
        techniques=techniques,
        min_y=min_y,
        max_y=max_y,
        threads=getattr(args, "threads", 1),
    )


def _print_summary(report: SweepReport) -> None:
    for unit in report.units:
        if unit.status == "failed":
            print(f"{unit.technique:8} {unit.region:14} y={unit.y:<5} FAILED {unit.error}")
            continue
        if unit.mean_latency_sec is not None:
            print(f"{unit.technique:8} {unit.region:14} y={unit.y:<5} samples={unit.samples} mean_lookup={unit.mean_latency_sec * 1e9:.0f}ns")
            continue
        print(f"{unit.technique:8} {unit.region:14} y={unit.y:<5} excavated={unit.excavated} exposed={unit.exposed} decodes={unit.decodes}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = Settings.from_env()
    args = _build_parser(settings).parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level="DEBUG" if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    regions_dir = Path(args.regions_dir)
    output_dir = Path(args.output_dir)
    has_regions = ensure_directories(replace(settings, regions_dir=regions_dir, output_dir=output_dir))

    if args.kind in ("single", "range"):
        region = Path(args.region)
        if not region.exists():
            print(f"ERROR: region not found: {region}", file=sys.stderr)
            return 2
        regions = [region]
    else:
        if not has_regions:
            print(f"ERROR: no region files in {regions_dir}", file=sys.stderr)
            return 2
        regions = list_regions(regions_dir)

    try:
        request = _request_from_args(args)
    except ValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    report = run_sweep(request, regions)
    json_path, csv_path = write_report(report, output_dir)
    LOG.info("wrote %s and %s", json_path, csv_path)
    if args.json_out:
        out = Path(args.json_out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report.model_dump(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    _print_summary(report)
    return 1 if report.failed else 0


def run() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
