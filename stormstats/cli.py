"""
stormstats Command Line Interface (CLI)
=======================================

Runs the whole report in one go:

    stormstats repdata_data_StormData.csv.bz2 --report storm_report.docx

Steps:
- load the dataset (CSV, compressed CSV or Excel)
- normalize event types / unit codes and aggregate per event type
- print the three ranked tables and the narrative
- write one chart per table (and optional exports / DOCX) to --out-dir

The CLI DOES NOT modify the dataset file.
"""

from __future__ import annotations
import argparse
import sys
from typing import List, Optional

from .engine import StormReport
from .loader import LoadError, NA_POLICIES
from .report import ReportConfig, TABLE_MEASURES, TABLE_TITLES, fmt_number, fmt_usd, summarize


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="stormstats",
        description="Rank storm event types by frequency, casualties and economic damage.",
    )
    ap.add_argument("input", help="Path to the storm data file (.csv, .csv.bz2, .xlsx)")
    ap.add_argument("--out-dir", default="stormstats_output", help="Where charts and exports are written")
    ap.add_argument("--report", default=None, help="Also write a DOCX report to this path")
    ap.add_argument("--export", choices=("csv", "json"), default=None, help="Write the ranked tables to --out-dir")
    ap.add_argument("--na-policy", choices=NA_POLICIES, default="fail",
                    help="Missing numeric values: fail (default) or count them as zero")
    ap.add_argument("--top-n", type=int, default=10, help="Rows shown per ranked table")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the stormstats CLI. Returns the exit status."""
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.top_n < 1:
        ap.error("--top-n must be at least 1")

    print("Loading dataset...")
    try:
        sr = StormReport.from_path(args.input, na_policy=args.na_policy)
    except LoadError as e:
        print(f"Error: {e}")
        return 1
    print(f"Loaded {len(sr.dataset.events):,} events.")

    agg = sr.aggregates
    print(f"Distinct event types after normalization: {len(agg.counts):,}")

    for name in TABLE_MEASURES:
        rows = sr.ranked(name)
        print("")
        print(f"{TABLE_TITLES[name]} ({len(rows)} of {len(sr.table(name))} at or above the mean)")
        _print_rows(name, rows[:args.top_n])

    print("")
    for line in summarize(agg):
        print(line)

    print("")
    for path in sr.write_charts(args.out_dir):
        print(f"Chart written to {path}")

    if args.export:
        for path in sr.write_exports(args.out_dir, args.export):
            print(f"Exported {args.export.upper()} to {path}")

    if args.report:
        sr.write_report(args.report, config=ReportConfig(top_n=args.top_n))
        print(f"Report written to {args.report}")

    return 0


def _print_rows(name: str, rows) -> None:
    if not rows:
        print("  (nothing to rank)")
        return
    width = max(len(r.event_type) for r in rows)
    for r in rows:
        if name == "counts":
            print(f"  {r.event_type:<{width}}  {r.events:>10,}")
        elif name == "casualties":
            print(f"  {r.event_type:<{width}}  total={fmt_number(r.total)} "
                  f"fatalities={fmt_number(r.fatalities)} injuries={fmt_number(r.injuries)}")
        else:
            print(f"  {r.event_type:<{width}}  total={fmt_usd(r.total)} "
                  f"property={fmt_usd(r.property_damage)} crop={fmt_usd(r.crop_damage)}")


if __name__ == "__main__":
    sys.exit(main())
