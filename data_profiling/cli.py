"""Command-line interface for batch data-quality profiling.

Usage (examples):
    python -m data_profiling.cli profile --db lake.db --ingest-id ING_demo_001
    python -m data_profiling.cli profile --db lake.db --ingest-id ING_demo_001 --schema validated --json
    python -m data_profiling.cli review --db lake.db --ingest-id ING_demo_001 --top 10

``profile`` prints a concise summary by default; use --json for the full result.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .duck_store import DuckDBStore
from .errors import ProfilingError
from .pipeline import profile_batch
from .report import build_review_report, format_review_report
from .store import RAW, SCHEMAS


def _summarize(result: Dict[str, Any]) -> str:
    lines = [
        f"Ingest: {result.get('ingest_id')}  Schema: {result.get('schema_name')}",
        f"Tables: {result.get('tables_profiled')}  Variables: {result.get('variables_profiled')}"
        f"  Sentinels: {result.get('sentinels_detected')}",
        f"Issues: {result.get('critical_issues')} critical, {result.get('warning_issues')} warning,"
        f" {result.get('info_issues')} info",
        f"Overall score: {result.get('overall_score')}",
    ]
    return "\n".join(lines)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Profile data quality for an ingest batch stored in a DuckDB database."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--db", required=True, help="Path to the DuckDB database file")
        p.add_argument("--ingest-id", required=True, help="Ingest batch identifier")
        p.add_argument(
            "--schema",
            choices=list(SCHEMAS),
            default=RAW,
            help="Schema to profile (default: raw)",
        )
        p.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            help="Logging level (default: INFO)",
        )

    p_profile = sub.add_parser("profile", help="Profile every table of an ingest batch")
    add_common(p_profile)
    p_profile.add_argument(
        "--config",
        help="Path to profiling_settings.yml (default: config/profiling_settings.yml if present)",
    )
    p_profile.add_argument(
        "--json",
        action="store_true",
        help="Print the full JSON result to stdout (in addition to summary)",
    )

    p_review = sub.add_parser("review", help="Print the review report for a profiled batch")
    add_common(p_review)
    p_review.add_argument(
        "--top",
        type=int,
        default=20,
        help="Number of worst variables by missingness to show (default: 20)",
    )
    return parser


def _run_profile(args: argparse.Namespace) -> None:
    with DuckDBStore(args.db) as store:
        store.init_tables()
        result = profile_batch(
            store,
            args.ingest_id,
            schema_to_profile=args.schema,
            config_path=args.config,
        )
    data = result.as_dict()

    print(_summarize(data))

    if args.json:
        print("\n=== JSON Result ===")
        print(json.dumps(data, indent=2, default=str))


def _run_review(args: argparse.Namespace) -> None:
    with DuckDBStore(args.db, read_only=True) as store:
        report = build_review_report(store, args.ingest_id, args.schema, top_n_worst=args.top)
    print(format_review_report(report))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.db)
    if not path.exists():
        raise SystemExit(f"Database not found: {path}")

    try:
        if args.command == "profile":
            _run_profile(args)
        else:
            _run_review(args)
    except ProfilingError as exc:
        raise SystemExit(f"Profiling failed: {exc}") from exc


if __name__ == "__main__":  # pragma: no cover
    main()
