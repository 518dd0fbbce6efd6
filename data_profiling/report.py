"""Review report over persisted profiling results.

Reads the result collections for one (batch, schema) pair back from a store
and arranges them for a human reviewer: score distribution, per-table
summaries, critical and warning issues, and the worst columns by missingness.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List

from .records import CRITICAL, ISSUE, PROFILE, SENTINEL, SUMMARY, WARNING
from .scoring import SCORE_LEVELS, score_rank
from .store import ProfilingStore

_SEVERITY_ORDER = {CRITICAL: 0, WARNING: 1}
_MAX_WARNINGS_SHOWN = 30


def build_review_report(
    store: ProfilingStore,
    ingest_id: str,
    schema_name: str,
    top_n_worst: int = 20,
) -> Dict[str, Any]:
    summaries = store.fetch_results(SUMMARY, ingest_id, schema_name)
    summaries.sort(key=lambda r: (score_rank(r["quality_score"]), r["table_name"]))

    counts = Counter(r["quality_score"] for r in summaries)
    score_distribution = {s: counts[s] for s in SCORE_LEVELS if counts[s]}

    issues = [
        r
        for r in store.fetch_results(ISSUE, ingest_id, schema_name)
        if r["severity"] in _SEVERITY_ORDER
    ]
    issues.sort(
        key=lambda r: (_SEVERITY_ORDER[r["severity"]], r["table_name"], r["variable_name"] or "")
    )

    # sorted() is stable, so ties keep table/column write order.
    profile = store.fetch_results(PROFILE, ingest_id, schema_name)
    worst = sorted(profile, key=lambda r: -r["total_missing_pct"])[: max(top_n_worst, 0)]

    sentinels = store.fetch_results(SENTINEL, ingest_id, schema_name)
    sentinels.sort(key=lambda r: -r["sentinel_count"])

    return {
        "ingest_id": ingest_id,
        "schema_name": schema_name,
        "score_distribution": score_distribution,
        "tables": summaries,
        "critical_issues": [r for r in issues if r["severity"] == CRITICAL],
        "warning_issues": [r for r in issues if r["severity"] == WARNING],
        "worst_variables": worst,
        "sentinels": sentinels,
    }


def _fmt_pct(value: Any) -> str:
    return "-" if value is None else f"{value:.1f}"


def format_review_report(report: Dict[str, Any]) -> str:
    lines: List[str] = [
        "=" * 67,
        "DATA PROFILING REVIEW",
        "=" * 67,
        f"  Ingest: {report['ingest_id']}",
        f"  Schema: {report['schema_name']}",
        "",
        "--- Quality Scores by Table ---",
    ]

    tables = report["tables"]
    if not tables:
        lines.append("  No profiling results found for this ingest.")
    else:
        for score, n in report["score_distribution"].items():
            lines.append(f"  {score}: {n} tables")
        lines.append("")
        for t in tables:
            lines.append(
                f"  {t['table_name']}: {t['quality_score']}"
                f"  rows={t['row_count']} vars={t['variable_count']}"
                f"  issues={t['critical_issue_count']}C/{t['warning_issue_count']}W/{t['info_issue_count']}I"
                f"  avg_valid%={_fmt_pct(t['avg_valid_pct'])}"
                f"  worst={t['worst_variable'] or '-'} ({_fmt_pct(t['worst_variable_missing_pct'])}%)"
            )

    lines += ["", "--- Critical & Warning Issues ---"]
    critical, warnings = report["critical_issues"], report["warning_issues"]
    if not critical and not warnings:
        lines.append("  No critical or warning issues.")
    else:
        lines.append(f"  Critical: {len(critical)}   Warnings: {len(warnings)}")
        if critical:
            lines.append("  CRITICAL:")
            for i in critical:
                lines.append(f"    {i['table_name']}.{i['variable_name']}: {i['description']}")
        if warnings:
            shown = warnings[:_MAX_WARNINGS_SHOWN]
            lines.append(f"  WARNINGS (showing {len(shown)} of {len(warnings)}):")
            for i in shown:
                lines.append(
                    f"    {i['table_name']}.{i['variable_name']}: {i['issue_type']} ({_fmt_pct(i['value'])})"
                )

    worst = report["worst_variables"]
    lines += ["", f"--- Top {len(worst)} Worst Variables (by missingness) ---"]
    if not worst:
        lines.append("  No profile data found.")
    for w in worst:
        lines.append(
            f"  {w['table_name']}.{w['variable_name']} [{w['inferred_type']}]"
            f"  missing={_fmt_pct(w['total_missing_pct'])}%"
            f"  (na={_fmt_pct(w['na_pct'])} empty={_fmt_pct(w['empty_pct'])}"
            f" ws={_fmt_pct(w['whitespace_pct'])} sentinel={_fmt_pct(w['sentinel_pct'])})"
        )

    sentinels = report["sentinels"]
    lines += ["", "--- Detected Sentinel Values ---"]
    if not sentinels:
        lines.append("  No sentinels detected.")
    else:
        lines.append(f"  Total sentinel detections: {len(sentinels)}")
        for s in sentinels:
            lines.append(
                f"  {s['table_name']}.{s['variable_name']}: '{s['sentinel_value']}'"
                f" x{s['sentinel_count']} ({_fmt_pct(s['sentinel_pct'])}%)"
                f" {s['detection_method']}/{s['confidence']}"
            )

    return "\n".join(lines)
