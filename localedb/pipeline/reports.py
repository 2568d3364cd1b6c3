"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from localedb.common.fs import write_json


def write_run_summary(
    out_dir: Path,
    *,
    run_id: str,
    run_date: str,
    counts: dict[str, int],
    warnings: list[str],
    failed_entities: list[str],
    airport_stats: dict[str, int] | None = None,
) -> Path:
    status = "success"
    if failed_entities:
        status = "partial"
    elif warnings:
        status = "warning"

    summary_path = out_dir / "reports" / "run_summary.json"
    payload = {
        "run_id": run_id,
        "run_date": run_date,
        "status": status,
        "counts": dict(sorted(counts.items())),
        "warning_count": len(warnings),
        "warnings": sorted(set(warnings)),
        "failed_entities": sorted(failed_entities),
        "airport_matching": dict(sorted((airport_stats or {}).items())),
    }
    write_json(summary_path, payload)
    return summary_path
