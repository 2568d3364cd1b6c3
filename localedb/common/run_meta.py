"""Run identity and UTC clock helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def generate_run_id() -> str:
    return _now().strftime("build-%Y%m%dT%H%M%S%fZ")


def parse_run_date(value: str | None) -> str:
    """Validate an ISO run date, defaulting to today in UTC."""
    if not value:
        return _now().date().isoformat()
    return date.fromisoformat(value).isoformat()


def utc_timestamp_iso() -> str:
    return _now().isoformat(timespec="milliseconds")
