"""Airport listing adapters.

The primary listing is a JSON object keyed loosely by ICAO code; the secondary
listing is a flat CSV. Both are projected onto ``AirportRecord`` in source
order, and rows carrying neither an IATA nor an ICAO code are dropped.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable

from localedb.common.fs import iter_csv_rows, read_json
from localedb.common.geometry import safe_float, valid_lat_lon
from localedb.common.models import AirportRecord


def _code(value: Any) -> str | None:
    if value is None:
        return None
    code = str(value).strip().upper()
    return code or None


def _record(
    *,
    iata: Any,
    icao: Any,
    name: Any,
    country_code: Any,
    region: Any,
    latitude: Any,
    longitude: Any,
    city: Any = "",
) -> AirportRecord | None:
    iata_code = _code(iata)
    icao_code = _code(icao)
    if iata_code is None and icao_code is None:
        return None
    lat = safe_float(latitude)
    lon = safe_float(longitude)
    if not valid_lat_lon(lat, lon):
        lat = lon = None
    return AirportRecord(
        iata=iata_code,
        icao=icao_code,
        name=str(name or "").strip(),
        country_code=_code(country_code) or "",
        region=str(region or "").strip(),
        latitude=lat,
        longitude=lon,
        city=str(city or "").strip(),
    )


def primary_records(payload: Any) -> tuple[list[AirportRecord], int]:
    rows: Iterable[Any] = payload.values() if isinstance(payload, dict) else payload
    records: list[AirportRecord] = []
    dropped = 0
    for row in rows:
        record = None
        if isinstance(row, dict):
            record = _record(
                iata=row.get("iata"),
                icao=row.get("icao"),
                name=row.get("name"),
                country_code=row.get("country"),
                region=row.get("state"),
                latitude=row.get("lat"),
                longitude=row.get("lon"),
                city=row.get("city"),
            )
        if record is None:
            dropped += 1
            continue
        records.append(record)
    return records, dropped


def secondary_records(rows: Iterable[dict[str, str]]) -> tuple[list[AirportRecord], int]:
    records: list[AirportRecord] = []
    dropped = 0
    for row in rows:
        record = _record(
            iata=row.get("iata"),
            icao=row.get("icao"),
            name=row.get("airport"),
            country_code=row.get("country_code"),
            region=row.get("region_name"),
            latitude=row.get("latitude"),
            longitude=row.get("longitude"),
        )
        if record is None:
            dropped += 1
            continue
        records.append(record)
    return records, dropped


def load_primary_airports(path: Path) -> tuple[list[AirportRecord], list[str]]:
    if not path.exists():
        return [], ["AIRPORTS_PRIMARY_MISSING"]
    try:
        payload = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return [], ["AIRPORTS_PRIMARY_MALFORMED"]
    if not isinstance(payload, (dict, list)):
        return [], ["AIRPORTS_PRIMARY_MALFORMED"]

    records, dropped = primary_records(payload)
    return records, ["AIRPORTS_PRIMARY_ROWS_MISSING_CODE"] if dropped else []


def load_secondary_airports(path: Path) -> tuple[list[AirportRecord], list[str]]:
    if not path.exists():
        return [], ["AIRPORTS_SECONDARY_MISSING"]
    try:
        records, dropped = secondary_records(iter_csv_rows(path))
    except (OSError, UnicodeDecodeError, csv.Error):
        return [], ["AIRPORTS_SECONDARY_MALFORMED"]
    return records, ["AIRPORTS_SECONDARY_ROWS_MISSING_CODE"] if dropped else []
