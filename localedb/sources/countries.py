"""Country-level source adapters.

Each loader turns one raw source into per-source intermediate records that
share canonical key names (``name``, ``capital``, ``population`` ...), so the
field resolver can read the same key from every source. A missing or
malformed optional source yields an empty result plus a warning code; only
the base country list is fatal.
"""

from __future__ import annotations

import csv
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from localedb.common.errors import SourceError
from localedb.common.fs import iter_csv_rows, read_json
from localedb.common.geometry import safe_float

ALPHA2_RE = re.compile(r"^[A-Z]{2}$")
ALPHA3_RE = re.compile(r"^[A-Z]{3}$")


@dataclass
class LoadResult:
    records: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    dropped: int = 0


def _code(value: Any, pattern: re.Pattern) -> str | None:
    if not isinstance(value, str):
        return None
    code = value.strip().upper()
    return code if pattern.match(code) else None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and value != ""


def _as_list(value: Any) -> list:
    """Scalars and comma-separated strings as a flat list; nested containers are ignored."""
    if isinstance(value, (list, tuple)):
        return [item for item in value if _scalar(item)]
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [value] if _scalar(value) else []


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _lat_lon(lat: Any, lon: Any) -> list[float]:
    lat_value = safe_float(lat)
    lon_value = safe_float(lon)
    if lat_value is None or lon_value is None:
        return []
    return [lat_value, lon_value]


def _read_optional_json(path: Path, label: str, result: LoadResult):
    if not path.exists():
        result.warnings.append(f"{label}_MISSING")
        return None
    try:
        return read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        result.warnings.append(f"{label}_MALFORMED")
        return None


# --- base dataset -------------------------------------------------------------


def _base_language(entry: dict) -> dict[str, Any] | None:
    code = _text(entry.get("iso_639_1")).lower()
    if not code:
        return None
    return {
        "code": code,
        "iso639_2": _text(entry.get("iso_639_2")),
        "iso639_3": _text(entry.get("iso_639_3")),
        "name": _text(entry.get("name")),
        "native_name": _text(entry.get("name_local")),
    }


def normalise_base_country(row: dict) -> dict[str, Any]:
    entries = row.get("languages")
    entries = [item for item in entries if isinstance(item, dict)] if isinstance(entries, list) else []
    languages = [lang for lang in (_base_language(item) for item in entries) if lang]
    return {
        "alpha2": _code(row.get("iso_3166_1_alpha2") or row.get("code"), ALPHA2_RE),
        "alpha3": _code(row.get("iso_3166_1_alpha3"), ALPHA3_RE) or "",
        "numeric": _text(row.get("iso_3166_1_numeric")),
        "name": _text(row.get("name")),
        "native_name": _text(row.get("name_local")),
        "capital": _text(row.get("capital_name")),
        "capital_coordinates": _lat_lon(row.get("capital_latitude"), row.get("capital_longitude")),
        "coordinates": _lat_lon(row.get("latitude"), row.get("longitude")),
        "continent": _text(row.get("continent")),
        "region": _text(row.get("region")),
        "subregion": _text(row.get("subregion")),
        "population": row.get("population"),
        "area": row.get("area_sq_km"),
        "flag": _text(row.get("flag")),
        "tld": _as_list(row.get("tld")),
        "landlocked": row.get("is_landlocked"),
        "borders": [code for code in (_code(b, ALPHA2_RE) for b in _as_list(row.get("borders"))) if code],
        "languages": languages,
        "ioc": _text(row.get("ioc")),
        "fifa": _text(row.get("fifa")),
        "vehicle_code": _text(row.get("vehicle_code")),
        "fips10": _text(row.get("fips10")),
        "un_locode": _text(row.get("un_locode")),
        "stanag1059": _text(row.get("stanag_1059")),
        "itu": _text(row.get("itu")),
        "uic": _text(row.get("uic")),
        "maritime": row.get("maritime"),
        "mmc": row.get("mmc"),
        "currency_code": _text(row.get("currency_code")).upper(),
        "currency_numeric": row.get("currency_numeric"),
        "currency_name": _text(row.get("currency")),
        "currency_native_name": _text(row.get("currency_local")),
        "currency_symbol": _text(row.get("currency_symbol")),
        "currency_subunit_value": row.get("currency_subunit_value"),
        "currency_subunit_name": _text(row.get("currency_subunit_name")),
        "timezones": _as_list(row.get("timezones")),
        "postal_code_format": _text(row.get("postal_code_format")),
        "postal_code_regex": _text(row.get("postal_code_regex")),
    }


def load_base_countries(path: Path) -> LoadResult:
    """Load the base country list. Nothing can be built without it."""
    try:
        payload = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SourceError(f"Base country list is unreadable: {path}") from exc
    if not isinstance(payload, list):
        raise SourceError(f"Base country list is not a JSON array: {path}")

    result = LoadResult()
    for row in payload:
        record = normalise_base_country(row) if isinstance(row, dict) else {"alpha2": None}
        code = record["alpha2"]
        if code is None:
            result.dropped += 1
            continue
        if code in result.records:
            result.warnings.append(f"BASE_DUPLICATE_{code}")
            continue
        result.records[code] = record
    if result.dropped:
        result.warnings.append("BASE_ROWS_MISSING_CODE")
    return result


def load_base_languages(path: Path) -> LoadResult:
    result = LoadResult()
    payload = _read_optional_json(path, "BASE_LANGUAGES", result)
    if payload is None:
        return result
    if not isinstance(payload, list):
        result.warnings.append("BASE_LANGUAGES_MALFORMED")
        return result

    for row in payload:
        language = _base_language(row) if isinstance(row, dict) else None
        if language is None:
            result.dropped += 1
            continue
        result.records.setdefault(language["code"], language)
    if result.dropped:
        result.warnings.append("BASE_LANGUAGES_MISSING_CODE")
    return result


# --- secondary geographic dataset ----------------------------------------------


def _first_native(names: Any, key: str) -> str:
    if not isinstance(names, dict) or not names:
        return ""
    first = names[next(iter(names))]
    if not isinstance(first, dict):
        return ""
    return _text(first.get(key))


def _calling_code(idd: Any) -> str:
    if not isinstance(idd, dict) or not idd.get("root"):
        return ""
    suffixes = _as_list(idd.get("suffixes"))
    # Countries sharing a root (e.g. +1) list many suffixes; only a single one is part of the code.
    suffix = suffixes[0] if len(suffixes) == 1 else ""
    return (_text(idd["root"]) + _text(suffix)).lstrip("+")


def normalise_secondary_country(row: dict, alpha3_to_alpha2: dict[str, str]) -> dict[str, Any]:
    name = _mapping(row.get("name"))
    currencies = _mapping(row.get("currencies"))
    currency_code = next(iter(currencies), "")
    currency = _mapping(currencies.get(currency_code))
    car = _mapping(row.get("car"))
    capital = _as_list(row.get("capital"))
    latlng = row.get("latlng") if isinstance(row.get("latlng"), list) else []
    return {
        "alpha2": _code(row.get("cca2"), ALPHA2_RE),
        "alpha3": _code(row.get("cca3"), ALPHA3_RE) or "",
        "numeric": _text(row.get("ccn3")),
        "name": _text(name.get("common")),
        "official_name": _text(name.get("official")),
        "native_name": _first_native(name.get("native"), "common"),
        "official_native_name": _first_native(name.get("native"), "official"),
        "capital": _text(capital[0]) if capital else "",
        "coordinates": _lat_lon(*latlng[:2]) if len(latlng) >= 2 else [],
        "region": _text(row.get("region")),
        "subregion": _text(row.get("subregion")),
        "population": row.get("population"),
        "area": row.get("area"),
        "flag": _text(row.get("flag")),
        "tld": _as_list(row.get("tld")),
        "landlocked": row.get("landlocked"),
        "borders": [alpha3_to_alpha2[b] for b in _as_list(row.get("borders")) if b in alpha3_to_alpha2],
        "currency_code": _text(currency_code).upper(),
        "currency_name": _text(currency.get("name")),
        "currency_symbol": _text(currency.get("symbol")),
        "calling_code": _calling_code(row.get("idd")),
        "demonym": _text(_mapping(_mapping(row.get("demonyms")).get("eng")).get("m")),
        "timezones": _as_list(row.get("timezones")),
        "driving_side": _text(car.get("side")),
        "vehicle_code": _text((_as_list(car.get("signs")) or [""])[0]),
        "ioc": _text(row.get("cioc")),
        "fifa": _text(row.get("fifa")),
    }


def load_secondary_countries(path: Path) -> tuple[LoadResult, dict[str, str]]:
    """Load the secondary dataset keyed by alpha-2, plus its alpha-3 to alpha-2 map."""
    result = LoadResult()
    payload = _read_optional_json(path, "SECONDARY_COUNTRIES", result)
    if payload is None:
        return result, {}
    if not isinstance(payload, list):
        result.warnings.append("SECONDARY_COUNTRIES_MALFORMED")
        return result, {}

    rows = [row for row in payload if isinstance(row, dict)]
    alpha3_to_alpha2: dict[str, str] = {}
    for row in rows:
        alpha2 = _code(row.get("cca2"), ALPHA2_RE)
        alpha3 = _code(row.get("cca3"), ALPHA3_RE)
        if alpha2 and alpha3:
            alpha3_to_alpha2.setdefault(alpha3, alpha2)

    for row in rows:
        record = normalise_secondary_country(row, alpha3_to_alpha2)
        if record["alpha2"] is None:
            result.dropped += 1
            continue
        result.records.setdefault(record["alpha2"], record)
    result.dropped += len(payload) - len(rows)
    if result.dropped:
        result.warnings.append("SECONDARY_ROWS_MISSING_CODE")
    return result, alpha3_to_alpha2


# --- statistical agency dataset -------------------------------------------------


def _latest_value(row: dict[str, str]) -> int | None:
    years = sorted((key for key in row if key.isdigit()), reverse=True)
    for year in years:
        value = safe_float(row.get(year))
        if value is not None:
            return int(value)
    return None


def alpha3_index(base_records: dict[str, dict[str, Any]], secondary_pairs: dict[str, str]) -> dict[str, str]:
    """alpha-3 to alpha-2 from the base list, with secondary pairs filling the gaps."""
    index = {record["alpha3"]: code for code, record in base_records.items() if record.get("alpha3")}
    for alpha3, alpha2 in secondary_pairs.items():
        index.setdefault(alpha3, alpha2)
    return index


def load_statistics(stats_dir: Path, alpha3_to_alpha2: dict[str, str]) -> LoadResult:
    """Load population plus region/income metadata, keyed by alpha-2.

    Rows are keyed by alpha-3 in the source and re-keyed through
    ``alpha3_to_alpha2``. Aggregates such as "WLD" carry no region in the
    metadata file and are dropped quietly; a country row that finds no
    alpha-2 is reported as unmapped.
    """
    result = LoadResult()
    population_files = sorted(stats_dir.glob("API_SP.POP.TOTL*.csv")) if stats_dir.is_dir() else []
    metadata_files = sorted(stats_dir.glob("Metadata_Country*.csv")) if stats_dir.is_dir() else []
    if not population_files and not metadata_files:
        result.warnings.append("STATISTICS_MISSING")
        return result

    by_alpha3: dict[str, dict[str, Any]] = {}
    try:
        for path in population_files[:1]:
            for row in iter_csv_rows(path, header_marker="Country Code"):
                alpha3 = _code(row.get("Country Code"), ALPHA3_RE)
                if alpha3 is None:
                    result.dropped += 1
                    continue
                by_alpha3.setdefault(alpha3, {"alpha3": alpha3})["population"] = _latest_value(row)
        for path in metadata_files[:1]:
            for row in iter_csv_rows(path, header_marker="Country Code"):
                alpha3 = _code(row.get("Country Code"), ALPHA3_RE)
                if alpha3 is None:
                    result.dropped += 1
                    continue
                entry = by_alpha3.setdefault(alpha3, {"alpha3": alpha3})
                entry["region"] = row.get("Region", "")
                entry["income_group"] = row.get("IncomeGroup", "")
    except (OSError, UnicodeDecodeError, csv.Error):
        result.warnings.append("STATISTICS_MALFORMED")
        return LoadResult(warnings=result.warnings)

    unmapped = 0
    for alpha3, entry in by_alpha3.items():
        alpha2 = alpha3_to_alpha2.get(alpha3)
        if alpha2 is None:
            if entry.get("region"):
                unmapped += 1
            continue
        result.records[alpha2] = entry
    if result.dropped:
        result.warnings.append("STATISTICS_ROWS_MISSING_CODE")
    if unmapped:
        result.warnings.append("STATISTICS_ROWS_UNMAPPED")
    return result
