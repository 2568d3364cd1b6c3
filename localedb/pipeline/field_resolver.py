"""Pick one value per country field from the per-source intermediate records.

Every field has a fixed priority list of ``(source, key)`` slots. Resolution
takes the first slot holding a defined, non-empty value; values are never
blended across sources. When every slot is absent, the field's default is
returned. Nothing here raises or performs I/O.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping

from localedb.common.constants import (
    SOURCE_BASE,
    SOURCE_DISPLAY_NAMES,
    SOURCE_NUMBERING_PLAN,
    SOURCE_SECONDARY,
    SOURCE_STATISTICS,
)

FIELD_PRIORITIES: dict[str, tuple[tuple[str, str], ...]] = {
    "name": ((SOURCE_DISPLAY_NAMES, "name"), (SOURCE_SECONDARY, "name"), (SOURCE_BASE, "name")),
    "officialName": ((SOURCE_SECONDARY, "official_name"), (SOURCE_BASE, "name")),
    "nativeName": (
        (SOURCE_DISPLAY_NAMES, "native_name"),
        (SOURCE_SECONDARY, "native_name"),
        (SOURCE_BASE, "native_name"),
    ),
    "officialNativeName": ((SOURCE_SECONDARY, "official_native_name"),),
    "population": (
        (SOURCE_STATISTICS, "population"),
        (SOURCE_SECONDARY, "population"),
        (SOURCE_BASE, "population"),
    ),
    "region": ((SOURCE_STATISTICS, "region"), (SOURCE_SECONDARY, "region"), (SOURCE_BASE, "region")),
    "subregion": (
        (SOURCE_STATISTICS, "subregion"),
        (SOURCE_SECONDARY, "subregion"),
        (SOURCE_BASE, "subregion"),
    ),
    "capital": ((SOURCE_SECONDARY, "capital"), (SOURCE_BASE, "capital")),
    "coordinates": ((SOURCE_SECONDARY, "coordinates"), (SOURCE_BASE, "coordinates")),
    "tld": ((SOURCE_SECONDARY, "tld"), (SOURCE_BASE, "tld")),
    "borders": ((SOURCE_SECONDARY, "borders"), (SOURCE_BASE, "borders")),
    "vehicleCode": ((SOURCE_SECONDARY, "vehicle_code"), (SOURCE_BASE, "vehicle_code")),
    "area": ((SOURCE_BASE, "area"), (SOURCE_SECONDARY, "area")),
    "currencyCode": ((SOURCE_BASE, "currency_code"), (SOURCE_SECONDARY, "currency_code")),
    "currencyName": ((SOURCE_BASE, "currency_name"), (SOURCE_SECONDARY, "currency_name")),
    "currencySymbol": ((SOURCE_BASE, "currency_symbol"), (SOURCE_SECONDARY, "currency_symbol")),
    "callingCode": ((SOURCE_NUMBERING_PLAN, "calling_code"), (SOURCE_SECONDARY, "calling_code")),
    "demonym": ((SOURCE_SECONDARY, "demonym"),),
    "landlocked": ((SOURCE_BASE, "landlocked"), (SOURCE_SECONDARY, "landlocked")),
    "timezones": ((SOURCE_SECONDARY, "timezones"), (SOURCE_BASE, "timezones")),
    "drivingSide": ((SOURCE_SECONDARY, "driving_side"),),
    "incomeGroup": ((SOURCE_STATISTICS, "income_group"),),
    "alpha3": ((SOURCE_BASE, "alpha3"), (SOURCE_SECONDARY, "alpha3")),
    "numeric": ((SOURCE_BASE, "numeric"), (SOURCE_SECONDARY, "numeric")),
    "flagEmoji": ((SOURCE_BASE, "flag"), (SOURCE_SECONDARY, "flag")),
    "ioc": ((SOURCE_BASE, "ioc"), (SOURCE_SECONDARY, "ioc")),
    "fifa": ((SOURCE_BASE, "fifa"), (SOURCE_SECONDARY, "fifa")),
}

NUMERIC_FIELDS = {"population", "area"}
LIST_FIELDS = {"coordinates", "tld", "borders", "timezones"}
BOOLEAN_FIELDS = {"landlocked"}


def field_default(field_name: str) -> Any:
    if field_name in NUMERIC_FIELDS:
        return 0
    if field_name in LIST_FIELDS:
        return []
    if field_name in BOOLEAN_FIELDS:
        return False
    return ""


def is_absent(value: Any) -> bool:
    """``None``, blank strings and empty collections are absent; ``0`` and ``False`` are not."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def resolve(field_name: str, candidates: list[Any]) -> Any:
    """Return the first present candidate, else the field's default."""
    for value in candidates:
        if not is_absent(value):
            return value
    return field_default(field_name)


def field_candidates(field_name: str, records: Mapping[str, Mapping[str, Any] | None]) -> list[tuple[str, Any]]:
    """``(source, value)`` pairs for one field, highest priority first."""
    pairs = []
    for source, key in FIELD_PRIORITIES[field_name]:
        record = records.get(source)
        pairs.append((source, record.get(key) if record else None))
    return pairs


def resolve_with_source(field_name: str, records: Mapping[str, Mapping[str, Any] | None]) -> tuple[Any, str | None]:
    pairs = field_candidates(field_name, records)
    value = resolve(field_name, [value for _source, value in pairs])
    source = next(
        (source for source, candidate in pairs if candidate is value and not is_absent(candidate)),
        None,
    )
    return copy.deepcopy(value), source


def resolve_field(field_name: str, records: Mapping[str, Mapping[str, Any] | None]) -> Any:
    value, _source = resolve_with_source(field_name, records)
    return value


def resolve_all(records: Mapping[str, Mapping[str, Any] | None]) -> tuple[dict[str, Any], set[str]]:
    """Resolve every known field; also returns the sources that supplied at least one value."""
    resolved: dict[str, Any] = {}
    used: set[str] = set()
    for field_name in FIELD_PRIORITIES:
        value, source = resolve_with_source(field_name, records)
        resolved[field_name] = value
        if source is not None:
            used.add(source)
    return resolved, used
