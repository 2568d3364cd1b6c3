"""Merge the primary and secondary airport listings into one record set.

Identity resolution runs in two passes per primary airport:

1. key match: the secondary index by ICAO, then by IATA;
2. spatial match: unconsumed secondary airports of the same country inside a
   ``bbox_degrees`` box, accepted when the haversine distance is strictly
   below ``max_distance_km``.

A matched secondary airport is consumed and never offered again. With the
``first`` strategy the first acceptable candidate in secondary source order
wins, which can pick a farther airport when several sit within the
threshold; ``nearest`` takes the closest one instead.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from localedb.common.config_loader import AirportMatching
from localedb.common.constants import PROVENANCE_MERGED, PROVENANCE_PRIMARY_ONLY, PROVENANCE_SECONDARY_ONLY
from localedb.common.geometry import haversine_km, within_box
from localedb.common.models import AirportRecord
from localedb.pipeline.field_resolver import is_absent

MERGE_FIELDS = ("iata", "icao", "name", "city", "country_code", "region", "latitude", "longitude")


@dataclass
class AirportResolution:
    records: list[AirportRecord]
    stats: dict[str, int] = field(default_factory=dict)


class _SecondaryPool:
    """Secondary airports with consume-once bookkeeping."""

    def __init__(self, airports: list[AirportRecord]) -> None:
        self.airports = airports
        self.by_icao: dict[str, int] = {}
        self.by_iata: dict[str, int] = {}
        self.by_country: dict[str, list[int]] = defaultdict(list)
        self.consumed: set[int] = set()
        for idx, airport in enumerate(airports):
            # A repeated code keeps its first row in the index.
            if airport.icao:
                self.by_icao.setdefault(airport.icao, idx)
            if airport.iata:
                self.by_iata.setdefault(airport.iata, idx)
            if airport.country_code and airport.has_coordinates:
                self.by_country[airport.country_code].append(idx)

    def consume(self, idx: int) -> AirportRecord:
        airport = self.airports[idx]
        self.consumed.add(idx)
        if airport.icao and self.by_icao.get(airport.icao) == idx:
            del self.by_icao[airport.icao]
        if airport.iata and self.by_iata.get(airport.iata) == idx:
            del self.by_iata[airport.iata]
        return airport

    def key_match(self, primary: AirportRecord) -> tuple[int, str] | None:
        if primary.icao and primary.icao in self.by_icao:
            return self.by_icao[primary.icao], "icao"
        if primary.iata and primary.iata in self.by_iata:
            return self.by_iata[primary.iata], "iata"
        return None

    def spatial_candidates(self, primary: AirportRecord, matching: AirportMatching) -> Iterable[tuple[int, float]]:
        """Yield ``(index, distance)`` for unconsumed candidates under the threshold, in source order."""
        if not primary.country_code or not primary.has_coordinates:
            return
        for idx in self.by_country.get(primary.country_code, ()):
            if idx in self.consumed:
                continue
            candidate = self.airports[idx]
            if not within_box(
                primary.latitude,
                primary.longitude,
                candidate.latitude,
                candidate.longitude,
                matching.bbox_degrees,
            ):
                continue
            distance = haversine_km(primary.latitude, primary.longitude, candidate.latitude, candidate.longitude)
            if distance < matching.max_distance_km:
                yield idx, distance

    def spatial_match(self, primary: AirportRecord, matching: AirportMatching) -> tuple[int, float] | None:
        candidates = self.spatial_candidates(primary, matching)
        if matching.spatial_strategy == "nearest":
            # min() keeps the earliest candidate on equal distances.
            return min(candidates, key=lambda item: item[1], default=None)
        return next(iter(candidates), None)


def merge_airports(
    primary: AirportRecord,
    secondary: AirportRecord,
    method: str,
    distance_km: float | None = None,
) -> AirportRecord:
    """Primary values win; the secondary record fills what the primary leaves empty."""
    filled = {
        name: getattr(secondary, name)
        for name in MERGE_FIELDS
        if is_absent(getattr(primary, name)) and not is_absent(getattr(secondary, name))
    }
    if "latitude" in filled or "longitude" in filled:
        # Coordinates travel as a pair.
        if primary.has_coordinates:
            filled.pop("latitude", None)
            filled.pop("longitude", None)
        else:
            filled["latitude"] = secondary.latitude
            filled["longitude"] = secondary.longitude
    return primary.with_changes(
        **filled,
        source=PROVENANCE_MERGED,
        match_method=method,
        match_distance_km=round(distance_km, 6) if distance_km is not None else None,
    )


def resolve_airports(
    primary: list[AirportRecord],
    secondary: list[AirportRecord],
    matching: AirportMatching,
) -> AirportResolution:
    pool = _SecondaryPool(secondary)
    stats = {
        "primary": len(primary),
        "secondary": len(secondary),
        "matched_icao": 0,
        "matched_iata": 0,
        "matched_spatial": 0,
        "primary_only": 0,
        "secondary_only": 0,
    }
    records: list[AirportRecord] = []

    for airport in primary:
        key_hit = pool.key_match(airport)
        if key_hit is not None:
            idx, method = key_hit
            records.append(merge_airports(airport, pool.consume(idx), method))
            stats[f"matched_{method}"] += 1
            continue

        spatial_hit = pool.spatial_match(airport, matching)
        if spatial_hit is not None:
            idx, distance = spatial_hit
            records.append(merge_airports(airport, pool.consume(idx), "spatial", distance))
            stats["matched_spatial"] += 1
            continue

        records.append(airport.with_changes(source=PROVENANCE_PRIMARY_ONLY))
        stats["primary_only"] += 1

    for idx, airport in enumerate(secondary):
        if idx in pool.consumed:
            continue
        records.append(airport.with_changes(source=PROVENANCE_SECONDARY_ONLY))
        stats["secondary_only"] += 1

    stats["total"] = len(records)
    return AirportResolution(records=records, stats=stats)


def _airport_sort_key(airport: AirportRecord) -> tuple[str, str, str]:
    return airport.iata or "", airport.icao or "", airport.name


def group_by_country(records: list[AirportRecord]) -> dict[str, list[AirportRecord]]:
    grouped: dict[str, list[AirportRecord]] = defaultdict(list)
    for airport in records:
        if airport.country_code:
            grouped[airport.country_code].append(airport)
    return {code: sorted(grouped[code], key=_airport_sort_key) for code in sorted(grouped)}


def index_entry(airport: AirportRecord) -> dict:
    return {
        "iata": airport.iata,
        "icao": airport.icao or "",
        "name": airport.name,
        "countryCode": airport.country_code,
        "region": airport.region,
        "latitude": airport.latitude,
        "longitude": airport.longitude,
    }


def build_airport_index(records: list[AirportRecord]) -> list[dict]:
    """Flat index: only airports with an IATA code, ordered by that code."""
    with_iata = [airport for airport in records if airport.iata]
    return [index_entry(airport) for airport in sorted(with_iata, key=_airport_sort_key)]
