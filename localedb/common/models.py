"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class AirportRecord:
    iata: str | None
    icao: str | None
    name: str
    country_code: str
    region: str
    latitude: float | None
    longitude: float | None
    city: str = ""
    source: str = ""
    match_method: str | None = None
    match_distance_km: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def with_changes(self, **changes: Any) -> "AirportRecord":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "iata": self.iata or "",
            "icao": self.icao or "",
            "name": self.name,
            "city": self.city,
            "region": self.region,
            "countryCode": self.country_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "source": self.source,
            "matchMethod": self.match_method,
            "matchDistanceKm": self.match_distance_km,
        }


@dataclass(frozen=True)
class FormatRule:
    """One numbering-plan formatting rule, kept as plain strings."""

    pattern: str
    template: str
    leading_digits: tuple[str, ...] = ()
    international_template: str | None = None
    national_prefix_rule: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "format": self.template,
            "leadingDigits": list(self.leading_digits),
            "intlFormat": self.international_template,
            "nationalPrefixRule": self.national_prefix_rule,
        }


@dataclass(frozen=True)
class NumberType:
    name: str
    pattern: str = ""
    example_number: str = ""
    possible_lengths: tuple[int, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "exampleNumber": self.example_number,
            "possibleLengths": list(self.possible_lengths),
        }


@dataclass(frozen=True)
class PhoneTerritoryRecord:
    alpha2: str
    calling_code: str
    national_prefix: str = ""
    international_prefix: str = ""
    general_pattern: str = ""
    format_rules: tuple[FormatRule, ...] = ()
    types: dict[str, NumberType] = field(default_factory=dict)


@dataclass(frozen=True)
class CountrySources:
    """Every per-source intermediate record known for one alpha-2 code."""

    code: str
    base: dict[str, Any]
    secondary: dict[str, Any] | None = None
    statistics: dict[str, Any] | None = None
    phone: PhoneTerritoryRecord | None = None
    airports: tuple[AirportRecord, ...] = ()
    overrides: dict[str, Any] | None = None
