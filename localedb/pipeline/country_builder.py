"""Assemble one canonical country document from its per-source records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from localedb.common.config_loader import BuildSettings
from localedb.common.constants import (
    SCHEMA_VERSION,
    SOURCE_BASE,
    SOURCE_DISPLAY_NAMES,
    SOURCE_LABELS,
    SOURCE_NUMBERING_PLAN,
    SOURCE_SECONDARY,
    SOURCE_STATISTICS,
)
from localedb.common.models import CountrySources
from localedb.pipeline.aggregation import CountryContribution
from localedb.pipeline.field_resolver import resolve_all
from localedb.pipeline.overrides import apply_override
from localedb.pipeline.phone_formatter import build_phone_section
from localedb.sources.cldr import CldrReader

SOURCE_ORDER = (SOURCE_BASE, SOURCE_DISPLAY_NAMES, SOURCE_SECONDARY, SOURCE_STATISTICS, SOURCE_NUMBERING_PLAN)
OVERRIDES_LABEL = "Manual Overrides"
AIRPORTS_LABEL = "Airports"
FORMAT_WIDTHS = ("full", "long", "medium", "short")
NAME_WIDTHS = ("wide", "abbreviated", "narrow")

IMPERIAL_COUNTRIES = {"US", "LR", "MM"}
LETTER_PAPER_COUNTRIES = {"US", "CA"}
RTL_LANGUAGES = {"ar", "dv", "fa", "he", "ku", "ps", "sd", "ug", "ur", "yi"}
_UTC_OFFSET_RE = re.compile(r"^UTC([+-]\d{2}:\d{2})$")


@dataclass(frozen=True)
class CountryBuild:
    code: str
    document: dict[str, Any]
    index_entry: dict[str, Any]
    contribution: CountryContribution
    applied_overrides: tuple[str, ...] = ()
    rejected_overrides: tuple[str, ...] = ()


def primary_language(sources: CountrySources, settings: BuildSettings) -> str:
    languages = sources.base.get("languages") or []
    return languages[0]["code"] if languages else settings.default_language


def _widths(payload: dict, keys: tuple[str, ...] = FORMAT_WIDTHS) -> dict[str, str]:
    values = {}
    for key in keys:
        value = payload.get(key) if isinstance(payload, dict) else None
        # Some calendars wrap a format in {"_value": ..., "_numbers": ...}.
        if isinstance(value, dict):
            value = value.get("_value")
        values[key] = value if isinstance(value, str) else ""
    return values


def _names(context: dict) -> dict[str, list[str]]:
    format_names = (context or {}).get("format") or {}
    return {width: list((format_names.get(width) or {}).values()) for width in NAME_WIDTHS}


def _utc_offset(timezones: list[str]) -> str:
    for zone in timezones:
        if zone == "UTC":
            return "+00:00"
        match = _UTC_OFFSET_RE.match(zone)
        if match:
            return match.group(1)
    return "+00:00"


def _clock_format(time_formats: dict[str, str], code: str) -> str:
    short = time_formats.get("short", "")
    if short:
        return "12h" if "a" in short else "24h"
    return "12h" if code == "US" else "24h"


def _am_pm(gregorian: dict) -> list[str]:
    periods = ((gregorian.get("dayPeriods") or {}).get("format") or {}).get("abbreviated") or {}
    if periods.get("am") and periods.get("pm"):
        return [periods["am"], periods["pm"]]
    return ["AM", "PM"]


def _languages_section(base: dict) -> list[dict[str, Any]]:
    return [
        {
            "code": lang["code"],
            "iso639_2": lang.get("iso639_2", ""),
            "iso639_3": lang.get("iso639_3", ""),
            "name": lang.get("name", ""),
            "nativeName": lang.get("native_name", ""),
            "official": True,
            "direction": "rtl" if lang["code"] in RTL_LANGUAGES else "ltr",
        }
        for lang in base.get("languages") or []
    ]


def _value(record: dict, key: str, default: Any = "") -> Any:
    value = record.get(key)
    return default if value is None else value


def build_country(
    sources: CountrySources,
    cldr: CldrReader | None,
    settings: BuildSettings,
    run_date: str,
) -> CountryBuild:
    code = sources.code
    base = sources.base
    language = primary_language(sources, settings)
    primary_locale = f"{language}-{code}"

    display_names: dict[str, Any] = {}
    gregorian: dict[str, Any] = {}
    numbers: dict[str, Any] = {}
    if cldr is not None:
        display_names = {
            "name": cldr.territory_name(settings.display_locale, code),
            "native_name": cldr.territory_name(language, code),
        }
        gregorian = cldr.gregorian(language)
        numbers = cldr.numbers(language)
    numbering_plan = {"calling_code": sources.phone.calling_code} if sources.phone else None
    resolved, used = resolve_all(
        {
            SOURCE_BASE: base,
            SOURCE_SECONDARY: sources.secondary,
            SOURCE_STATISTICS: sources.statistics,
            SOURCE_DISPLAY_NAMES: display_names,
            SOURCE_NUMBERING_PLAN: numbering_plan,
        }
    )

    if gregorian or numbers:
        used.add(SOURCE_DISPLAY_NAMES)
    symbols = numbers.get("symbols-numberSystem-latn") or {}
    decimal = symbols.get("decimal") or "."
    group = symbols.get("group") or ","
    time_formats = _widths(gregorian.get("timeFormats") or {})
    imperial = code in IMPERIAL_COUNTRIES
    languages = _languages_section(base)

    document: dict[str, Any] = {
        "$schema": SCHEMA_VERSION,
        "lastUpdated": run_date,
        "sources": [],
        "basics": {
            "name": resolved["name"],
            "officialName": resolved["officialName"],
            "nativeName": resolved["nativeName"],
            "officialNativeName": resolved["officialNativeName"],
            "capital": resolved["capital"],
            "capitalCoordinates": _value(base, "capital_coordinates", []),
            "coordinates": resolved["coordinates"],
            "continent": _value(base, "continent"),
            "region": resolved["region"],
            "subregion": resolved["subregion"],
            "population": resolved["population"],
            "area": resolved["area"],
            "flagEmoji": resolved["flagEmoji"],
            "tld": resolved["tld"],
            "landlocked": resolved["landlocked"],
            "borders": resolved["borders"],
            "languages": languages,
            "demonym": resolved["demonym"],
            "incomeGroup": resolved["incomeGroup"],
        },
        "codes": {
            "iso3166Alpha2": code,
            "iso3166Alpha3": resolved["alpha3"],
            "iso3166Numeric": str(resolved["numeric"]),
            "bcp47": [f"{lang['code']}-{code}" for lang in languages] or [primary_locale],
            "internetTld": resolved["tld"],
            "ioc": resolved["ioc"],
            "fifa": resolved["fifa"],
            "vehicleCode": resolved["vehicleCode"],
            "fips10": _value(base, "fips10"),
            "unLocode": _value(base, "un_locode"),
            "stanag1059": _value(base, "stanag1059"),
            "itu": _value(base, "itu"),
            "uic": _value(base, "uic"),
            "maritime": _value(base, "maritime", 0),
            "mmc": _value(base, "mmc", 0),
        },
        "currency": {
            "code": resolved["currencyCode"],
            "numericCode": _value(base, "currency_numeric", 0),
            "name": resolved["currencyName"],
            "nativeName": _value(base, "currency_native_name") or resolved["currencyName"],
            "symbol": resolved["currencySymbol"],
            "narrowSymbol": resolved["currencySymbol"],
            "symbolPosition": "before",
            "decimalSeparator": decimal,
            "thousandsSeparator": group,
            "decimalDigits": 2,
            "subunitValue": _value(base, "currency_subunit_value", 0),
            "subunitName": _value(base, "currency_subunit_name"),
            "pattern": (numbers.get("currencyFormats-numberSystem-latn") or {}).get("standard") or "¤#,##0.00",
        },
        "dateTime": {
            "firstDayOfWeek": 7 if code == "US" else 1,
            "clockFormat": _clock_format(time_formats, code),
            "dateFormats": _widths(gregorian.get("dateFormats") or {}),
            "timeFormats": time_formats,
            "datePatterns": _widths(gregorian.get("dateSkeletons") or {}),
            "timePatterns": _widths(gregorian.get("timeSkeletons") or {}),
            "monthNames": _names(gregorian.get("months") or {}),
            "dayNames": _names(gregorian.get("days") or {}),
            "amPmMarkers": _am_pm(gregorian),
            "timezones": resolved["timezones"],
            "primaryTimezone": (resolved["timezones"] or ["UTC"])[0],
            "utcOffset": _utc_offset(resolved["timezones"]),
        },
        "numberFormat": {
            "decimalSeparator": decimal,
            "thousandsSeparator": group,
            "digitGrouping": "3",
            "pattern": (numbers.get("decimalFormats-numberSystem-latn") or {}).get("standard") or "#,##0.###",
            "numberingSystem": numbers.get("defaultNumberingSystem") or "latn",
        },
        "phone": build_phone_section(sources.phone, str(resolved["callingCode"])),
        "addressFormat": {
            "format": "%N%n%A%n%Z %C",
            "lineOrder": ["name", "address", "city"],
            "postalCodeFormat": _value(base, "postal_code_format"),
            "postalCodeRegex": _value(base, "postal_code_regex"),
            "administrativeDivisionName": "Province",
            "administrativeDivisionType": "Province",
        },
        "locale": {
            "writingDirection": "rtl" if language in RTL_LANGUAGES else "ltr",
            "measurementSystem": "imperial" if imperial else "metric",
            "temperatureScale": "fahrenheit" if imperial else "celsius",
            "paperSize": "Letter" if code in LETTER_PAPER_COUNTRIES else "A4",
            "drivingSide": "left" if resolved["drivingSide"] == "left" else "right",
            "weekNumbering": "US" if code == "US" else "ISO",
        },
        "airports": [airport.to_dict() for airport in sources.airports],
    }

    overridden = apply_override(document, sources.overrides)
    document = overridden.document
    labels = [SOURCE_LABELS[source] for source in SOURCE_ORDER if source in used]
    if sources.airports:
        labels.append(AIRPORTS_LABEL)
    if overridden.applied:
        labels.append(OVERRIDES_LABEL)
    document["sources"] = labels

    return CountryBuild(
        code=code,
        document=document,
        index_entry=country_index_entry(document, primary_locale),
        contribution=country_contribution(document, primary_locale),
        applied_overrides=tuple(overridden.applied),
        rejected_overrides=tuple(overridden.rejected),
    )


def partial_country(sources: CountrySources, settings: BuildSettings, run_date: str) -> CountryBuild:
    """Base-list-only record for a country whose full resolution raised."""
    return build_country(CountrySources(code=sources.code, base=sources.base), None, settings, run_date)


def country_index_entry(document: dict[str, Any], primary_locale: str) -> dict[str, Any]:
    basics = document["basics"]
    return {
        "code": document["codes"]["iso3166Alpha2"],
        "name": basics["name"],
        "flagEmoji": basics["flagEmoji"],
        "continent": basics["continent"],
        "region": basics["region"],
        "primaryLocale": primary_locale,
        "currencyCode": document["currency"]["code"],
        "callingCode": document["phone"]["callingCode"],
    }


def country_contribution(document: dict[str, Any], primary_locale: str) -> CountryContribution:
    code = document["codes"]["iso3166Alpha2"]
    languages = tuple(
        (
            lang["code"],
            {
                "code": lang["code"],
                "iso639_2": lang["iso639_2"],
                "iso639_3": lang["iso639_3"],
                "name": lang["name"],
                "nativeName": lang["nativeName"],
                "direction": lang["direction"],
                "primaryLocale": f"{lang['code']}-{code}",
            },
        )
        for lang in document["basics"]["languages"]
    )
    currency = document["currency"]
    contribution_currency = None
    if currency["code"]:
        contribution_currency = (
            currency["code"],
            {
                "code": currency["code"],
                "numericCode": currency["numericCode"],
                "name": currency["name"],
                "nativeName": currency["nativeName"],
                "symbol": currency["symbol"],
                "subunitName": currency["subunitName"],
                "subunitValue": currency["subunitValue"],
                "primaryLocale": primary_locale,
            },
        )
    return CountryContribution(country_code=code, languages=languages, currency=contribution_currency)
