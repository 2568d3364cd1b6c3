"""Currency/language documents, index projections and the build metadata."""

from __future__ import annotations

from typing import Any

from localedb.common.constants import SCHEMA_VERSION
from localedb.common.deterministic import collation_key, stable_sorted
from localedb.pipeline.aggregation import UsageContext


def _document(run_date: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"$schema": SCHEMA_VERSION, "lastUpdated": run_date, "data": data}


def build_country_index(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return stable_sorted(entries, key=lambda entry: (collation_key(entry["name"]), entry["code"]))


def build_currency_documents(context: UsageContext, run_date: str) -> dict[str, dict[str, Any]]:
    documents = {}
    for code in sorted(context.currency_countries):
        metadata = dict(context.currency_metadata.get(code, {"code": code}))
        metadata["countries"] = list(context.currency_countries[code])
        documents[code] = _document(run_date, metadata)
    return documents


def build_currency_index(documents: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
    index = []
    for code in sorted(documents):
        data = documents[code]["data"]
        index.append(
            {
                "code": code,
                "name": data.get("name", ""),
                "symbol": data.get("symbol", ""),
                "primaryLocale": data.get("primaryLocale", ""),
                "countriesCount": len(data["countries"]),
            }
        )
    return index


def _language_from_list(entry: dict[str, Any]) -> dict[str, Any]:
    return {
        "code": entry["code"],
        "iso639_2": entry.get("iso639_2", ""),
        "iso639_3": entry.get("iso639_3", ""),
        "name": entry.get("name", ""),
        "nativeName": entry.get("native_name", ""),
    }


def build_language_documents(
    context: UsageContext,
    language_list: dict[str, dict[str, Any]],
    run_date: str,
) -> dict[str, dict[str, Any]]:
    """One document per language in the language list or used by any country.

    The first country that declared a language supplies its metadata; the
    language list fills whatever that country left blank.
    """
    documents = {}
    for code in sorted(set(language_list) | set(context.language_countries)):
        metadata: dict[str, Any] = {"code": code, "direction": "ltr"}
        if code in language_list:
            metadata.update(_language_from_list(language_list[code]))
        for key, value in context.language_metadata.get(code, {}).items():
            if value not in (None, ""):
                metadata[key] = value
        metadata["countries"] = list(context.language_countries.get(code, []))
        documents[code] = _document(run_date, metadata)
    return documents


def build_language_index(documents: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
    index = []
    for code in sorted(documents):
        data = documents[code]["data"]
        index.append(
            {
                "code": code,
                "name": data.get("name", ""),
                "nativeName": data.get("nativeName", ""),
                "primaryLocale": data.get("primaryLocale") or code,
                "countriesCount": len(data["countries"]),
            }
        )
    return index


def build_meta(*, run_id: str, build_timestamp: str, counts: dict[str, int]) -> dict[str, Any]:
    return {
        "buildTimestamp": build_timestamp,
        "version": SCHEMA_VERSION,
        "runId": run_id,
        "counts": dict(sorted(counts.items())),
    }
