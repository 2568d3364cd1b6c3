"""Reader for the locale display-name, calendar and number-symbol JSON tree."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from localedb.common.fs import read_json

TERRITORIES_FILE = ("cldr-localenames-full", "territories.json")
GREGORIAN_FILE = ("cldr-dates-full", "ca-gregorian.json")
NUMBERS_FILE = ("cldr-numbers-full", "numbers.json")


def _dig(payload: Any, *keys: str) -> Any:
    current = payload
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class CldrReader:
    """Lazy, cached access to per-locale files.

    Workers of one batch share a reader, so the file cache is guarded by a lock.
    A missing or unparsable file reads as ``None``.
    """

    def __init__(self, cldr_dir: Path) -> None:
        nested = cldr_dir / "cldr-json"
        self.root = nested if nested.is_dir() else cldr_dir
        self._cache: dict[Path, Any] = {}
        self._lock = threading.Lock()
        self.malformed: list[str] = []

    @property
    def available(self) -> bool:
        return self.root.is_dir()

    def _load(self, package: str, locale: str, filename: str) -> Any:
        path = self.root / package / "main" / locale / filename
        with self._lock:
            if path in self._cache:
                return self._cache[path]
            payload = None
            if path.exists():
                try:
                    payload = read_json(path)
                except (OSError, UnicodeDecodeError, json.JSONDecodeError):
                    self.malformed.append(str(path))
            self._cache[path] = payload
            return payload

    def territory_name(self, locale: str, alpha2: str) -> str | None:
        payload = self._load(TERRITORIES_FILE[0], locale, TERRITORIES_FILE[1])
        return _dig(payload, "main", locale, "localeDisplayNames", "territories", alpha2)

    def gregorian(self, locale: str) -> dict[str, Any]:
        payload = self._load(GREGORIAN_FILE[0], locale, GREGORIAN_FILE[1])
        return _dig(payload, "main", locale, "dates", "calendars", "gregorian") or {}

    def numbers(self, locale: str) -> dict[str, Any]:
        payload = self._load(NUMBERS_FILE[0], locale, NUMBERS_FILE[1])
        return _dig(payload, "main", locale, "numbers") or {}
