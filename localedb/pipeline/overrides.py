"""Manual per-country corrections applied on top of the resolved document.

Overrides live in ``{overrides_dir}/{CC}.json`` and mirror the document
layout. They are applied field by field: only existing sections and fields
may be replaced, and a replacement must have the type of the value it
replaces. Anything else is rejected and reported back to the caller.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from localedb.common.fs import read_json

OVERRIDABLE_SECTIONS = (
    "basics",
    "codes",
    "currency",
    "dateTime",
    "numberFormat",
    "phone",
    "addressFormat",
    "locale",
)


@dataclass
class OverrideResult:
    document: dict[str, Any]
    applied: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


def load_override(overrides_dir: Path, country_code: str) -> tuple[dict | None, str | None]:
    """Return ``(override, warning)``; a missing file is not a warning."""
    path = overrides_dir / f"{country_code}.json"
    if not path.exists():
        return None, None
    try:
        payload = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None, "OVERRIDE_MALFORMED"
    if not isinstance(payload, dict):
        return None, "OVERRIDE_MALFORMED"
    return payload, None


def _same_kind(current: Any, value: Any) -> bool:
    if isinstance(current, bool) or isinstance(value, bool):
        return isinstance(current, bool) and isinstance(value, bool)
    if isinstance(current, (int, float)):
        return isinstance(value, (int, float))
    if current is None:
        return value is None or isinstance(value, (str, int, float))
    return isinstance(value, type(current))


def _apply(target: dict[str, Any], overlay: dict[str, Any], path: str, result: OverrideResult) -> None:
    for key, value in overlay.items():
        key_path = f"{path}.{key}"
        if key not in target:
            result.rejected.append(key_path)
            continue
        current = target[key]
        if isinstance(current, dict) and isinstance(value, dict):
            _apply(current, value, key_path, result)
            continue
        if not _same_kind(current, value):
            result.rejected.append(key_path)
            continue
        target[key] = copy.deepcopy(value)
        result.applied.append(key_path)


def apply_override(document: dict[str, Any], override: dict[str, Any] | None) -> OverrideResult:
    result = OverrideResult(document=copy.deepcopy(document))
    if not override:
        return result
    for section, fields in override.items():
        if section not in OVERRIDABLE_SECTIONS or not isinstance(fields, dict):
            result.rejected.append(section)
            continue
        _apply(result.document[section], fields, section, result)
    return result
