"""Helpers for deterministic ordering."""

from __future__ import annotations

import unicodedata
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def stable_sorted(items: Iterable[T], key: Callable[[T], object]) -> list[T]:
    return sorted(items, key=key)


def collation_key(value: str | None) -> tuple[str, str]:
    """Sort key approximating locale-aware comparison of display names.

    Accents and case are ignored at the primary level ("Åland" sorts with
    "Aland"); the untouched value breaks ties so ordering stays total.
    """
    text = value or ""
    decomposed = unicodedata.normalize("NFKD", text)
    primary = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return primary, text
