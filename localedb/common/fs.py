"""Filesystem helpers."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterator


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_json(path: Path, payload) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")


def read_json(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def iter_csv_rows(path: Path, *, header_marker: str | None = None) -> Iterator[dict[str, str]]:
    """Yield CSV rows as dicts.

    Some publishers prepend banner lines before the real header; when
    ``header_marker`` is given, lines are skipped until one contains it.
    """
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        if header_marker is not None:
            lines = f.readlines()
            start = next((idx for idx, line in enumerate(lines) if header_marker in line), len(lines))
            reader = csv.DictReader(lines[start:])
        else:
            reader = csv.DictReader(f)
        for row in reader:
            yield {(key or "").strip(): (value or "").strip() for key, value in row.items() if key is not None}
