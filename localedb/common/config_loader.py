"""Configuration loading, validation, and typed overlays."""

from __future__ import annotations

import dataclasses
import types
import typing
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from localedb.common.constants import DEFAULT_BATCH_SIZE
from localedb.common.errors import ConfigError
from localedb.common.fs import read_yaml
from localedb.common.schema import (
    check_pipeline_invariants,
    validate_pipeline_config,
    validate_sources_config,
)


@dataclass(frozen=True)
class BuildSettings:
    batch_size: int = DEFAULT_BATCH_SIZE
    display_locale: str = "en"
    default_language: str = "en"


@dataclass(frozen=True)
class SourcePaths:
    base_countries: str
    base_languages: str
    secondary_countries: str
    statistics_dir: str
    phone_metadata: str
    cldr_dir: str
    airports_primary: str
    airports_secondary: str
    overrides_dir: str


@dataclass(frozen=True)
class AirportMatching:
    bbox_degrees: float = 0.05
    max_distance_km: float = 1.0
    spatial_strategy: str = "first"


@dataclass(frozen=True)
class OutputLayout:
    dir: str = "out"


@dataclass(frozen=True)
class PipelineConfig:
    schema_version: str
    build: BuildSettings
    sources: SourcePaths
    airports: AirportMatching
    output: OutputLayout

    def source_path(self, data_dir: Path, name: str) -> Path:
        return data_dir / getattr(self.sources, name)

    def output_dir(self, data_dir: Path) -> Path:
        return data_dir / self.output.dir


@dataclass(frozen=True)
class FetchSource:
    name: str
    url: str
    target: str
    archive: bool = False
    members: tuple[str, ...] = ()
    github_repo: str | None = None
    version: str | None = None


@dataclass(frozen=True)
class ConfigBundle:
    pipeline: PipelineConfig
    fetch_sources: tuple[FetchSource, ...]


_SECTION_TYPES = {
    "build": BuildSettings,
    "sources": SourcePaths,
    "airports": AirportMatching,
    "output": OutputLayout,
}


def _check_value(expected: Any, value: Any, ctx: str) -> Any:
    origin = typing.get_origin(expected)
    args = typing.get_args(expected)
    if origin in (typing.Union, types.UnionType):
        if value is None and type(None) in args:
            return None
        expected = next(arg for arg in args if arg is not type(None))
        origin = typing.get_origin(expected)
        args = typing.get_args(expected)

    if origin is tuple:
        if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
            raise ConfigError(f"{ctx} must be a list of strings")
        return tuple(value)
    if expected is bool:
        if not isinstance(value, bool):
            raise ConfigError(f"{ctx} must be a boolean")
        return value
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{ctx} must be an integer")
        return value
    if expected is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{ctx} must be a number")
        return float(value)
    if expected is str:
        if not isinstance(value, str):
            raise ConfigError(f"{ctx} must be a string")
        return value
    raise ConfigError(f"{ctx} has an unsupported type")


def _build(cls, values: dict, ctx: str):
    hints = typing.get_type_hints(cls)
    kwargs = {key: _check_value(hints[key], value, f"{ctx}.{key}") for key, value in values.items()}
    return cls(**kwargs)


def _override(instance, overlay: Any, ctx: str):
    """Apply overlay values field by field; every key must name an existing field."""
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay for {ctx} must be a mapping")
    hints = typing.get_type_hints(type(instance))
    changes: dict[str, Any] = {}
    for key, value in overlay.items():
        if key not in hints:
            raise ConfigError(f"Unknown overlay key: {ctx}.{key}")
        current = getattr(instance, key)
        if dataclasses.is_dataclass(current):
            changes[key] = _override(current, value, f"{ctx}.{key}")
        else:
            changes[key] = _check_value(hints[key], value, f"{ctx}.{key}")
    return dataclasses.replace(instance, **changes)


def _read_overlay(overlay_config_dir: Path | None, filename: str):
    if overlay_config_dir is None:
        return None
    path = overlay_config_dir / filename
    if not path.exists():
        return None
    return read_yaml(path)


def build_pipeline_config(raw: dict) -> PipelineConfig:
    cfg = validate_pipeline_config(raw)
    sections = {name: _build(cls, cfg[name], name) for name, cls in _SECTION_TYPES.items()}
    return PipelineConfig(
        schema_version=_check_value(str, cfg["schema_version"], "schema_version"),
        **sections,
    )


def build_fetch_sources(raw: dict) -> tuple[FetchSource, ...]:
    cfg = validate_sources_config(raw)
    return tuple(_build(FetchSource, entry, f"sources[{entry['name']}]") for entry in cfg["sources"])


def apply_pipeline_overlay(config: PipelineConfig, overlay: Any) -> PipelineConfig:
    if overlay is None:
        return config
    return _override(config, overlay, "pipeline")


def apply_sources_overlay(sources: tuple[FetchSource, ...], overlay: Any) -> tuple[FetchSource, ...]:
    if overlay is None:
        return sources
    if not isinstance(overlay, dict) or not isinstance(overlay.get("sources", {}), dict):
        raise ConfigError("Overlay for sources must map source names to field overrides")
    by_name = {source.name: source for source in sources}
    for name, fields in overlay.get("sources", {}).items():
        if name not in by_name:
            raise ConfigError(f"Unknown overlay source: {name}")
        by_name[name] = _override(by_name[name], fields, f"sources.{name}")
    return tuple(by_name[source.name] for source in sources)


def load_all_configs(config_dir: Path, *, overlay_config_dir: Path | None = None) -> ConfigBundle:
    pipeline_path = config_dir / "pipeline.yml"
    sources_path = config_dir / "sources.yml"
    for path in (pipeline_path, sources_path):
        if not path.exists():
            raise ConfigError(f"Missing config file: {path}")

    pipeline = build_pipeline_config(read_yaml(pipeline_path))
    pipeline = apply_pipeline_overlay(pipeline, _read_overlay(overlay_config_dir, "pipeline.yml"))
    check_pipeline_invariants(pipeline)

    fetch_sources = build_fetch_sources(read_yaml(sources_path))
    fetch_sources = apply_sources_overlay(fetch_sources, _read_overlay(overlay_config_dir, "sources.yml"))

    return ConfigBundle(pipeline=pipeline, fetch_sources=fetch_sources)
