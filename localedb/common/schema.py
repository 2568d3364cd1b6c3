"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from localedb.common.constants import KM_PER_DEGREE_LAT
from localedb.common.errors import ConfigError

PIPELINE_SECTIONS = {
    "build": {"batch_size", "display_locale", "default_language"},
    "sources": {
        "base_countries",
        "base_languages",
        "secondary_countries",
        "statistics_dir",
        "phone_metadata",
        "cldr_dir",
        "airports_primary",
        "airports_secondary",
        "overrides_dir",
    },
    "airports": {"bbox_degrees", "max_distance_km", "spatial_strategy"},
    "output": {"dir"},
}
SPATIAL_STRATEGIES = {"first", "nearest"}
FETCH_SOURCE_REQUIRED = {"name", "url", "target"}
FETCH_SOURCE_KNOWN = FETCH_SOURCE_REQUIRED | {"archive", "members", "github_repo", "version"}


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str) -> None:
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def validate_pipeline_config(cfg) -> dict:
    _assert_mapping(cfg, "pipeline config")
    top_known = {"schema_version", *PIPELINE_SECTIONS}
    _assert_required_keys(cfg, top_known, "pipeline config")
    _assert_no_unknown_keys(cfg, top_known, "pipeline config")

    for section, keys in PIPELINE_SECTIONS.items():
        _assert_mapping(cfg[section], section)
        _assert_required_keys(cfg[section], keys, section)
        _assert_no_unknown_keys(cfg[section], keys, section)

    return cfg


def validate_sources_config(cfg) -> dict:
    _assert_mapping(cfg, "sources config")
    _assert_required_keys(cfg, {"sources"}, "sources config")
    if not isinstance(cfg["sources"], list) or not cfg["sources"]:
        raise ConfigError("sources.sources must be a non-empty list")

    names: list[str] = []
    for idx, source in enumerate(cfg["sources"]):
        _assert_mapping(source, f"sources[{idx}]")
        _assert_required_keys(source, FETCH_SOURCE_REQUIRED, f"sources[{idx}]")
        _assert_no_unknown_keys(source, FETCH_SOURCE_KNOWN, f"sources[{idx}]")
        names.append(source["name"])

    dupes = {name for name in names if names.count(name) > 1}
    if dupes:
        raise ConfigError(f"Duplicate fetch sources: {', '.join(sorted(dupes))}")

    return cfg


def check_pipeline_invariants(cfg) -> None:
    """Reject settings under which the pipeline contracts cannot hold.

    Runs on the final typed config, after any overlay has been applied.
    """
    if cfg.build.batch_size < 1:
        raise ConfigError("build.batch_size must be at least 1")

    matching = cfg.airports
    if matching.max_distance_km <= 0:
        raise ConfigError("airports.max_distance_km must be positive")
    if matching.spatial_strategy not in SPATIAL_STRATEGIES:
        raise ConfigError(f"airports.spatial_strategy must be one of {sorted(SPATIAL_STRATEGIES)}")
    # The box is only a pre-filter: it may never reject a pair the distance test would accept.
    if matching.bbox_degrees * KM_PER_DEGREE_LAT <= matching.max_distance_km:
        raise ConfigError("airports.bbox_degrees is too narrow for airports.max_distance_km")
