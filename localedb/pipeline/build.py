"""Build orchestration: source adapters -> resolution -> documents and indices."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from localedb.common.config_loader import PipelineConfig
from localedb.common.fs import ensure_dir, write_json
from localedb.common.logging import log_event
from localedb.common.models import AirportRecord, CountrySources
from localedb.common.run_meta import utc_timestamp_iso
from localedb.pipeline.aggregation import BatchOutcome, UsageContext, run_in_batches
from localedb.pipeline.airport_resolver import (
    AirportResolution,
    build_airport_index,
    group_by_country,
    resolve_airports,
)
from localedb.pipeline.country_builder import CountryBuild, build_country, partial_country
from localedb.pipeline.indices import (
    build_country_index,
    build_currency_documents,
    build_currency_index,
    build_language_documents,
    build_language_index,
    build_meta,
)
from localedb.pipeline.overrides import load_override
from localedb.pipeline.reports import write_run_summary
from localedb.sources.airports import load_primary_airports, load_secondary_airports
from localedb.sources.cldr import CldrReader
from localedb.sources.countries import (
    LoadResult,
    alpha3_index,
    load_base_countries,
    load_base_languages,
    load_secondary_countries,
    load_statistics,
)
from localedb.sources.phone_metadata import load_phone_metadata


@dataclass
class StageContext:
    config: PipelineConfig
    data_dir: Path
    run_id: str
    run_date: str
    logger: logging.Logger
    warnings: list[str] = field(default_factory=list)

    @property
    def out_dir(self) -> Path:
        return self.config.output_dir(self.data_dir)

    def source_path(self, name: str) -> Path:
        return self.config.source_path(self.data_dir, name)

    def log(self, message: str, *, level: int = logging.INFO, **fields) -> None:
        log_event(self.logger, message, level=level, run_id=self.run_id, **fields)

    def warn(self, stage: str, source: str, codes: list[str], **fields) -> None:
        for code in codes:
            self.warnings.append(code)
            self.log(
                f"{source}: {code}",
                level=logging.WARNING,
                stage=stage,
                source=source,
                event="SOURCE_WARNING",
                status="warn",
                error_code=code,
                **fields,
            )


def _reset_dir(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
    ensure_dir(path)


def run_airports(ctx: StageContext) -> AirportResolution:
    """Resolve both airport listings and write per-country and index outputs."""
    primary, primary_warnings = load_primary_airports(ctx.source_path("airports_primary"))
    secondary, secondary_warnings = load_secondary_airports(ctx.source_path("airports_secondary"))
    ctx.warn("airports", "airports_primary", primary_warnings)
    ctx.warn("airports", "airports_secondary", secondary_warnings)

    resolution = resolve_airports(primary, secondary, ctx.config.airports)
    grouped = group_by_country(resolution.records)
    index = build_airport_index(resolution.records)

    airports_dir = ctx.out_dir / "airports"
    _reset_dir(airports_dir)
    for code, airports in grouped.items():
        write_json(airports_dir / f"{code}.json", [airport.to_dict() for airport in airports])
    write_json(ctx.out_dir / "_index_airports.json", index)

    ctx.log(
        "airport resolution complete",
        stage="airports",
        entity_type="airport",
        event="AIRPORTS_RESOLVED",
        status="ok",
        rows_in=len(primary) + len(secondary),
        rows_out=len(resolution.records),
    )
    for key, value in sorted(resolution.stats.items()):
        ctx.log(f"airport {key}: {value}", level=logging.DEBUG, stage="airports", event="AIRPORT_STAT")
    return resolution


def _country_inputs(
    ctx: StageContext,
    base: LoadResult,
    airports_by_country: dict[str, list[AirportRecord]],
) -> list[CountrySources]:
    secondary, alpha3_to_alpha2 = load_secondary_countries(ctx.source_path("secondary_countries"))
    ctx.warn("build", "secondary", secondary.warnings)
    statistics = load_statistics(
        ctx.source_path("statistics_dir"),
        alpha3_index(base.records, alpha3_to_alpha2),
    )
    ctx.warn("build", "statistics", statistics.warnings)
    phone = load_phone_metadata(ctx.source_path("phone_metadata"))
    ctx.warn("build", "numbering_plan", phone.warnings)

    overrides_dir = ctx.source_path("overrides_dir")
    inputs = []
    for code, record in base.records.items():
        override, warning = load_override(overrides_dir, code)
        if warning:
            ctx.warn("build", "overrides", [warning], entity_type="country", entity=code)
        inputs.append(
            CountrySources(
                code=code,
                base=record,
                secondary=secondary.records.get(code),
                statistics=statistics.records.get(code),
                phone=phone.records.get(code),
                airports=tuple(airports_by_country.get(code, ())),
                overrides=override,
            )
        )
    return inputs


def run_build(ctx: StageContext, *, airports: AirportResolution | None = None) -> dict:
    # Nothing can be built without the base list, so it is read before anything is written.
    base = load_base_countries(ctx.source_path("base_countries"))
    ctx.warn("build", "base", base.warnings, rows_out=len(base.records))
    if airports is None:
        airports = run_airports(ctx)
    inputs = _country_inputs(ctx, base, group_by_country(airports.records))
    language_list = load_base_languages(ctx.source_path("base_languages"))
    ctx.warn("build", "base_languages", language_list.warnings)
    cldr = CldrReader(ctx.source_path("cldr_dir"))
    if not cldr.available:
        ctx.warn("build", "display_names", ["DISPLAY_NAMES_MISSING"])

    settings = ctx.config.build
    out_dir = ctx.out_dir
    for name in ("countries", "currencies", "languages"):
        _reset_dir(out_dir / name)

    usage = UsageContext()
    built: list[CountryBuild] = []
    failed: list[str] = []

    def _worker(sources: CountrySources) -> CountryBuild:
        return build_country(sources, cldr, settings, ctx.run_date)

    def _fallback(sources: CountrySources, batch_no: int, error: BaseException) -> CountryBuild | None:
        failed.append(sources.code)
        ctx.log(
            f"country build failed: {error!r}",
            level=logging.ERROR,
            stage="build",
            entity_type="country",
            entity=sources.code,
            event="ENTITY_FAIL",
            status="error",
            batch=batch_no,
            error_code=getattr(error, "error_code", "UNEXPECTED_ERROR"),
        )
        try:
            return partial_country(sources, settings, ctx.run_date)
        except Exception as exc:
            ctx.log(
                f"partial country record failed: {exc!r}",
                level=logging.ERROR,
                stage="build",
                entity_type="country",
                entity=sources.code,
                event="ENTITY_SKIPPED",
                status="error",
                batch=batch_no,
            )
            return None

    def _reduce(batch_no: int, outcomes: list[BatchOutcome[CountrySources, CountryBuild]]) -> None:
        for outcome in outcomes:
            code = outcome.item.code
            result = outcome.result if outcome.ok else _fallback(outcome.item, batch_no, outcome.error)
            if result is None:
                continue
            usage.apply(result.contribution)
            built.append(result)
            write_json(out_dir / "countries" / f"{code}.json", result.document)
            if result.rejected_overrides:
                ctx.warn(
                    "build",
                    "overrides",
                    ["OVERRIDE_REJECTED"],
                    entity_type="country",
                    entity=code,
                    batch=batch_no,
                )
                ctx.log(
                    "rejected override paths: " + ", ".join(result.rejected_overrides),
                    level=logging.DEBUG,
                    stage="build",
                    entity=code,
                )
        ctx.log(
            f"batch {batch_no} done ({min(batch_no * settings.batch_size, len(inputs))}/{len(inputs)} countries)",
            stage="build",
            entity_type="country",
            event="BATCH_END",
            status="ok",
            batch=batch_no,
            rows_in=len(outcomes),
            rows_out=sum(1 for outcome in outcomes if outcome.ok),
        )

    ctx.log("country build start", stage="build", event="BUILD_START", status="ok", rows_in=len(inputs))
    run_in_batches(inputs, _worker, settings.batch_size, on_batch_done=_reduce)
    if cldr.malformed:
        ctx.warn("build", "display_names", ["DISPLAY_NAMES_MALFORMED"], rows_in=len(cldr.malformed))

    country_index = build_country_index([result.index_entry for result in built])
    currency_documents = build_currency_documents(usage, ctx.run_date)
    language_documents = build_language_documents(usage, language_list.records, ctx.run_date)
    for code, document in currency_documents.items():
        write_json(out_dir / "currencies" / f"{code}.json", document)
    for code, document in language_documents.items():
        write_json(out_dir / "languages" / f"{code}.json", document)

    write_json(out_dir / "_index_countries.json", country_index)
    write_json(out_dir / "_index_currencies.json", build_currency_index(currency_documents))
    write_json(out_dir / "_index_languages.json", build_language_index(language_documents))

    counts = {
        "countries": len(country_index),
        "currencies": len(currency_documents),
        "languages": len(language_documents),
        "airports": len(airports.records),
        "airportsIndexed": sum(1 for airport in airports.records if airport.iata),
        "failedCountries": len(failed),
    }
    write_json(
        out_dir / "_meta.json",
        build_meta(run_id=ctx.run_id, build_timestamp=utc_timestamp_iso(), counts=counts),
    )
    write_run_summary(
        out_dir,
        run_id=ctx.run_id,
        run_date=ctx.run_date,
        counts=counts,
        warnings=ctx.warnings,
        failed_entities=failed,
        airport_stats=airports.stats,
    )
    ctx.log(
        "build complete: "
        + ", ".join(f"{key}={value}" for key, value in counts.items()),
        stage="build",
        event="BUILD_END",
        status="partial" if failed else "ok",
        rows_in=len(inputs),
        rows_out=len(built),
    )
    return {"counts": counts, "failed": failed}
