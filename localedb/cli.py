"""CLI entrypoint for the LocaleDB data build."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from localedb.common.config_loader import ConfigBundle, load_all_configs
from localedb.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS
from localedb.common.errors import PipelineError
from localedb.common.logging import build_logger, log_event
from localedb.common.run_meta import generate_run_id, parse_run_date
from localedb.pipeline.build import StageContext, run_airports, run_build
from localedb.sources.fetch import run_fetch


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=list(COMMANDS))
    parser.add_argument("--run-date", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--only", nargs="+", default=None, metavar="SOURCE", help="fetch only these sources")
    return parser.parse_args(argv)


def execute_stage(stage: str, bundle: ConfigBundle, ctx: StageContext, only: list[str] | None) -> None:
    if stage == "fetch":
        run_fetch(bundle.fetch_sources, ctx.data_dir, ctx.run_id, ctx.logger, only=only)
    elif stage == "airports":
        run_airports(ctx)
    elif stage == "build":
        run_build(ctx)
    else:
        raise ValueError(f"Unknown stage: {stage}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    run_date = parse_run_date(args.run_date)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    stages = ("fetch", "build") if args.command == "all" else (args.command,)

    try:
        bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)
    except PipelineError as exc:
        log_event(
            logger,
            f"configuration rejected: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            event="CONFIG_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL

    ctx = StageContext(
        config=bundle.pipeline,
        data_dir=data_dir,
        run_id=run_id,
        run_date=run_date,
        logger=logger,
    )
    for stage in stages:
        log_event(logger, "stage start", run_id=run_id, stage=stage, event="STAGE_START", status="ok")
        try:
            execute_stage(stage, bundle, ctx, args.only)
        except PipelineError as exc:
            log_event(
                logger,
                f"stage {stage} failed: {exc}",
                level=logging.ERROR,
                run_id=run_id,
                stage=stage,
                event="STAGE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            return EXIT_HARD_FAIL
        log_event(logger, "stage end", run_id=run_id, stage=stage, event="STAGE_END", status="ok")

    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        logging.getLogger(__name__).exception("unexpected failure")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
