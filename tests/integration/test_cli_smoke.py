import json
from pathlib import Path

import pytest

from localedb.cli import parse_args, run_command


def _args(command: str, config_dir: Path, data_dir: Path, run_id: str = "run-test", *extra: str):
    return parse_args(
        [
            command,
            "--config-dir",
            str(config_dir),
            "--data-dir",
            str(data_dir),
            "--run-date",
            "2026-02-17",
            "--run-id",
            run_id,
            *extra,
        ]
    )


@pytest.mark.integration
def test_cli_build_generates_expected_artifacts(config_dir: Path, source_tree: Path):
    exit_code = run_command(_args("build", config_dir, source_tree))

    out = source_tree / "out"
    assert exit_code == 0
    assert (out / "countries" / "TR.json").exists()
    assert (out / "currencies" / "TRY.json").exists()
    assert (out / "languages" / "tr.json").exists()
    assert (out / "_index_airports.json").exists()
    assert (out / "_meta.json").exists()
    assert (out / "reports" / "run_summary.json").exists()

    log_lines = (source_tree / "run_meta" / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    events = [json.loads(line)["event"] for line in log_lines]
    assert "BATCH_END" in events
    assert events[-2] == "BUILD_END"
    assert events[-1] == "STAGE_END"


@pytest.mark.integration
def test_cli_airports_only(config_dir: Path, source_tree: Path):
    assert run_command(_args("airports", config_dir, source_tree)) == 0
    assert (source_tree / "out" / "airports" / "US.json").exists()
    assert not (source_tree / "out" / "countries").exists()


@pytest.mark.integration
def test_cli_exits_non_zero_when_base_list_missing(config_dir: Path, source_tree: Path):
    (source_tree / "simplelocalize" / "countries.json").unlink()

    exit_code = run_command(_args("build", config_dir, source_tree))

    assert exit_code == 20
    log_lines = (source_tree / "run_meta" / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    failure = json.loads(log_lines[-1])
    assert failure["event"] == "STAGE_FAIL"
    assert failure["error_code"] == "SOURCE_UNREADABLE"
    assert "countries.json" in failure["message"]


@pytest.mark.integration
def test_cli_rejects_invalid_overlay(config_dir: Path, source_tree: Path, tmp_path: Path):
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "pipeline.yml").write_text("airports:\n  spatial_strategy: best\n", encoding="utf-8")

    exit_code = run_command(_args("build", config_dir, source_tree, "run-test", "--overlay-config-dir", str(overlay)))

    assert exit_code == 20


@pytest.mark.integration
def test_cli_build_with_nearest_overlay(config_dir: Path, source_tree: Path, tmp_path: Path):
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "pipeline.yml").write_text("airports:\n  spatial_strategy: nearest\n", encoding="utf-8")

    exit_code = run_command(_args("build", config_dir, source_tree, "run-test", "--overlay-config-dir", str(overlay)))

    assert exit_code == 0
