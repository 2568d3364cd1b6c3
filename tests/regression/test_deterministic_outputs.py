import shutil
from pathlib import Path

import pytest

from localedb.cli import parse_args, run_command

VOLATILE = {"_meta.json", "run_summary.json"}


def _run_once(config_dir: Path, data_dir: Path, run_id: str, *extra: str) -> dict[str, bytes]:
    args = parse_args(
        [
            "build",
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
    assert run_command(args) == 0
    out = data_dir / "out"
    return {
        path.relative_to(out).as_posix(): path.read_bytes()
        for path in sorted(out.rglob("*.json"))
        if path.name not in VOLATILE
    }


@pytest.mark.regression
def test_outputs_are_byte_stable_across_runs(config_dir: Path, source_tree: Path, tmp_path: Path):
    copy = tmp_path / "copy"
    shutil.copytree(source_tree, copy)

    first = _run_once(config_dir, source_tree, "run-a")
    second = _run_once(config_dir, copy, "run-b")

    assert "countries/TR.json" in first
    assert "_index_airports.json" in first
    assert first == second


@pytest.mark.regression
def test_outputs_do_not_depend_on_batch_size(config_dir: Path, source_tree: Path, tmp_path: Path):
    copy = tmp_path / "copy"
    shutil.copytree(source_tree, copy)
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "pipeline.yml").write_text("build:\n  batch_size: 1\n", encoding="utf-8")

    batched = _run_once(config_dir, source_tree, "run-a")
    serial = _run_once(config_dir, copy, "run-b", "--overlay-config-dir", str(overlay))

    assert batched == serial
