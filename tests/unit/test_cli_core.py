import pytest

from localedb.cli import main, parse_args


def test_parse_args_defaults():
    args = parse_args(["build"])
    assert args.command == "build"
    assert args.config_dir == "./config"
    assert args.data_dir == "./data"
    assert args.overlay_config_dir is None
    assert args.only is None


def test_parse_args_accepts_overlay_config_dir_and_only():
    args = parse_args(["fetch", "--overlay-config-dir", "config/live", "--only", "mledoze", "cldr"])
    assert args.overlay_config_dir == "config/live"
    assert args.only == ["mledoze", "cldr"]


def test_parse_args_rejects_unknown_command():
    with pytest.raises(SystemExit):
        parse_args(["publish"])


def test_main_returns_hard_fail_for_missing_config(tmp_path):
    code = main(["build", "--config-dir", str(tmp_path / "nope"), "--data-dir", str(tmp_path / "data"), "--run-id", "r1"])
    assert code == 20
