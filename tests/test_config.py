from __future__ import annotations

import json
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from youtube_audio import config as cfg


def write_config(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_unknown_keys_are_dropped(tmp_path, capsys):
    path = write_config(tmp_path, {"workers": 3, "cookies": "x"})

    loaded = cfg.load_config_file(str(path))

    assert loaded == {"workers": 3}
    assert "cookies" in capsys.readouterr().err


def test_missing_or_malformed_config_is_empty(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    assert cfg.load_config_file(str(tmp_path / "absent.json")) == {}
    assert cfg.load_config_file(str(broken)) == {}


def test_config_file_supplies_defaults(tmp_path):
    path = write_config(tmp_path, {"workers": 4, "client": "tv_embedded", "json": True})

    args = cfg.parse_args(["--config", str(path), "dQw4w9WgXcQ"])

    assert args.workers == 4
    assert args.client == "tv_embedded"
    assert args.json is True
    assert args.videos == ["dQw4w9WgXcQ"]


def test_command_line_overrides_config(tmp_path):
    path = write_config(tmp_path, {"workers": 4})

    args = cfg.parse_args(["--config", str(path), "--workers", "2"])

    assert args.workers == 2


def test_non_positive_workers_are_rejected(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit):
        cfg.parse_args(["--workers", "0"])


def test_environment_fills_missing_options():
    args = SimpleNamespace(visitor_data=None, proxy="http://cli:8080", error_log=None)
    env = {
        cfg.ENV_VISITOR_DATA: "  token  ",
        cfg.ENV_PROXY: "http://env:8080",
        cfg.ENV_ERROR_LOG: "   ",
    }

    cfg.apply_environment_defaults(args, environ=env)

    assert args.visitor_data == "token"
    assert args.proxy == "http://cli:8080"
    assert args.error_log is None


def test_ids_file_skips_comments(tmp_path):
    ids = tmp_path / "ids.txt"
    ids.write_text(
        "# favourites\n\ndQw4w9WgXcQ\nhttps://youtu.be/aaaaaaaaaaa  # live version\n",
        encoding="utf-8",
    )

    assert cfg.load_ids_from_file(str(ids)) == ["dQw4w9WgXcQ", "https://youtu.be/aaaaaaaaaaa"]


def test_loaded_config_notice_stays_off_stdout(tmp_path, capsys):
    path = write_config(tmp_path, {"json": True})

    cfg.parse_args(["--config", str(path)])

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Loaded configuration" in captured.err
