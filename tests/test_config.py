import json
from pathlib import Path

import pytest

from exeforge.config import DEFAULT_MODEL, DEFAULT_TIMEOUT, SettingsError, load_settings


def test_defaults_without_env():
    s = load_settings(env={})
    assert s.api_key is None
    assert s.model == DEFAULT_MODEL
    assert s.timeout == DEFAULT_TIMEOUT
    assert s.temperature == 0.2


def test_env_keys():
    s = load_settings(env={"API_KEY": "k1", "EXEFORGE_MODEL": "m", "EXEFORGE_TIMEOUT": "5"})
    assert s.api_key == "k1"
    assert s.model == "m"
    assert s.timeout == 5.0
    assert load_settings(env={"API_KEY": "k1", "GEMINI_API_KEY": "k2"}).api_key == "k2"


def test_file_then_env_override(tmp_path: Path):
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"api_key": "file", "model": "from-file", "timeout": 3, "unknown": 1}), encoding="utf-8")
    s = load_settings(env={"EXEFORGE_CONFIG": str(p), "EXEFORGE_MODEL": "from-env"})
    assert s.api_key == "file"
    assert s.model == "from-env"
    assert s.timeout == 3.0


def test_explicit_path_wins_over_env_path(tmp_path: Path):
    a = tmp_path / "a.json"
    a.write_text(json.dumps({"model": "a"}), encoding="utf-8")
    s = load_settings(str(a), env={"EXEFORGE_CONFIG": str(tmp_path / "missing.json")})
    assert s.model == "a"


def test_missing_or_bad_file(tmp_path: Path):
    with pytest.raises(SettingsError):
        load_settings(str(tmp_path / "nope.json"), env={})
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(str(bad), env={})
