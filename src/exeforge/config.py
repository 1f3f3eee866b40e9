"""Runtime settings for the AI helpers and the web wizard."""

from __future__ import annotations
from dataclasses import dataclass, replace
import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

CONFIG_ENV = "EXEFORGE_CONFIG"

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT = 60.0
DEFAULT_TEMPERATURE = 0.2


class SettingsError(Exception):
    """Raised when a settings file cannot be read."""


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT
    temperature: float = DEFAULT_TEMPERATURE


_FILE_KEYS = ("api_key", "model", "api_base", "timeout", "temperature")


def _from_file(path: str) -> Dict[str, Any]:
    expanded = Path(os.path.expanduser(path))
    if not expanded.is_file():
        raise SettingsError(f"Settings file not found: {path}")
    try:
        data = json.loads(expanded.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Settings file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must hold a JSON object")
    return {k: data[k] for k in _FILE_KEYS if k in data}


def load_settings(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """Defaults, then the JSON file (argument or $EXEFORGE_CONFIG), then environment."""
    env = os.environ if env is None else env
    settings = Settings()

    file_path = path or env.get(CONFIG_ENV)
    if file_path:
        values = _from_file(file_path)
        if "timeout" in values:
            values["timeout"] = float(values["timeout"])
        if "temperature" in values:
            values["temperature"] = float(values["temperature"])
        settings = replace(settings, **values)

    key = env.get("GEMINI_API_KEY") or env.get("API_KEY")
    if key:
        settings = replace(settings, api_key=key)
    if env.get("EXEFORGE_MODEL"):
        settings = replace(settings, model=env["EXEFORGE_MODEL"])
    if env.get("EXEFORGE_API_BASE"):
        settings = replace(settings, api_base=env["EXEFORGE_API_BASE"].rstrip("/"))
    if env.get("EXEFORGE_TIMEOUT"):
        settings = replace(settings, timeout=float(env["EXEFORGE_TIMEOUT"]))
    return settings
