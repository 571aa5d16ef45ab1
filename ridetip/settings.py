from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from .formats import DisplayCurrency

SETTINGS_FILENAME = "tip_settings.json"
DISPLAY_CURRENCY_KEY = "display_currency"


class SettingsError(RuntimeError):
    """Raised when the settings file cannot be read or written."""


def _settings_path() -> Path:
    override = os.environ.get("TIP_SETTINGS_PATH")
    if override:
        return Path(override).expanduser()
    return Path.cwd() / SETTINGS_FILENAME


def load_settings() -> Dict[str, Any]:
    path = _settings_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Failed to parse settings file: {path}") from exc
    if not isinstance(data, dict):
        raise SettingsError("Settings file must contain a JSON object")
    return data


def _save_settings(data: Dict[str, Any]) -> None:
    path = _settings_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, sort_keys=True))
    except OSError as exc:
        raise SettingsError(f"Failed to write settings file: {path}") from exc


def get_display_currency(default: DisplayCurrency = DisplayCurrency.FIAT) -> DisplayCurrency:
    raw = load_settings().get(DISPLAY_CURRENCY_KEY)
    if raw is None:
        return default
    try:
        return DisplayCurrency.parse(str(raw))
    except ValueError:
        logger.warning("Ignoring unknown display currency {!r}; using {}", raw, default.value)
        return default


def set_display_currency(mode: DisplayCurrency) -> None:
    data = load_settings()
    data[DISPLAY_CURRENCY_KEY] = DisplayCurrency(mode).value
    _save_settings(data)
    logger.debug("Display currency set to {}", data[DISPLAY_CURRENCY_KEY])


def toggle_display_currency() -> DisplayCurrency:
    new_mode = get_display_currency().toggled()
    set_display_currency(new_mode)
    return new_mode
