from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import DEFAULT_SETTINGS_PATH
from .logging_utils import get_logger
from .schemas import RenderOptions

log = get_logger(__name__)


class SettingsError(RuntimeError):
    pass


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise SettingsError(f"Failed to read settings file {path}: {e}") from e
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")
    return data


def load_render_defaults(path: Path | None = None) -> RenderOptions:
    settings_path = path or DEFAULT_SETTINGS_PATH
    if not settings_path.exists():
        raise SettingsError(f"Default settings file not found: {settings_path}")

    raw = _read_json(settings_path)
    render = raw.get("render")
    if render is None:
        return RenderOptions()
    if not isinstance(render, dict):
        raise SettingsError("default_settings.json 'render' must be an object")
    try:
        return RenderOptions(**render)
    except ValidationError as e:
        raise SettingsError(f"Invalid render defaults in {settings_path}: {e}") from e


def initial_render_options(path: Path | None = None) -> RenderOptions:
    """Render defaults from the settings file, or the built-in medium/1/light."""
    try:
        return load_render_defaults(path)
    except SettingsError as e:
        log.warning("Using built-in render defaults: %s", e)
        return RenderOptions()
