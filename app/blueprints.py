"""Blueprint registration helpers."""

from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Iterable, Mapping

from flask import Blueprint, Flask

from common.logging import get_logger

logger = get_logger()


def _plugin_enabled(name: str, plugin_settings: Mapping[str, object]) -> bool:
    settings = plugin_settings.get(name)
    if not isinstance(settings, Mapping):
        return True
    return bool(settings.get("enabled", True))


def _iter_blueprints(
    plugin_settings: Mapping[str, object],
    package: str = "plugins",
) -> Iterable[Blueprint]:
    module_path = Path(__file__).resolve().parent.parent / package
    if not module_path.exists():
        return []
    blueprints: list[Blueprint] = []
    for module_info in pkgutil.iter_modules([str(module_path)]):
        if not module_info.ispkg:
            continue
        if not _plugin_enabled(module_info.name, plugin_settings):
            logger.info("plugin %s disabled by configuration", module_info.name)
            continue
        module = importlib.import_module(f"{package}.{module_info.name}.api")
        blueprints.extend(getattr(module, "blueprints", None) or [])
    return blueprints


def register_plugin_blueprints(app: Flask) -> None:
    plugin_settings = app.config.get("PLUGIN_SETTINGS", {}) or {}
    for bp in _iter_blueprints(plugin_settings):
        app.register_blueprint(bp)


__all__ = ["register_plugin_blueprints"]
