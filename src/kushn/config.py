"""Configuration: defaults, global (~/.kushn) and per-root overrides."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Directory name inside a processed root for project-local settings
KUSHN_DIR = ".kushn"
CONFIG_FILENAME = "config.json"


def _global_config_dir() -> Path:
    return Path.home() / ".kushn"


def global_config_path() -> Path:
    """Path to global config file (~/.kushn/config.json)."""
    return _global_config_dir() / CONFIG_FILENAME


def default_config() -> dict[str, Any]:
    """Built-in defaults; every key a config file may override."""
    return {
        "output_name": "kushn_result.json",
        "ignore": {
            "file": ".kushnignore",
            "additional_patterns": [],
        },
        "traversal": {
            # false: log unreadable entries and keep going
            "strict": True,
        },
        "logging": {
            "level": "WARNING",
            "file": None,
        },
    }


def _read_layer(path: Path) -> dict[str, Any] | None:
    """
    One config layer from path. A missing file is silently absent; a file that is
    unreadable, not JSON, or not a JSON object is skipped with a warning.
    """
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        logger.warning("Ignoring config %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level must be an object", path)
        return None
    return data


def _merged(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """New dict: override layered over base, nested objects merged key by key."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = _merged(current, value)
        else:
            result[key] = value
    return result


def project_config_path(root: Path) -> Path:
    """Path to root-local config (<root>/.kushn/config.json)."""
    return root / KUSHN_DIR / CONFIG_FILENAME


def config_layers(root: Path | None = None) -> list[Path]:
    """Config files consulted for root, lowest precedence first."""
    layers = [global_config_path()]
    if root is not None:
        layers.append(project_config_path(root.resolve()))
    return layers


def load_config(root: Path | None = None) -> dict[str, Any]:
    """
    Merged configuration: defaults, then ~/.kushn/config.json, then
    <root>/.kushn/config.json. With root None only the global layer applies.
    """
    config = default_config()
    for path in config_layers(root):
        layer = _read_layer(path)
        if layer is not None:
            logger.debug("Applying config %s", path)
            config = _merged(config, layer)
    return config


def resolve_path(path: Path) -> Path:
    """Resolve path to absolute, normalized."""
    return path.resolve()
