"""Loader for pixscrub runtime configuration.

Configuration lives in an optional JSON file selected with ``--config`` or
the ``PIXSCRUB_CONFIG`` environment variable.  Values found in the file
are merged over :data:`_DEFAULT_CONFIG` so callers can rely on every key
being present.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_ENV = "PIXSCRUB_CONFIG"

_DEFAULT_CONFIG: Dict[str, Any] = {
    "staging_dir": ".sanitized",
    "placeholder": {
        "fill": 0,
        "jpeg_quality": 1,
    },
    "logging": {
        "level": None,
        "file": None,
    },
}


def default_config() -> Dict[str, Any]:
    return json.loads(json.dumps(_DEFAULT_CONFIG))


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Return the explicit ``path``, else the one named by ``PIXSCRUB_CONFIG``."""

    if path:
        return Path(path)
    env = os.environ.get(CONFIG_ENV)
    return Path(env) if env else None


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Return the runtime configuration.

    Without a config file the defaults are returned.  A file that is not
    valid JSON, or whose top level is not an object, is ignored with a
    warning.  A missing file raises :class:`FileNotFoundError`.
    """

    config_path = resolve_config_path(path)
    if config_path is None:
        return default_config()

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable config %s (%s); using defaults", config_path, exc)
            return default_config()

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not an object; using defaults", config_path)
        return default_config()

    # Merge missing keys from the defaults without overwriting user values.
    merged = default_config()
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged

