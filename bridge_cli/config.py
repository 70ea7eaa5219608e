"""
Module 11C - CLI Configuration

The CLI shares RuntimeConfig with the service: a bridge.json or
bridge.yaml file, overlaid by BRIDGE_* environment variables.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.config.runtime import RuntimeConfig, load_runtime_config


DEFAULT_CONFIG_FILENAME = "bridge.json"


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings. A path that does not
    exist is an error; with no path the default locations are searched.
    """
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return load_runtime_config(config_path)


def get_default_config_template() -> str:
    """Template configuration file holding every default."""
    return json.dumps(RuntimeConfig().to_dict(), indent=2) + "\n"
