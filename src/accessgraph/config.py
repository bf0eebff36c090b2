"""
Global Configuration and Defaults.

This module centralizes the Access Directory endpoints, request defaults and
layout spacing used by the visualization engine, plus the loader that merges
environment variables and the project config file into a ``Settings`` value.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, ValidationError

from .core.types import LayoutDirection

logger = logging.getLogger(__name__)

# --- Access Directory Service ---
DEFAULT_BASE_URL = "http://localhost:8080"

# Seconds before a directory request is abandoned
DEFAULT_TIMEOUT = 30.0

USERS_PATH = "/api/auth/users"
UI_ACCESS_MATRIX_PATH = "/api/meta/ui-access-matrix"
USER_ACCESS_MATRIX_PATH = "/api/meta/user-access-matrix/{user_id}"

GENERIC_FETCH_ERROR = "Failed to load access data"

# --- Layout ---
# Gap between neighbours in the same rank
NODE_SEP = 130

# Gap between consecutive ranks
RANK_SEP = 170

MARGIN_X = 40
MARGIN_Y = 40

# Upper bound on barycenter sweeps during crossing minimization
MAX_CROSSING_PASSES = 24

# --- Config file ---
CONFIG_DIR = Path(".accessgraph")
CONFIG_FILE = CONFIG_DIR / "config.yaml"

ENV_BASE_URL = "ACCESSGRAPH_BASE_URL"
ENV_TOKEN = "ACCESSGRAPH_TOKEN"
ENV_TIMEOUT = "ACCESSGRAPH_TIMEOUT"


class Settings(BaseModel):
    """Resolved runtime settings."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    token: str | None = None
    direction: LayoutDirection = LayoutDirection.TOP_BOTTOM


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read {config_path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {config_path}: expected a mapping at top level")
        return {}
    return data


def _merge_field(values: Dict[str, Any], name: str, raw: Any) -> None:
    """Set ``values[name]`` only if ``raw`` validates as that Settings field."""
    if raw is None:
        return
    try:
        Settings.model_validate({**values, name: raw})
    except ValidationError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}")
        return
    values[name] = raw


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Resolve settings from environment, config file and defaults.

    Precedence is environment > ``.accessgraph/config.yaml`` > defaults.
    Invalid values are logged and skipped, never raised.

    Args:
        config_path: Override for the YAML file location.

    Returns:
        Settings: The merged settings.
    """
    data = _read_config_file(config_path or CONFIG_FILE)
    directory = data.get("directory") or {}
    layout = data.get("layout") or {}
    if not isinstance(directory, dict):
        directory = {}
    if not isinstance(layout, dict):
        layout = {}

    values: Dict[str, Any] = {}
    _merge_field(values, "base_url", directory.get("base_url"))
    _merge_field(values, "timeout", directory.get("timeout"))
    _merge_field(values, "token", directory.get("token"))
    _merge_field(values, "direction", layout.get("direction"))

    _merge_field(values, "base_url", os.getenv(ENV_BASE_URL) or None)
    _merge_field(values, "token", os.getenv(ENV_TOKEN) or None)
    _merge_field(values, "timeout", os.getenv(ENV_TIMEOUT) or None)

    return Settings(**values)
