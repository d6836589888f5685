from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .schema import NavigationConfig


log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_PATH = CONFIG_ROOT / "navigation.yaml"

# Overrides the profile named in navigation.yaml when set.
PROFILE_ENV_VAR = "BLOCKNAV_PROFILE"


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML config file and require a mapping at the top."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(cfg: Dict[str, Any], requested: str | None) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = requested or os.getenv(PROFILE_ENV_VAR) or cfg.get("profile")
    if not profile_name:
        raise ValueError("navigation.yaml must define a 'profile' key.")
    profiles = cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ValueError("navigation.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in navigation.yaml profiles.")
    return profile_name, profiles[profile_name] or {}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_navigation_config(
    profile: str | None = None,
    path: Path | str | None = None,
) -> NavigationConfig:
    """
    Main entry point: returns a fully resolved NavigationConfig.

    Profile resolution order:
      1. explicit `profile` argument
      2. BLOCKNAV_PROFILE environment variable
      3. `profile:` key in the file

    Profile values are layered over the file's optional `defaults:` mapping,
    which in turn is layered over the dataclass defaults.
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    raw = _load_yaml(cfg_path)

    name, profile_raw = _select_profile(raw, profile)
    if not isinstance(profile_raw, dict):
        raise ValueError(f"Profile '{name}' must be a mapping, got {type(profile_raw)}")

    defaults = raw.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise ValueError(f"'defaults' in {cfg_path} must be a mapping")

    merged: Dict[str, Any] = dict(defaults)
    for key, value in profile_raw.items():
        if key == "block_costs" and isinstance(value, dict):
            costs = dict(merged.get("block_costs") or {})
            costs.update(value)
            merged[key] = costs
        else:
            merged[key] = value

    config = NavigationConfig.from_dict(merged, name=name)
    log.debug("Loaded navigation profile %r from %s", name, cfg_path)
    return config
