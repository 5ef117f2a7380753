import copy
from pathlib import Path
from typing import Any, Dict

import yaml

from .defaults import DEFAULT_CONFIG


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _overlay(base: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """One level deep: a user section replaces only the keys it names."""
    merged = copy.deepcopy(base)
    for section, value in user.items():
        if isinstance(value, dict) and isinstance(merged.get(section), dict):
            merged[section].update(value)
        else:
            merged[section] = value
    return merged


def load_config(path: str | None) -> dict:
    """
    Run configuration as a plain dict.

    With no path this is a fresh copy of DEFAULT_CONFIG. A YAML file
    overrides defaults section by section, so a file giving only
    ``weights: {mortality: 0.4}`` keeps the other three weights and
    every other section. Values are validated later, by
    ``PipelineConfig.from_dict``.
    """
    user_config = _read_yaml(Path(path)) if path else {}
    return _overlay(DEFAULT_CONFIG, user_config)
