# src/tabletfuzz/core/config_loader.py
"""YAML preset loading and deep merge for fuzz run configuration.

Precedence (highest to lowest): CLI overrides > config file > preset >
Pydantic defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, with override taking precedence.

    Args:
        base: Base configuration dict.
        override: Override values (takes precedence).

    Returns:
        Merged configuration dict (new dict, does not mutate inputs).
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def list_presets(presets_dir: Path) -> list[str]:
    """List available preset names (YAML stems) in a directory, sorted."""
    if not presets_dir.exists():
        return []
    return sorted(p.stem for p in presets_dir.glob("*.yaml"))


def load_preset(presets_dir: Path, preset_name: str) -> dict[str, Any]:
    """Load a preset configuration by name.

    Raises:
        FileNotFoundError: If preset does not exist.
        yaml.YAMLError: If preset YAML is malformed.
        ValueError: If preset is not a YAML mapping.
    """
    preset_path = presets_dir / f"{preset_name}.yaml"

    if not preset_path.exists():
        available = list_presets(presets_dir)
        raise FileNotFoundError(f"Preset '{preset_name}' not found. Available presets: {available}")

    with preset_path.open() as f:
        loaded = yaml.safe_load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"Preset '{preset_name}' must be a YAML mapping, got {type(loaded).__name__}")
        return loaded


def load_config(
    config_cls: type[ConfigT],
    presets_dir: Path,
    *,
    preset: str | None = None,
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> ConfigT:
    """Layer preset, YAML file and CLI overrides, then validate.

    Args:
        config_cls: The Pydantic model class to validate into.
        presets_dir: Directory holding preset YAML files.
        preset: Optional preset name to use as base.
        config_file: Optional path to YAML config file.
        cli_overrides: Optional dict of CLI flag overrides.

    Returns:
        Validated config instance of type ``config_cls``.

    Raises:
        FileNotFoundError: If preset or config_file not found.
        yaml.YAMLError: If YAML is malformed.
        pydantic.ValidationError: If final config fails validation.
    """
    config_dict: dict[str, Any] = {}

    if preset is not None:
        config_dict = load_preset(presets_dir, preset)

    if config_file is not None:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        with config_file.open() as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"Config file {config_file} must be a YAML mapping, got {type(file_config).__name__}")
        config_dict = deep_merge(config_dict, file_config)

    if cli_overrides is not None:
        config_dict = deep_merge(config_dict, cli_overrides)

    config_dict["preset_name"] = preset

    return config_cls(**config_dict)
