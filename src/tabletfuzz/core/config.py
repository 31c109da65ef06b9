# src/tabletfuzz/core/config.py
"""Configuration schema and loading for fuzz runs.

Uses Pydantic for validation with frozen (immutable) models.
Configuration precedence: CLI > YAML file > preset > defaults.
"""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from tabletfuzz.core.config_loader import (
    list_presets as _list_presets,
)
from tabletfuzz.core.config_loader import (
    load_config as _load_config,
)

# Shared in-memory SQLite database. The cluster keeps one SQLAlchemy engine
# for its lifetime, so in-memory storage survives tablet server restarts.
DEFAULT_STORE_URL = "sqlite://"

SLOW_TESTS_ENV_VAR = "TABLETFUZZ_ALLOW_SLOW_TESTS"


class ClusterSettings(BaseModel):
    """Reference cluster construction options.

    Replaces any process-wide switches: everything the tablet server needs
    to know is passed in here when the cluster is built.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    table_name: str = Field(
        default="table",
        min_length=1,
        description="Name of the single table under test",
    )
    store_url: str = Field(
        default=DEFAULT_STORE_URL,
        description="SQLAlchemy URL for the durable tablet store (WAL + rowsets)",
    )
    maintenance_manager_enabled: bool = Field(
        default=False,
        description="Run threshold-driven flushes after every write batch",
    )
    mrs_flush_threshold: int = Field(
        default=4,
        gt=0,
        description="MemRowSet row count that triggers a background flush",
    )
    dms_flush_threshold: int = Field(
        default=16,
        gt=0,
        description="DeltaMemStore mutation count that triggers a background flush",
    )


class FuzzSettings(BaseModel):
    """Top-level settings for one fuzz run."""

    model_config = {"frozen": True, "extra": "forbid"}

    seed: int | None = Field(
        default=None,
        description="Random seed for the generator; drawn and logged when unset",
    )
    sequence_length: int = Field(
        default=50,
        gt=0,
        description="Number of ops to generate",
    )
    slow_sequence_length: int = Field(
        default=1000,
        gt=0,
        description="Number of ops to generate when slow tests are allowed",
    )
    update_multiplier: int = Field(
        default=1,
        ge=1,
        description="How many times each UPDATE is applied (large batches)",
    )
    row_key: int = Field(
        default=1,
        description="Primary key of the single row under test",
    )
    allow_restarts: bool = Field(
        default=False,
        description="Include tablet server restarts in generated sequences",
    )
    cluster: ClusterSettings = Field(
        default_factory=ClusterSettings,
        description="Reference cluster options",
    )
    preset_name: str | None = Field(
        default=None,
        description="Preset this configuration was built from (set by the loader)",
    )

    def effective_length(self) -> int:
        """Sequence length to generate, honouring the slow-test switch."""
        if allow_slow_tests():
            return self.slow_sequence_length
        return self.sequence_length


def allow_slow_tests() -> bool:
    """True when long fuzz runs are enabled via the environment."""
    return os.environ.get(SLOW_TESTS_ENV_VAR, "").lower() in ("1", "true", "yes")


def _get_presets_dir() -> Path:
    """Get the presets directory path."""
    return Path(__file__).parent / "presets"


def list_presets() -> list[str]:
    """List available preset names."""
    return _list_presets(_get_presets_dir())


def load_config(
    preset: str | None = None,
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> FuzzSettings:
    """Load fuzz settings with precedence handling.

    Raises:
        FileNotFoundError: If preset or config_file not found.
        yaml.YAMLError: If YAML is malformed.
        pydantic.ValidationError: If final config fails validation.
    """
    return _load_config(
        FuzzSettings,
        _get_presets_dir(),
        preset=preset,
        config_file=config_file,
        cli_overrides=cli_overrides,
    )
