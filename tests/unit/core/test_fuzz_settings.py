# tests/unit/core/test_fuzz_settings.py
"""Unit tests for FuzzSettings, ClusterSettings and the bundled presets."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from tabletfuzz.core.config import (
    SLOW_TESTS_ENV_VAR,
    ClusterSettings,
    FuzzSettings,
    allow_slow_tests,
    list_presets,
    load_config,
)


class TestDefaults:
    """Default values and validation."""

    def test_fuzz_defaults(self) -> None:
        settings = FuzzSettings()
        assert settings.seed is None
        assert settings.sequence_length == 50
        assert settings.slow_sequence_length == 1000
        assert settings.update_multiplier == 1
        assert settings.row_key == 1
        assert settings.allow_restarts is False
        assert settings.cluster == ClusterSettings()

    def test_cluster_defaults(self) -> None:
        cluster = ClusterSettings()
        assert cluster.table_name == "table"
        assert cluster.store_url == "sqlite://"
        assert cluster.maintenance_manager_enabled is False

    def test_settings_are_frozen(self) -> None:
        settings = FuzzSettings()
        with pytest.raises(ValidationError):
            settings.sequence_length = 10  # type: ignore[misc]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"update_multiplier": 0},
            {"sequence_length": 0},
            {"unknown_field": True},
            {"cluster": {"mrs_flush_threshold": 0}},
            {"cluster": {"table_name": ""}},
        ],
    )
    def test_invalid_values_rejected(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            FuzzSettings(**overrides)  # type: ignore[arg-type]


class TestSlowSwitch:
    """TABLETFUZZ_ALLOW_SLOW_TESTS selects the long sequence length."""

    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_enabled(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv(SLOW_TESTS_ENV_VAR, value)
        assert allow_slow_tests() is True
        assert FuzzSettings(sequence_length=5, slow_sequence_length=500).effective_length() == 500

    def test_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(SLOW_TESTS_ENV_VAR, raising=False)
        assert allow_slow_tests() is False
        assert FuzzSettings(sequence_length=5).effective_length() == 5

    def test_unrecognized_value_disables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(SLOW_TESTS_ENV_VAR, "maybe")
        assert allow_slow_tests() is False


class TestBundledPresets:
    """The presets shipped with the package."""

    def test_preset_names(self) -> None:
        assert list_presets() == ["background_maintenance", "huge_batches", "quick", "recovery", "slow"]

    @pytest.mark.parametrize("name", ["background_maintenance", "huge_batches", "quick", "recovery", "slow"])
    def test_every_preset_validates(self, name: str) -> None:
        settings = load_config(preset=name)
        assert settings.preset_name == name

    def test_huge_batches(self) -> None:
        assert load_config(preset="huge_batches").update_multiplier == 1000

    def test_recovery_enables_restarts(self) -> None:
        assert load_config(preset="recovery").allow_restarts is True

    def test_background_maintenance_enables_manager(self) -> None:
        cluster = load_config(preset="background_maintenance").cluster
        assert cluster.maintenance_manager_enabled is True
        assert cluster.mrs_flush_threshold == 1

    def test_cli_override_beats_preset(self, tmp_path: Path) -> None:
        config_file = tmp_path / "run.yaml"
        config_file.write_text("update_multiplier: 7\nseed: 3\n")
        settings = load_config(
            preset="huge_batches",
            config_file=config_file,
            cli_overrides={"seed": 11},
        )
        assert settings.update_multiplier == 7
        assert settings.seed == 11
