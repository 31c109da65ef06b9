# tests/unit/fuzz/test_runner.py
"""Unit tests for run_fuzz."""

from __future__ import annotations

import random
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from tabletfuzz.contracts.enums import FuzzOp
from tabletfuzz.core.config import SLOW_TESTS_ENV_VAR, ClusterSettings, FuzzSettings
from tabletfuzz.fuzz.generator import generate_test_case
from tabletfuzz.fuzz.runner import draw_seed, run_fuzz


@pytest.fixture(autouse=True)
def _fast_tests_only(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(SLOW_TESTS_ENV_VAR, raising=False)


class TestRunFuzz:
    """End-to-end runs against a fresh cluster."""

    def test_seeded_run_is_reproducible(self) -> None:
        report = run_fuzz(FuzzSettings(seed=5, sequence_length=40))
        assert report.seed == 5
        assert list(report.ops) == generate_test_case(40, seed=5)

    def test_seed_drawn_when_unset(self) -> None:
        report = run_fuzz(FuzzSettings(sequence_length=10))
        assert isinstance(report.seed, int)
        assert len(report.ops) >= 10

    def test_explicit_ops_skip_generation(self) -> None:
        ops = (FuzzOp.INSERT, FuzzOp.FLUSH_OPS)
        report = run_fuzz(FuzzSettings(seed=1), ops)
        assert report.seed is None
        assert report.ops == ops
        assert report.final_lookup == "(int32 key=1, int32 val=0)"

    def test_repeated_runs_share_store_file(self, tmp_path: Path) -> None:
        """Each run starts from an empty tablet even when the file is reused."""
        settings = FuzzSettings(
            seed=1,
            sequence_length=10,
            cluster=ClusterSettings(store_url=f"sqlite:///{tmp_path / 'tablets.db'}"),
        )
        first = run_fuzz(settings)
        second = run_fuzz(settings)
        assert second.ops == first.ops
        assert second.final_lookup == first.final_lookup

        ops = (FuzzOp.INSERT, FuzzOp.FLUSH_OPS, FuzzOp.FLUSH_TABLET)
        assert run_fuzz(settings, ops).final_lookup == "(int32 key=1, int32 val=0)"
        assert run_fuzz(settings, ops).final_lookup == "(int32 key=1, int32 val=0)"

    def test_slow_switch_uses_slow_length(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(SLOW_TESTS_ENV_VAR, "true")
        report = run_fuzz(FuzzSettings(seed=2, sequence_length=5, slow_sequence_length=60))
        assert len(report.ops) >= 60

    def test_row_key_setting(self) -> None:
        report = run_fuzz(FuzzSettings(row_key=42), (FuzzOp.INSERT, FuzzOp.FLUSH_OPS))
        assert report.final_lookup == "(int32 key=42, int32 val=0)"

    def test_run_start_logged(self) -> None:
        with capture_logs() as logs:
            report = run_fuzz(FuzzSettings(seed=9, sequence_length=5))
        starting = next(entry for entry in logs if entry["event"] == "fuzz run starting")
        assert starting["length"] == len(report.ops)
        assert starting["update_multiplier"] == 1


class TestDrawSeed:
    def test_uses_given_rng(self) -> None:
        assert draw_seed(random.Random(3)) == draw_seed(random.Random(3))

    def test_fits_in_32_bits(self) -> None:
        assert 0 <= draw_seed() < 2**32
