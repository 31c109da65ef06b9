# tests/unit/fuzz/test_scenarios.py
"""Regression scenarios run against the reference cluster."""

from __future__ import annotations

import pytest

from tabletfuzz.contracts.enums import FuzzOp
from tabletfuzz.contracts.errors import GeneratorInvariantError
from tabletfuzz.core.config import FuzzSettings
from tabletfuzz.fuzz.generator import check_sequence_legal
from tabletfuzz.fuzz.runner import run_fuzz
from tabletfuzz.fuzz.scenarios import SCENARIOS, Scenario, get_scenario

EXPECTED_FINAL_ROW = {
    "fuzz1": "(int32 key=1, int32 val=NULL)",
    "fuzz2": "()",
    "fuzz3": "()",
    "fuzz4": "()",
    "huge_update": "(int32 key=1, int32 val=1000)",
}


def _run(scenario: Scenario) -> str:
    settings = FuzzSettings(update_multiplier=scenario.update_multiplier)
    return run_fuzz(settings, scenario.ops).final_lookup


class TestScenarioCatalog:
    """The catalog itself."""

    def test_every_scenario_has_expected_outcome(self) -> None:
        assert set(SCENARIOS) == set(EXPECTED_FINAL_ROW)

    def test_get_scenario(self) -> None:
        assert get_scenario("fuzz1").ops[0] is FuzzOp.INSERT

    def test_get_unknown_scenario(self) -> None:
        with pytest.raises(KeyError, match="Unknown scenario 'nope'"):
            get_scenario("nope")

    def test_fuzz4_is_not_generator_legal(self) -> None:
        """Hand-written cases may compact before any DiskRowSet exists."""
        with pytest.raises(GeneratorInvariantError) as exc_info:
            check_sequence_legal(get_scenario("fuzz4").ops)
        assert exc_info.value.op is FuzzOp.COMPACT_TABLET
        assert exc_info.value.index == 2

    @pytest.mark.parametrize("name", ["fuzz1", "fuzz3", "huge_update"])
    def test_other_scenarios_are_generator_legal(self, name: str) -> None:
        check_sequence_legal(get_scenario(name).ops)


class TestScenarioRuns:
    """Each scenario passes the oracle at every step and ends where expected."""

    @pytest.mark.parametrize("name", sorted(EXPECTED_FINAL_ROW))
    def test_scenario_passes(self, name: str) -> None:
        assert _run(get_scenario(name)) == EXPECTED_FINAL_ROW[name]

    def test_reinserted_row_survives_full_compaction(self) -> None:
        """fuzz1: the second insert's value is what remains."""
        report = run_fuzz(FuzzSettings(), get_scenario("fuzz1").ops)
        assert report.values_used == 2
        assert report.final_lookup == "(int32 key=1, int32 val=NULL)"
