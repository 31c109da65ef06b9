# tests/unit/fuzz/test_oracle.py
"""Unit tests for RowOracle."""

from __future__ import annotations

from tabletfuzz.fuzz.oracle import ABSENT_ROW, RowOracle


class TestRowOracle:
    """Committed/pending bookkeeping of the single row."""

    def test_fresh_oracle_expects_absent_row(self) -> None:
        assert RowOracle().expected_lookup() == ABSENT_ROW == "()"

    def test_stage_does_not_change_expectation(self) -> None:
        """Staged values are invisible until committed."""
        oracle = RowOracle()
        oracle.stage("int32 key=1, int32 val=0")
        assert oracle.pending == "int32 key=1, int32 val=0"
        assert oracle.expected_lookup() == "()"

    def test_commit_promotes_last_staged_value(self) -> None:
        oracle = RowOracle()
        oracle.stage("int32 key=1, int32 val=0")
        oracle.stage("int32 key=1, int32 val=NULL")
        oracle.commit()
        assert oracle.expected_lookup() == "(int32 key=1, int32 val=NULL)"

    def test_staged_delete_commits_to_absent(self) -> None:
        oracle = RowOracle(committed="int32 key=1, int32 val=2", pending="int32 key=1, int32 val=2")
        oracle.stage("")
        oracle.commit()
        assert oracle.expected_lookup() == "()"

    def test_commit_without_new_stage_keeps_value(self) -> None:
        oracle = RowOracle()
        oracle.stage("int32 key=1, int32 val=4")
        oracle.commit()
        oracle.commit()
        assert oracle.committed == "int32 key=1, int32 val=4"

    def test_reset(self) -> None:
        oracle = RowOracle(committed="x", pending="y")
        oracle.reset()
        assert (oracle.committed, oracle.pending) == ("", "")
