# src/tabletfuzz/fuzz/oracle.py
"""In-memory oracle of the single row under test."""

from __future__ import annotations

from dataclasses import dataclass

# Lookup rendering of a row that does not exist.
ABSENT_ROW = "()"


@dataclass(slots=True)
class RowOracle:
    """Committed and pending canonical values of the row.

    ``committed`` is what a reader must see now; ``pending`` is the value
    staged by the most recent uncommitted mutation. Both use the mutation
    string form, where ``""`` means the row does not exist.
    """

    committed: str = ""
    pending: str = ""

    def stage(self, value: str) -> None:
        self.pending = value

    def commit(self) -> None:
        self.committed = self.pending

    def reset(self) -> None:
        self.committed = ""
        self.pending = ""

    def expected_lookup(self) -> str:
        """Lookup string a reader should get for the committed value."""
        return f"({self.committed})"
