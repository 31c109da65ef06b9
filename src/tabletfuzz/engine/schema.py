# src/tabletfuzz/engine/schema.py
"""Table schema and canonical row rendering for the reference engine.

Rows render the way the fuzz oracle compares them:

    partial row (mutation result):  "int32 key=1, int32 val=NULL"
    scanned row (lookup result):    "(int32 key=1, int32 val=4)"
    no such row:                    "()"
"""

from __future__ import annotations

from dataclasses import dataclass

NULL_TOKEN = "NULL"


@dataclass(frozen=True, slots=True)
class ColumnSchema:
    """A single INT32 column."""

    name: str
    type_name: str = "int32"
    nullable: bool = True
    primary_key: bool = False


@dataclass(frozen=True, slots=True)
class TableSchema:
    """Two-column schema: one INT32 primary key and one nullable INT32 value."""

    key_column: ColumnSchema
    value_column: ColumnSchema

    def render_partial_row(self, key: int, value: int | None) -> str:
        """Render a row with both columns set, without parentheses."""
        rendered_value = NULL_TOKEN if value is None else str(value)
        return (
            f"{self.key_column.type_name} {self.key_column.name}={key}, "
            f"{self.value_column.type_name} {self.value_column.name}={rendered_value}"
        )

    def render_row(self, key: int, value: int | None) -> str:
        """Render a scanned row, wrapped in parentheses."""
        return f"({self.render_partial_row(key, value)})"


def fuzz_schema() -> TableSchema:
    """The fixed schema of the table under test."""
    return TableSchema(
        key_column=ColumnSchema("key", nullable=False, primary_key=True),
        value_column=ColumnSchema("val"),
    )


# Canonical rendering of a point lookup that found nothing.
EMPTY_ROW = "()"
