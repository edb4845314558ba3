"""Pure row-sequence operations behind INSERT, UPDATE, DELETE and SELECT.

Every function takes a table's full row sequence (schema row first) and
returns a new sequence or the selected rows without touching storage. The
autocommit path, the commit replay and the read-your-writes overlay all go
through these, so a statement means the same thing wherever it runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from lite_dbms.domain.entities.record import (
    Row,
    join_values,
    parse_number,
    split_values,
    strip_quotes,
)
from lite_dbms.domain.entities.schema import TableSchema, is_schema_row
from lite_dbms.domain.entities.statements import (
    Condition,
    DeleteStatement,
    InsertStatement,
    SelectStatement,
    UpdateStatement,
)
from lite_dbms.domain.errors import SemanticError


@dataclass
class RowChange:
    """Result of applying a write statement to a row sequence."""

    rows: list[str]
    inserted: list[str] = field(default_factory=list)
    updated: list[tuple[str, str]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def affected_rows(self) -> int:
        return len(self.inserted) + len(self.updated) + len(self.deleted)


def schema_of(rows: Sequence[str]) -> TableSchema:
    """Parse the schema row at the head of a row sequence.

    Raises:
        SemanticError: If the sequence has no schema row.
    """
    if not rows or not is_schema_row(rows[0]):
        raise SemanticError("Table has no schema row.")
    return TableSchema.from_row(rows[0])


def _column_position(schema: TableSchema, name: str) -> int:
    position = schema.index_of(name)
    if position is None:
        raise SemanticError(f"Column '{name}' not found in table.")
    return position


def matches(schema: TableSchema, row: str, condition: Condition | None) -> bool:
    """Evaluate a WHERE condition against one stored row.

    Numeric columns compare by value; a row whose cell is not a number never
    matches. Other columns compare as strings with surrounding quotes
    stripped from both sides.
    """
    if condition is None:
        return True

    position = _column_position(schema, condition.column)
    cells = split_values(row)
    if position >= len(cells):
        return False

    column = schema.columns[position]
    if column.type.is_numeric:
        left = parse_number(cells[position])
        right = parse_number(condition.value)
        if left is None or right is None:
            return False
        return condition.op.compare(left, right)

    return condition.op.compare(strip_quotes(cells[position]), strip_quotes(condition.value))


def insert_row(rows: Sequence[str], statement: InsertStatement) -> RowChange:
    """Append one row built from the statement's literal values.

    Raises:
        SemanticError: If the value count differs from the column count.
    """
    schema = schema_of(rows)
    if len(statement.values) != schema.column_count:
        raise SemanticError(
            f"Column mismatch: expected {schema.column_count} values "
            f"but got {len(statement.values)}."
        )
    row = join_values(statement.values)
    return RowChange(rows=[*rows, row], inserted=[row])


def update_rows(rows: Sequence[str], statement: UpdateStatement) -> RowChange:
    """Assign new literal values to the matching rows."""
    schema = schema_of(rows)
    assignments = [
        (_column_position(schema, column), value) for column, value in statement.assignments
    ]
    _validate_condition(schema, statement.condition)

    change = RowChange(rows=[rows[0]])
    for row in rows[1:]:
        if not matches(schema, row, statement.condition):
            change.rows.append(row)
            continue
        cells = split_values(row)
        if len(cells) < schema.column_count:
            cells.extend([""] * (schema.column_count - len(cells)))
        for position, value in assignments:
            cells[position] = value
        new_row = join_values(cells)
        change.rows.append(new_row)
        change.updated.append((row, new_row))
    return change


def delete_rows(rows: Sequence[str], statement: DeleteStatement) -> RowChange:
    """Remove the matching rows; every data row without a condition."""
    schema = schema_of(rows)
    _validate_condition(schema, statement.condition)

    change = RowChange(rows=[rows[0]])
    for row in rows[1:]:
        if matches(schema, row, statement.condition):
            change.deleted.append(row)
        else:
            change.rows.append(row)
    return change


def select_rows(rows: Sequence[str], statement: SelectStatement) -> tuple[list[str], list[Row]]:
    """Scan data rows in stored order.

    Returns:
        The projected column names and the matching rows.
    """
    schema = schema_of(rows)
    _validate_condition(schema, statement.condition)

    if statement.columns is None:
        columns = schema.column_names
        positions = list(range(schema.column_count))
    else:
        columns = list(statement.columns)
        positions = [_column_position(schema, column) for column in columns]

    selected = []
    for row in rows[1:]:
        if not matches(schema, row, statement.condition):
            continue
        cells = split_values(row)
        values = [strip_quotes(cells[p]) if p < len(cells) else "" for p in positions]
        selected.append(Row(columns=columns, values=values, raw=row))
    return columns, selected


def apply_write(
    rows: Sequence[str],
    statement: InsertStatement | UpdateStatement | DeleteStatement,
) -> RowChange:
    """Dispatch a write statement to the matching row operation."""
    if isinstance(statement, InsertStatement):
        return insert_row(rows, statement)
    if isinstance(statement, UpdateStatement):
        return update_rows(rows, statement)
    return delete_rows(rows, statement)


def _validate_condition(schema: TableSchema, condition: Condition | None) -> None:
    if condition is not None:
        _column_position(schema, condition.column)
