"""Table schema and the reserved schema row.

Element 0 of every table's row sequence is the schema row::

    SCHEMA: bannerID STRING, gpa FLOAT

Column definitions are separated by commas; each definition is a name
followed by its type.
"""

from __future__ import annotations

from dataclasses import dataclass

from lite_dbms.domain.value_objects import ColumnType


SCHEMA_PREFIX = "SCHEMA:"


@dataclass(frozen=True, slots=True)
class Column:
    """A named, typed column."""

    name: str
    type: ColumnType

    def __str__(self) -> str:
        return f"{self.name} {self.type.value}"


@dataclass(frozen=True)
class TableSchema:
    """Ordered column definitions of a table."""

    columns: tuple[Column, ...]

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def index_of(self, name: str) -> int | None:
        """Position of the named column, or None if it does not exist."""
        for position, column in enumerate(self.columns):
            if column.name == name:
                return position
        return None

    def to_row(self) -> str:
        """Render the schema row stored as element 0 of the table file."""
        return f"{SCHEMA_PREFIX} " + ", ".join(str(column) for column in self.columns)

    @classmethod
    def from_definitions(cls, definitions: list[tuple[str, str]]) -> TableSchema:
        """Build a schema from ``(name, type)`` pairs as declared in CREATE TABLE.

        Raises:
            ValueError: On an unsupported type or a duplicate column name.
        """
        seen: set[str] = set()
        columns = []
        for name, type_name in definitions:
            if name in seen:
                raise ValueError(f"Duplicate column '{name}'")
            seen.add(name)
            columns.append(Column(name=name, type=ColumnType.from_name(type_name)))
        return cls(columns=tuple(columns))

    @classmethod
    def from_row(cls, row: str) -> TableSchema:
        """Parse a stored schema row.

        Stored rows are read leniently: a definition without a recognised
        type is kept as a STRING column so value counts still line up.
        """
        body = row.split(":", 1)[1] if row.startswith(SCHEMA_PREFIX) else row
        body = body.strip()
        if body.startswith("(") and body.endswith(")"):
            body = body[1:-1]

        columns = []
        for definition in body.split(","):
            parts = definition.split()
            if not parts:
                continue
            column_type = ColumnType.STRING
            if len(parts) > 1:
                try:
                    column_type = ColumnType.from_name(parts[1])
                except ValueError:
                    pass
            columns.append(Column(name=parts[0], type=column_type))
        return cls(columns=tuple(columns))


def is_schema_row(row: str) -> bool:
    """Whether a stored row is the reserved schema row."""
    return row.startswith(SCHEMA_PREFIX)
