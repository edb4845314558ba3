"""Statement, column and comparison types."""

from __future__ import annotations

from enum import Enum


class StatementType(Enum):
    """Types of statements understood by the Query Engine."""

    SHOW_DATABASES = "show_databases"
    SHOW_TABLES = "show_tables"
    CREATE_DATABASE = "create_database"
    CREATE_TABLE = "create_table"
    USE = "use"
    DESCRIBE = "describe"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    SELECT = "select"
    BEGIN = "begin"
    COMMIT = "commit"
    ROLLBACK = "rollback"

    @property
    def is_write(self) -> bool:
        """True for statements that modify table rows."""
        return self in (StatementType.INSERT, StatementType.UPDATE, StatementType.DELETE)


class ColumnType(Enum):
    """Declared column types. Anything else is rejected at CREATE TABLE."""

    STRING = "STRING"
    INT = "INT"
    FLOAT = "FLOAT"

    @property
    def is_numeric(self) -> bool:
        return self in (ColumnType.INT, ColumnType.FLOAT)

    @classmethod
    def from_name(cls, name: str) -> ColumnType:
        """Look up a type by its declared name, case-insensitively.

        Raises:
            ValueError: If the name is not one of STRING, INT, FLOAT.
        """
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported column type '{name}'") from None


class ComparisonOp(Enum):
    """Comparison operators allowed in a WHERE condition."""

    GE = ">="
    LE = "<="
    NE = "!="
    EQ = "="
    GT = ">"
    LT = "<"

    @classmethod
    def scan_order(cls) -> tuple[ComparisonOp, ...]:
        """Operators in the order a condition is scanned for them.

        The first operator whose text occurs anywhere in the condition wins,
        regardless of where it occurs. Two-character operators come first so
        ``>=`` is not read as ``>``.
        """
        return (cls.GE, cls.LE, cls.NE, cls.EQ, cls.GT, cls.LT)

    def compare(self, left: float | str, right: float | str) -> bool:
        """Apply the operator to two values of the same type."""
        if self is ComparisonOp.EQ:
            return left == right
        if self is ComparisonOp.NE:
            return left != right
        if self is ComparisonOp.LT:
            return left < right  # type: ignore[operator]
        if self is ComparisonOp.LE:
            return left <= right  # type: ignore[operator]
        if self is ComparisonOp.GT:
            return left > right  # type: ignore[operator]
        return left >= right  # type: ignore[operator]
