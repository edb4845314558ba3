"""Typed statements produced by the statement parser.

Every statement keeps the text it was parsed from so a transaction log can
record it verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lite_dbms.domain.value_objects import ComparisonOp, StatementType


@dataclass(frozen=True)
class Condition:
    """A single ``column op value`` WHERE predicate."""

    column: str
    op: ComparisonOp
    value: str

    def __str__(self) -> str:
        return f"{self.column} {self.op.value} {self.value}"


@dataclass(frozen=True)
class Statement:
    """Base class for parsed statements."""

    text: str = field(default="", compare=False, kw_only=True)

    @property
    def statement_type(self) -> StatementType:
        raise NotImplementedError


@dataclass(frozen=True)
class ShowDatabasesStatement(Statement):
    @property
    def statement_type(self) -> StatementType:
        return StatementType.SHOW_DATABASES


@dataclass(frozen=True)
class ShowTablesStatement(Statement):
    @property
    def statement_type(self) -> StatementType:
        return StatementType.SHOW_TABLES


@dataclass(frozen=True)
class CreateDatabaseStatement(Statement):
    name: str

    @property
    def statement_type(self) -> StatementType:
        return StatementType.CREATE_DATABASE


@dataclass(frozen=True)
class CreateTableStatement(Statement):
    """CREATE TABLE with its column definitions as declared."""

    table: str
    columns: tuple[tuple[str, str], ...]

    @property
    def statement_type(self) -> StatementType:
        return StatementType.CREATE_TABLE


@dataclass(frozen=True)
class UseStatement(Statement):
    name: str

    @property
    def statement_type(self) -> StatementType:
        return StatementType.USE


@dataclass(frozen=True)
class DescribeStatement(Statement):
    table: str

    @property
    def statement_type(self) -> StatementType:
        return StatementType.DESCRIBE


@dataclass(frozen=True)
class InsertStatement(Statement):
    table: str
    values: tuple[str, ...]

    @property
    def statement_type(self) -> StatementType:
        return StatementType.INSERT


@dataclass(frozen=True)
class UpdateStatement(Statement):
    """UPDATE with ``(column, value)`` assignments applied left to right."""

    table: str
    assignments: tuple[tuple[str, str], ...]
    condition: Condition | None = None

    @property
    def statement_type(self) -> StatementType:
        return StatementType.UPDATE


@dataclass(frozen=True)
class DeleteStatement(Statement):
    table: str
    condition: Condition | None = None

    @property
    def statement_type(self) -> StatementType:
        return StatementType.DELETE


@dataclass(frozen=True)
class SelectStatement(Statement):
    """SELECT with an optional projection. ``columns is None`` means ``*``."""

    table: str
    columns: tuple[str, ...] | None = None
    condition: Condition | None = None

    @property
    def statement_type(self) -> StatementType:
        return StatementType.SELECT


@dataclass(frozen=True)
class BeginStatement(Statement):
    @property
    def statement_type(self) -> StatementType:
        return StatementType.BEGIN


@dataclass(frozen=True)
class CommitStatement(Statement):
    @property
    def statement_type(self) -> StatementType:
        return StatementType.COMMIT


@dataclass(frozen=True)
class RollbackStatement(Statement):
    @property
    def statement_type(self) -> StatementType:
        return StatementType.ROLLBACK


TableStatement = InsertStatement | UpdateStatement | DeleteStatement | SelectStatement
"""Statements that can be buffered in a transaction log."""
