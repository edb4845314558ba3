"""Transaction entities: the log of buffered operations and commit reports."""

from __future__ import annotations

from dataclasses import dataclass, field

from lite_dbms.domain.entities.record import Row
from lite_dbms.domain.entities.statements import TableStatement
from lite_dbms.domain.value_objects import (
    ErrorKind,
    LockMode,
    OutcomeStatus,
    QualifiedTableName,
    StatementType,
    TransactionId,
    TransactionState,
)


@dataclass(frozen=True)
class BufferedOperation:
    """A statement deferred into a transaction's log.

    The table is resolved against the session's active database when the
    statement is buffered, so a later USE does not redirect it.
    """

    statement: TableStatement
    table: QualifiedTableName

    @property
    def statement_type(self) -> StatementType:
        return self.statement.statement_type

    @property
    def text(self) -> str:
        return self.statement.text

    @property
    def lock_mode(self) -> LockMode:
        """Lock taken while this operation is replayed."""
        if self.statement_type.is_write:
            return LockMode.EXCLUSIVE
        return LockMode.SHARED


@dataclass
class Transaction:
    """An open transaction and its ordered operation log."""

    txn_id: TransactionId
    state: TransactionState = TransactionState.ACTIVE
    log: list[BufferedOperation] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.state == TransactionState.ACTIVE


@dataclass
class OperationOutcome:
    """What happened to one buffered operation when it was applied."""

    operation: BufferedOperation
    status: OutcomeStatus
    message: str
    affected_rows: int = 0
    rows: list[Row] = field(default_factory=list)
    error: ErrorKind | None = None

    @property
    def applied(self) -> bool:
        return self.status == OutcomeStatus.APPLIED


@dataclass
class CommitReport:
    """Per-operation results of a commit replay, in log order."""

    txn_id: TransactionId
    outcomes: list[OperationOutcome] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.applied)

    @property
    def failures(self) -> list[OperationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.applied]

    @property
    def all_applied(self) -> bool:
        return not self.failures

    @property
    def error(self) -> ErrorKind | None:
        """Category of the first failed operation, if any."""
        failures = self.failures
        return failures[0].error if failures else None
