"""Transaction Manager: buffered operations replayed at commit.

While a transaction is open, table statements are not applied. They are
appended to the transaction's log together with the table they resolve
to, and nothing outside the transaction can see them. COMMIT replays the
log in order. Each entry takes its own table lock (exclusive for writes,
shared for reads), is applied, and releases the lock before the next entry
starts, so replay never waits and never deadlocks. An entry that cannot
take its lock or fails to apply is recorded in the ``CommitReport`` and
replay moves on; commit is not atomic.

Read-your-writes:
    By default a SELECT inside a transaction sees committed rows only.
    With ``read_your_writes`` enabled, ``visible_rows`` overlays the
    transaction's buffered writes on the committed rows in memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from lite_dbms.domain.entities.transaction import (
    BufferedOperation,
    CommitReport,
    OperationOutcome,
    Transaction,
)
from lite_dbms.domain.errors import (
    DatabaseError,
    LockConflictError,
    SemanticError,
    TransactionStateError,
)
from lite_dbms.domain.services import row_operations
from lite_dbms.domain.services.lock_manager import LockManager
from lite_dbms.domain.services.statement_applier import StatementApplier
from lite_dbms.domain.value_objects import (
    OutcomeStatus,
    QualifiedTableName,
    TransactionId,
    TransactionState,
)
from lite_dbms.infrastructure.logging import get_logger
from lite_dbms.infrastructure.metrics import MetricsRegistry
from lite_dbms.infrastructure.tracing import trace_span

logger = get_logger(__name__)


@dataclass
class TransactionStats:
    """Counters for one Transaction Manager."""

    committed: int = 0
    rolled_back: int = 0
    operations_applied: int = 0
    operations_failed: int = 0


class TransactionManager:
    """Per-session transaction state machine.

    Usage:
        txn_mgr = TransactionManager(applier, lock_manager, next_txn_id)
        txn_mgr.begin()
        txn_mgr.buffer(operation)
        report = txn_mgr.commit()

    Thread Safety:
        Not thread-safe. Each session owns one instance; the lock manager
        and applier it is given are shared and thread-safe.
    """

    def __init__(
        self,
        applier: StatementApplier,
        lock_manager: LockManager,
        next_txn_id: Callable[[], TransactionId],
        read_your_writes: bool = False,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the transaction manager.

        Args:
            applier: Applies replayed operations to storage.
            lock_manager: Lock table shared with other sessions.
            next_txn_id: Allocates a fresh transaction id.
            read_your_writes: Whether SELECT sees this transaction's writes.
            metrics: Optional metrics registry.
        """
        self._applier = applier
        self._lock_manager = lock_manager
        self._next_txn_id = next_txn_id
        self._read_your_writes = read_your_writes
        self._metrics = metrics

        self._current: Transaction | None = None
        self._stats = TransactionStats()

    @property
    def state(self) -> TransactionState:
        return self._current.state if self._current else TransactionState.INACTIVE

    @property
    def is_active(self) -> bool:
        return self.state == TransactionState.ACTIVE

    @property
    def current(self) -> Transaction | None:
        return self._current

    @property
    def read_your_writes(self) -> bool:
        return self._read_your_writes

    def begin(self) -> Transaction:
        """Open a transaction with a fresh id.

        Raises:
            TransactionStateError: If a transaction is already open.
        """
        if self.is_active:
            raise TransactionStateError("A transaction is already in progress.")

        self._current = Transaction(txn_id=self._next_txn_id())
        if self._metrics is not None:
            self._metrics.transactions_active.inc()
        logger.info("transaction_started", txn_id=self._current.txn_id)
        return self._current

    def buffer(self, operation: BufferedOperation) -> None:
        """Append an operation to the open transaction's log.

        Raises:
            TransactionStateError: If no transaction is open.
        """
        txn = self._require_active("queue an operation")
        txn.log.append(operation)
        logger.debug(
            "operation_buffered",
            txn_id=txn.txn_id,
            table=str(operation.table),
            kind=operation.statement_type.value,
            position=len(txn.log),
        )

    def commit(self) -> CommitReport:
        """Replay the log, one lock per entry, and close the transaction.

        Returns:
            The outcome of every buffered operation, in log order.

        Raises:
            TransactionStateError: If no transaction is open.
        """
        txn = self._require_active("commit")
        report = CommitReport(txn_id=txn.txn_id)

        with trace_span(
            "transaction.commit", {"txn_id": txn.txn_id, "operations": len(txn.log)}
        ):
            try:
                for operation in txn.log:
                    report.outcomes.append(self._replay(txn.txn_id, operation))
            finally:
                self._lock_manager.release_all_locks(txn.txn_id)
                self._finish("commit")

        self._stats.committed += 1
        self._stats.operations_applied += report.applied_count
        self._stats.operations_failed += len(report.failures)
        logger.info(
            "transaction_committed",
            txn_id=report.txn_id,
            applied=report.applied_count,
            failed=len(report.failures),
        )
        return report

    def rollback(self) -> int:
        """Discard the log and close the transaction.

        Returns:
            Number of operations discarded.

        Raises:
            TransactionStateError: If no transaction is open.
        """
        txn = self._require_active("rollback")
        discarded = len(txn.log)
        self._lock_manager.release_all_locks(txn.txn_id)
        self._finish("rollback")

        self._stats.rolled_back += 1
        logger.info("transaction_rolled_back", txn_id=txn.txn_id, discarded=discarded)
        return discarded

    def visible_rows(self, table: QualifiedTableName, committed_rows: list[str]) -> list[str]:
        """Rows a SELECT in this session should scan.

        Returns the committed rows unchanged unless read-your-writes is
        enabled and a transaction is open, in which case the transaction's
        buffered writes to ``table`` are applied on top in log order. A
        buffered write that no longer fits is skipped here; it fails again
        at commit.
        """
        if not self._read_your_writes or not self.is_active or not committed_rows:
            return committed_rows

        rows = committed_rows
        for operation in self._current.log:  # type: ignore[union-attr]
            if operation.table != table or not operation.statement_type.is_write:
                continue
            try:
                rows = row_operations.apply_write(rows, operation.statement).rows  # type: ignore[arg-type]
            except SemanticError:
                continue
        return rows

    def autocommit(self, operation: BufferedOperation) -> OperationOutcome:
        """Apply one statement immediately under a lock of its own.

        The lock is taken under a fresh transaction id while the table's
        mutex is held, so autocommit writers to one table queue behind each
        other instead of conflicting, while a lock held by an open commit
        replay or any other transaction is still honoured.

        Raises:
            LockConflictError: If another transaction holds a conflicting lock.
            SemanticError: If the statement does not fit the table.
            PersistenceError: If the table file cannot be written.
        """
        table = str(operation.table)
        mode = operation.lock_mode
        txn_id = self._next_txn_id()

        with self._applier.table_guard(operation.table):
            if not self._lock_manager.acquire(table, txn_id, mode):
                raise _lock_conflict(operation)
            try:
                return self._applier.apply(operation)
            finally:
                self._lock_manager.release(table, txn_id, mode)

    def get_stats(self) -> TransactionStats:
        return TransactionStats(
            committed=self._stats.committed,
            rolled_back=self._stats.rolled_back,
            operations_applied=self._stats.operations_applied,
            operations_failed=self._stats.operations_failed,
        )

    def _replay(self, txn_id: TransactionId, operation: BufferedOperation) -> OperationOutcome:
        table = str(operation.table)
        mode = operation.lock_mode
        kind = operation.statement_type.value

        if not self._lock_manager.acquire(table, txn_id, mode):
            conflict = _lock_conflict(operation)
            outcome = OperationOutcome(
                operation=operation,
                status=OutcomeStatus.LOCK_CONFLICT,
                message=str(conflict),
                error=conflict.kind,
            )
            self._count_replay(kind, outcome.status)
            return outcome

        try:
            outcome = self._applier.apply(operation)
        except DatabaseError as e:
            logger.warning(
                "replay_failed", txn_id=txn_id, table=table, kind=kind, error=str(e)
            )
            outcome = OperationOutcome(
                operation=operation,
                status=OutcomeStatus.FAILED,
                message=str(e),
                error=e.kind,
            )
        finally:
            self._lock_manager.release(table, txn_id, mode)

        self._count_replay(kind, outcome.status)
        return outcome

    def _require_active(self, action: str) -> Transaction:
        if not self.is_active:
            raise TransactionStateError(f"No active transaction to {action}.")
        return self._current  # type: ignore[return-value]

    def _finish(self, outcome: str) -> None:
        if self._current is not None:
            self._current.log.clear()
            self._current.state = TransactionState.INACTIVE
        self._current = None
        if self._metrics is not None:
            self._metrics.transactions_active.dec()
            self._metrics.transactions_total.labels(outcome=outcome).inc()

    def _count_replay(self, kind: str, status: OutcomeStatus) -> None:
        if self._metrics is not None:
            self._metrics.replayed_operations_total.labels(kind=kind, status=status.value).inc()



def _lock_conflict(operation: BufferedOperation) -> LockConflictError:
    return LockConflictError(
        f"Could not acquire {operation.lock_mode.value} lock for table "
        f"'{operation.table.table}'."
    )
