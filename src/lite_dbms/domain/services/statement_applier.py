"""Applies table statements to storage and keeps the index in step.

Used directly by the Query Engine in autocommit mode and by the
Transaction Manager when it replays a committed log.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from lite_dbms.domain.entities.record import Row
from lite_dbms.domain.entities.statements import SelectStatement
from lite_dbms.domain.entities.transaction import BufferedOperation, OperationOutcome
from lite_dbms.domain.errors import SemanticError
from lite_dbms.domain.services import row_operations
from lite_dbms.domain.value_objects import OutcomeStatus, QualifiedTableName, StatementType
from lite_dbms.infrastructure.logging import get_logger
from lite_dbms.ports.inbound.index_manager import IndexManager
from lite_dbms.ports.outbound.storage_manager import StorageManager

logger = get_logger(__name__)


class StatementApplier:
    """Runs INSERT/UPDATE/DELETE/SELECT against committed storage.

    Thread Safety:
        Each table has its own reentrant mutex, held by ``apply`` from the
        load through the save, so concurrent writers to one table are
        serialized and never overwrite each other's rows.
    """

    def __init__(self, storage: StorageManager, index_manager: IndexManager) -> None:
        self._storage = storage
        self._index = index_manager

        self._guards: dict[str, threading.RLock] = {}
        self._guards_lock = threading.Lock()

    @contextmanager
    def table_guard(self, table: QualifiedTableName) -> Iterator[None]:
        """Hold the table's mutex for a load-modify-save cycle."""
        with self._guards_lock:
            guard = self._guards.setdefault(str(table), threading.RLock())
        with guard:
            yield

    def load(self, table: QualifiedTableName) -> list[str]:
        """Load a table's rows.

        Raises:
            SemanticError: If the table has no stored rows.
        """
        rows = self._storage.load_table_data(table)
        if not rows:
            raise SemanticError(f"Table '{table.table}' not found.")
        return rows

    def select(
        self, table: QualifiedTableName, statement: SelectStatement, rows: list[str] | None = None
    ) -> tuple[list[str], list[Row]]:
        """Run a SELECT over ``rows``, or over the committed rows if omitted."""
        if rows is None:
            rows = self.load(table)
        return row_operations.select_rows(rows, statement)

    def apply(self, operation: BufferedOperation) -> OperationOutcome:
        """Apply one statement to storage.

        Raises:
            SemanticError: If the table is missing or the statement does not
                fit its schema.
            PersistenceError: If the table file cannot be written.
        """
        table = operation.table
        statement = operation.statement

        if isinstance(statement, SelectStatement):
            _, selected = self.select(table, statement)
            return OperationOutcome(
                operation=operation,
                status=OutcomeStatus.APPLIED,
                message=f"{len(selected)} row(s) selected from '{table.table}'.",
                rows=selected,
            )

        key = str(table)
        with self.table_guard(table):
            change = row_operations.apply_write(self.load(table), statement)
            if operation.statement_type == StatementType.INSERT or change.affected_rows:
                self._storage.save_table(table, change.rows)

            for row in change.inserted:
                self._index.index_row(key, row)
            for old_row, new_row in change.updated:
                self._index.replace_row(key, old_row, new_row)
            for row in change.deleted:
                self._index.unindex_row(key, row)

        logger.debug(
            "statement_applied",
            table=key,
            kind=operation.statement_type.value,
            affected_rows=change.affected_rows,
        )
        return OperationOutcome(
            operation=operation,
            status=OutcomeStatus.APPLIED,
            message=self._write_message(operation.statement_type, table, change.affected_rows),
            affected_rows=change.affected_rows,
        )

    @staticmethod
    def _write_message(kind: StatementType, table: QualifiedTableName, count: int) -> str:
        if kind == StatementType.INSERT:
            return f"Data inserted successfully into '{table.table}'."
        if kind == StatementType.UPDATE:
            return f"{count} row(s) updated in '{table.table}'."
        return f"{count} row(s) deleted from '{table.table}'."
