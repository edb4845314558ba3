"""Query Engine - statement dispatch for one session.

A Query Engine holds the session's active database and its Transaction
Manager. ``execute`` parses one statement, checks it against the session
context and either applies it straight to storage (autocommit) or buffers
it in the open transaction.

Every error an individual statement can hit is reported in the returned
``ExecutionResult``; ``execute`` never raises for a bad statement.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from lite_dbms.adapters.inbound.statement_parser import StatementParser
from lite_dbms.domain.entities.record import Row
from lite_dbms.domain.entities.schema import TableSchema
from lite_dbms.domain.entities.statements import (
    BeginStatement,
    CommitStatement,
    CreateDatabaseStatement,
    CreateTableStatement,
    DeleteStatement,
    DescribeStatement,
    InsertStatement,
    RollbackStatement,
    SelectStatement,
    ShowDatabasesStatement,
    ShowTablesStatement,
    Statement,
    UpdateStatement,
    UseStatement,
)
from lite_dbms.domain.entities.transaction import BufferedOperation, CommitReport
from lite_dbms.domain.errors import DatabaseError, SemanticError
from lite_dbms.domain.services import row_operations
from lite_dbms.domain.services.statement_applier import StatementApplier
from lite_dbms.domain.services.transaction_manager import TransactionManager
from lite_dbms.domain.value_objects import ErrorKind, OutcomeStatus, QualifiedTableName
from lite_dbms.infrastructure.logging import (
    bind_statement_context,
    clear_statement_context,
    get_logger,
)
from lite_dbms.infrastructure.metrics import MetricsRegistry
from lite_dbms.infrastructure.tracing import trace_span
from lite_dbms.ports.inbound.index_manager import IndexManager
from lite_dbms.ports.outbound.storage_manager import StorageManager

logger = get_logger(__name__)


@dataclass
class ExecutionResult:
    """Result of executing one statement.

    ``str(result)`` is the text shown to a user: the status message
    followed by one line per returned row.
    """

    rows: list[Row] = field(default_factory=list)
    affected_rows: int = 0
    message: str = ""
    columns: list[str] = field(default_factory=list)
    error: ErrorKind | None = None
    commit_report: CommitReport | None = None
    row_lines: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        return "\n".join([self.message, *self.row_lines]) if self.row_lines else self.message

    @classmethod
    def failure(cls, error: DatabaseError) -> ExecutionResult:
        return cls(message=f"Error: {error}", error=error.kind)


class QueryEngine:
    """Executes statements for one session.

    Example:
        >>> engine = DatabaseEngine(data_dir="data")
        >>> engine.start()
        >>> session = engine.open_session()
        >>> print(session.execute("SHOW DATABASES"))
        No databases found.
    """

    def __init__(
        self,
        storage: StorageManager,
        transaction_manager: TransactionManager,
        applier: StatementApplier,
        index_manager: IndexManager,
        session_id: int = 0,
        parser: StatementParser | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._storage = storage
        self._txn = transaction_manager
        self._applier = applier
        self._index = index_manager
        self._parser = parser or StatementParser()
        self._metrics = metrics

        self.session_id = session_id
        self.active_database: str | None = None

    @property
    def transaction_manager(self) -> TransactionManager:
        return self._txn

    def execute(self, text: str) -> ExecutionResult:
        """Parse and run one statement.

        Args:
            text: The statement, with or without a trailing semicolon.

        Returns:
            The result; ``result.error`` names the category on failure.
        """
        started = time.perf_counter()
        kind = "unknown"
        bind_statement_context(self.session_id, self.active_database)
        try:
            statement = self._parser.parse(text)
            kind = statement.statement_type.value
            with trace_span(
                f"statement.{kind}",
                {"session_id": self.session_id, "database": self.active_database},
            ):
                result = self._dispatch(statement)
        except DatabaseError as e:
            logger.info("statement_failed", kind=kind, error=e.kind.value, reason=str(e))
            result = ExecutionResult.failure(e)
        finally:
            clear_statement_context()

        self._observe(kind, result, time.perf_counter() - started)
        return result

    def execute_script(self, script: str) -> list[ExecutionResult]:
        """Run each non-blank ``;``-terminated statement of a script in order."""
        return [self.execute(part) for part in script.split(";") if part.strip()]

    def _dispatch(self, statement: Statement) -> ExecutionResult:
        if isinstance(statement, ShowDatabasesStatement):
            return self._show_databases()
        elif isinstance(statement, ShowTablesStatement):
            return self._show_tables()
        elif isinstance(statement, CreateDatabaseStatement):
            return self._create_database(statement)
        elif isinstance(statement, UseStatement):
            return self._use(statement)
        elif isinstance(statement, CreateTableStatement):
            return self._create_table(statement)
        elif isinstance(statement, DescribeStatement):
            return self._describe(statement)
        elif isinstance(statement, SelectStatement):
            return self._select(statement)
        elif isinstance(statement, (InsertStatement, UpdateStatement, DeleteStatement)):
            return self._write(statement)
        elif isinstance(statement, BeginStatement):
            self._txn.begin()
            return ExecutionResult(message="Transaction started.")
        elif isinstance(statement, CommitStatement):
            return self._commit()
        elif isinstance(statement, RollbackStatement):
            discarded = self._txn.rollback()
            return ExecutionResult(message="Transaction rolled back.", affected_rows=discarded)

        raise SemanticError(f"Unhandled statement: {statement.text}")

    # Catalog statements

    def _show_databases(self) -> ExecutionResult:
        names = list(self._storage.load_database())
        if not names:
            return ExecutionResult(message="No databases found.", columns=["database"])
        return ExecutionResult(
            message="Available Databases:",
            columns=["database"],
            rows=[Row(columns=["database"], values=[name]) for name in names],
            row_lines=[f"- {name}" for name in names],
        )

    def _show_tables(self) -> ExecutionResult:
        database = self._require_database()
        tables = self._storage.load_database().get(database)
        if tables is None:
            raise SemanticError(f"Database '{database}' not found.")
        if not tables:
            return ExecutionResult(message=f"No tables found in database '{database}'.", columns=["table"])
        return ExecutionResult(
            message=f"Tables in '{database}':",
            columns=["table"],
            rows=[Row(columns=["table"], values=[name]) for name in tables],
            row_lines=[f"- {name}" for name in tables],
        )

    def _create_database(self, statement: CreateDatabaseStatement) -> ExecutionResult:
        if not self._storage.create_database(statement.name):
            raise SemanticError(f"Database '{statement.name}' already exists.")
        self.active_database = statement.name
        return ExecutionResult(message=f"Database '{statement.name}' created successfully.")

    def _use(self, statement: UseStatement) -> ExecutionResult:
        catalog = self._storage.load_database()
        if statement.name not in catalog:
            raise SemanticError(f"Database '{statement.name}' not found.")

        self.active_database = statement.name
        for table_name in catalog[statement.name]:
            table = QualifiedTableName(statement.name, table_name)
            self._index.rebuild_index(str(table), self._storage.load_table_data(table))
        return ExecutionResult(message=f"Database '{statement.name}' is now in use.")

    def _create_table(self, statement: CreateTableStatement) -> ExecutionResult:
        database = self._require_database()
        catalog = self._storage.load_database()
        if database not in catalog:
            raise SemanticError("Selected database does not exist.")
        if statement.table in catalog[database]:
            raise SemanticError(f"Table '{statement.table}' already exists.")

        try:
            schema = TableSchema.from_definitions(list(statement.columns))
        except ValueError as e:
            raise SemanticError(str(e)) from e

        table = QualifiedTableName(database, statement.table)
        with self._applier.table_guard(table):
            if self._storage.table_exists(table):
                raise SemanticError(f"Table '{statement.table}' already exists.")
            self._storage.save_table(table, [schema.to_row()])
            self._index.rebuild_index(str(table), [])
        return ExecutionResult(
            message=f"Table '{statement.table}' created successfully in database '{database}'.",
            columns=schema.column_names,
        )

    def _describe(self, statement: DescribeStatement) -> ExecutionResult:
        database = self._require_database()
        rows = self._storage.load_table_data(QualifiedTableName(database, statement.table))
        if not rows:
            raise SemanticError(f"Table '{statement.table}' not found in database '{database}'.")

        schema = row_operations.schema_of(rows)
        return ExecutionResult(
            message=f"Table Structure: {statement.table}",
            columns=["column", "type"],
            rows=[
                Row(columns=["column", "type"], values=[column.name, column.type.value])
                for column in schema.columns
            ],
            row_lines=[rows[0]],
        )

    # Table statements

    def _select(self, statement: SelectStatement) -> ExecutionResult:
        table = self._qualify(statement.table)
        committed = self._applier.load(table)
        visible = self._txn.visible_rows(table, committed)
        columns, rows = self._applier.select(table, statement, visible)

        if self._txn.is_active:
            self._txn.buffer(BufferedOperation(statement=statement, table=table))

        lines = [row.raw if statement.columns is None else ",".join(row.values) for row in rows]
        if statement.condition is not None and not rows:
            lines = ["No records found matching the condition."]
        return ExecutionResult(
            message=f"Data in '{statement.table}':",
            columns=columns,
            rows=rows,
            row_lines=lines,
        )

    def _write(self, statement: InsertStatement | UpdateStatement | DeleteStatement) -> ExecutionResult:
        table = self._qualify(statement.table)
        operation = BufferedOperation(statement=statement, table=table)

        if self._txn.is_active:
            self._check_fits(table, statement)
            self._txn.buffer(operation)
            return ExecutionResult(message=f"Queued in transaction: {statement.text}")

        outcome = self._txn.autocommit(operation)
        return ExecutionResult(message=outcome.message, affected_rows=outcome.affected_rows)

    def _commit(self) -> ExecutionResult:
        report = self._txn.commit()
        lines = []
        for outcome in report.outcomes:
            if outcome.status == OutcomeStatus.APPLIED:
                lines.append(f"Committed: {outcome.operation.text}")
            else:
                lines.append(f"Error: {outcome.message} ({outcome.operation.text})")

        if report.all_applied:
            message = "Transaction committed successfully."
        else:
            message = f"Transaction committed with {len(report.failures)} failed operation(s)."
        return ExecutionResult(
            message=message,
            affected_rows=sum(outcome.affected_rows for outcome in report.outcomes),
            commit_report=report,
            error=report.error,
            row_lines=lines,
        )

    def _check_fits(
        self, table: QualifiedTableName, statement: InsertStatement | UpdateStatement | DeleteStatement
    ) -> None:
        """Validate a statement against the committed schema before buffering it."""
        rows = self._applier.load(table)
        if isinstance(statement, InsertStatement):
            row_operations.insert_row([rows[0]], statement)
            return

        schema = row_operations.schema_of(rows)
        columns = []
        if isinstance(statement, UpdateStatement):
            columns.extend(column for column, _ in statement.assignments)
        if statement.condition is not None:
            columns.append(statement.condition.column)
        for column in columns:
            if schema.index_of(column) is None:
                raise SemanticError(f"Column '{column}' not found in table.")

    def _require_database(self) -> str:
        if self.active_database is None:
            raise SemanticError("No database selected. Use 'USE database_name' first.")
        return self.active_database

    def _qualify(self, table: str) -> QualifiedTableName:
        return QualifiedTableName(self._require_database(), table)

    def _observe(self, kind: str, result: ExecutionResult, elapsed: float) -> None:
        if self._metrics is None:
            return
        if not result.success:
            status = "error"
        elif result.message.startswith("Queued"):
            status = "queued"
        else:
            status = "ok"
        self._metrics.statements_total.labels(kind=kind, status=status).inc()
        self._metrics.statement_latency_seconds.labels(kind=kind).observe(elapsed)
