"""Database Engine - unified entry point for the database.

This module provides the DatabaseEngine class that owns the components
shared by every session (Storage Manager, Lock Manager, Index Manager)
and opens Query Engine sessions against them.

Usage:
    from lite_dbms.application import DatabaseEngine

    db = DatabaseEngine(data_dir="/path/to/data")
    db.start()

    db.execute("CREATE DATABASE students")
    db.execute("USE students")
    db.execute("CREATE TABLE Profile(bannerID STRING, gpa FLOAT)")
    db.execute("INSERT INTO Profile VALUES('B1',3.8)")
    print(db.execute("SELECT * FROM Profile"))

    db.stop()
"""

from __future__ import annotations

import itertools
import tempfile
import threading
from pathlib import Path

from lite_dbms.adapters.inbound.statement_parser import StatementParser
from lite_dbms.adapters.outbound.file_storage_manager import FileStorageManager
from lite_dbms.application.query_engine import ExecutionResult, QueryEngine
from lite_dbms.domain.services.index_manager import OrderedIndexManager
from lite_dbms.domain.services.lock_manager import LockManager
from lite_dbms.domain.services.statement_applier import StatementApplier
from lite_dbms.domain.services.transaction_manager import TransactionManager
from lite_dbms.domain.value_objects import TransactionId
from lite_dbms.infrastructure.config import Config
from lite_dbms.infrastructure.logging import get_logger
from lite_dbms.infrastructure.metrics import MetricsRegistry

logger = get_logger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id does not name an open session."""


class DatabaseEngine:
    """Main database engine that orchestrates all components.

    Features:
        - Autocommit for statements outside a transaction
        - Explicit BEGIN TRANSACTION / COMMIT / ROLLBACK per session
        - Any number of sessions sharing one lock table and index

    Thread Safety:
        Sessions may be driven from different threads, but a single
        session must not run two statements at once. Writes to one table
        are serialized; an autocommit write that finds the table locked by
        another transaction fails with a lock conflict.
    """

    def __init__(
        self,
        data_dir: str | Path | None = None,
        config: Config | None = None,
        read_your_writes: bool | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the database engine.

        Args:
            data_dir: Directory for catalog and table files. Falls back to
                ``config.storage.data_dir``, then to a temp directory.
            config: Engine configuration; defaults apply when omitted.
            read_your_writes: Overrides ``config.transactions.read_your_writes``.
            metrics: Optional metrics registry.
        """
        self._config = config or Config()
        if data_dir is None:
            data_dir = (
                self._config.storage.data_dir
                if config is not None
                else tempfile.mkdtemp(prefix="lite_dbms_")
            )
        self._data_dir = Path(data_dir)
        self._read_your_writes = (
            self._config.transactions.read_your_writes
            if read_your_writes is None
            else read_your_writes
        )
        self._metrics = metrics

        # Shared components (initialized on start)
        self._storage: FileStorageManager | None = None
        self._lock_manager: LockManager | None = None
        self._index_manager: OrderedIndexManager | None = None
        self._applier: StatementApplier | None = None
        self._parser = StatementParser()

        # Transaction ids are unique across all sessions of this engine
        self._txn_counter = itertools.count(1)
        self._txn_counter_lock = threading.Lock()

        # Session management
        self._sessions_lock = threading.Lock()
        self._next_session_id = 1
        self._sessions: dict[int, QueryEngine] = {}
        self._default_session: QueryEngine | None = None

        self._started = False

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def lock_manager(self) -> LockManager:
        self._require_started()
        return self._lock_manager  # type: ignore[return-value]

    @property
    def index_manager(self) -> OrderedIndexManager:
        self._require_started()
        return self._index_manager  # type: ignore[return-value]

    @property
    def storage(self) -> FileStorageManager:
        self._require_started()
        return self._storage  # type: ignore[return-value]

    def start(self) -> None:
        """Start the database engine.

        Raises:
            RuntimeError: If already started.
        """
        if self._started:
            raise RuntimeError("Database engine already started")

        self._storage = FileStorageManager(
            data_dir=self._data_dir, config=self._config.storage, metrics=self._metrics
        )
        self._lock_manager = LockManager(metrics=self._metrics)
        self._index_manager = OrderedIndexManager(metrics=self._metrics)
        self._applier = StatementApplier(self._storage, self._index_manager)

        self._started = True
        self._default_session = self._sessions[self.create_session()]
        logger.info(
            "engine_started",
            data_dir=str(self._data_dir),
            read_your_writes=self._read_your_writes,
        )

    def stop(self) -> None:
        """Stop the engine, rolling back any open transaction.

        Raises:
            RuntimeError: If not started.
        """
        self._require_started()
        for session_id in list(self._sessions):
            self.close_session(session_id)

        self._default_session = None
        self._started = False
        logger.info("engine_stopped", data_dir=str(self._data_dir))

    def open_session(self) -> QueryEngine:
        """Create a session and return its Query Engine."""
        return self._sessions[self.create_session()]

    def create_session(self) -> int:
        """Create a new session.

        Returns:
            The session ID for the new session.
        """
        self._require_started()
        with self._sessions_lock:
            session_id = self._next_session_id
            self._next_session_id += 1

        txn_manager = TransactionManager(
            applier=self._applier,  # type: ignore[arg-type]
            lock_manager=self._lock_manager,  # type: ignore[arg-type]
            next_txn_id=self._allocate_txn_id,
            read_your_writes=self._read_your_writes,
            metrics=self._metrics,
        )
        session = QueryEngine(
            storage=self._storage,  # type: ignore[arg-type]
            transaction_manager=txn_manager,
            applier=self._applier,  # type: ignore[arg-type]
            index_manager=self._index_manager,  # type: ignore[arg-type]
            session_id=session_id,
            parser=self._parser,
            metrics=self._metrics,
        )
        with self._sessions_lock:
            self._sessions[session_id] = session
        logger.debug("session_opened", session_id=session_id)
        return session_id

    def close_session(self, session_id: int) -> None:
        """Close a session. An open transaction is rolled back.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        with self._sessions_lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)

        if session.transaction_manager.is_active:
            session.transaction_manager.rollback()
        logger.debug("session_closed", session_id=session_id)

    def get_session(self, session_id: int | None = None) -> QueryEngine:
        """Get a session by ID, or the default session."""
        self._require_started()
        if session_id is None:
            return self._default_session  # type: ignore[return-value]
        with self._sessions_lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def execute(self, statement: str, session_id: int | None = None) -> ExecutionResult:
        """Execute a statement in a session (the default one if omitted).

        Raises:
            RuntimeError: If the engine is not started.
            SessionNotFoundError: If the session does not exist.
        """
        return self.get_session(session_id).execute(statement)

    def execute_many(
        self, statements: list[str], session_id: int | None = None
    ) -> list[ExecutionResult]:
        """Execute statements in order in one session."""
        session = self.get_session(session_id)
        return [session.execute(statement) for statement in statements]

    def get_stats(self) -> dict:
        """Get engine statistics."""
        stats: dict = {
            "started": self._started,
            "data_dir": str(self._data_dir),
            "read_your_writes": self._read_your_writes,
            "sessions": len(self._sessions),
        }
        if not self._started:
            return stats

        committed = rolled_back = applied = failed = active = 0
        with self._sessions_lock:
            sessions = list(self._sessions.values())
        for session in sessions:
            txn_stats = session.transaction_manager.get_stats()
            committed += txn_stats.committed
            rolled_back += txn_stats.rolled_back
            applied += txn_stats.operations_applied
            failed += txn_stats.operations_failed
            active += int(session.transaction_manager.is_active)

        stats["transactions"] = {
            "active": active,
            "committed": committed,
            "rolled_back": rolled_back,
            "operations_applied": applied,
            "operations_failed": failed,
        }
        stats["databases"] = len(self._storage.load_database())  # type: ignore[union-attr]
        return stats

    def _allocate_txn_id(self) -> TransactionId:
        with self._txn_counter_lock:
            return TransactionId(next(self._txn_counter))

    def _require_started(self) -> None:
        if not self._started:
            raise RuntimeError("Database engine not started")

    def __enter__(self) -> DatabaseEngine:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
