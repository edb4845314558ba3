"""Lock Manager for per-table shared/exclusive locks.

Each table has a lock record: the set of transactions holding a shared
(read) lock and at most one transaction holding the exclusive (write) lock.
Acquisition never blocks. A request either succeeds immediately or returns
False and leaves the lock table unchanged; retrying is the caller's business.

Compatibility between different transactions:

          | S | X |
    ------|---|---|
    S     | Y | N |
    X     | N | N |

A transaction never conflicts with itself: the writer may also read, and
the sole reader of a table may take the write lock.

References:
    - Gray & Reuter, "Transaction Processing" (1993), Ch. 7
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from lite_dbms.domain.value_objects import LockMode, TransactionId
from lite_dbms.infrastructure.logging import get_logger
from lite_dbms.infrastructure.metrics import MetricsRegistry

logger = get_logger(__name__)


@dataclass
class TableLock:
    """Entry in the lock table for one table."""

    readers: set[TransactionId] = field(default_factory=set)
    writer: TransactionId | None = None

    def is_free(self) -> bool:
        return not self.readers and self.writer is None


class LockManager:
    """Non-blocking table lock manager.

    One instance is owned by a ``DatabaseEngine`` and injected into every
    Transaction Manager it creates. Independent engines never share locks.

    Thread Safety:
        Every public method runs as one critical section under a single
        ``threading.Lock``.
    """

    def __init__(self, metrics: MetricsRegistry | None = None) -> None:
        self._lock = threading.Lock()
        self._metrics = metrics

        # table name -> lock record; records are pruned once empty
        self._lock_table: dict[str, TableLock] = {}

    def acquire_read_lock(self, table: str, txn_id: TransactionId) -> bool:
        """Take a shared lock on ``table`` for ``txn_id``.

        Args:
            table: Qualified table name.
            txn_id: The requesting transaction.

        Returns:
            False if a different transaction holds the write lock.
        """
        with self._lock:
            entry = self._lock_table.get(table)
            if entry is not None and entry.writer is not None and entry.writer != txn_id:
                self._record(LockMode.SHARED, granted=False, table=table, txn_id=txn_id)
                return False

            if entry is None:
                entry = self._lock_table[table] = TableLock()
            entry.readers.add(txn_id)
            self._record(LockMode.SHARED, granted=True, table=table, txn_id=txn_id)
            return True

    def acquire_write_lock(self, table: str, txn_id: TransactionId) -> bool:
        """Take the exclusive lock on ``table`` for ``txn_id``.

        Args:
            table: Qualified table name.
            txn_id: The requesting transaction.

        Returns:
            False if another transaction holds a read lock or the write lock.
        """
        with self._lock:
            entry = self._lock_table.get(table)
            if entry is not None:
                other_readers = entry.readers - {txn_id}
                other_writer = entry.writer is not None and entry.writer != txn_id
                if other_readers or other_writer:
                    self._record(LockMode.EXCLUSIVE, granted=False, table=table, txn_id=txn_id)
                    return False
            else:
                entry = self._lock_table[table] = TableLock()

            entry.writer = txn_id
            self._record(LockMode.EXCLUSIVE, granted=True, table=table, txn_id=txn_id)
            return True

    # Non-blocking capability names used by the commit replay
    try_acquire_read = acquire_read_lock
    try_acquire_write = acquire_write_lock

    def acquire(self, table: str, txn_id: TransactionId, mode: LockMode) -> bool:
        """Take a lock in the given mode."""
        if mode == LockMode.EXCLUSIVE:
            return self.acquire_write_lock(table, txn_id)
        return self.acquire_read_lock(table, txn_id)

    def release_read_lock(self, table: str, txn_id: TransactionId) -> bool:
        """Release a shared lock.

        Returns:
            True if ``txn_id`` held a read lock on ``table``.
        """
        with self._lock:
            entry = self._lock_table.get(table)
            if entry is None or txn_id not in entry.readers:
                return False
            entry.readers.discard(txn_id)
            self._prune(table, entry)
            return True

    def release_write_lock(self, table: str, txn_id: TransactionId) -> bool:
        """Release the exclusive lock if ``txn_id`` holds it."""
        with self._lock:
            entry = self._lock_table.get(table)
            if entry is None or entry.writer != txn_id:
                return False
            entry.writer = None
            self._prune(table, entry)
            return True

    def release(self, table: str, txn_id: TransactionId, mode: LockMode) -> bool:
        if mode == LockMode.EXCLUSIVE:
            return self.release_write_lock(table, txn_id)
        return self.release_read_lock(table, txn_id)

    def release_all_locks(self, txn_id: TransactionId) -> int:
        """Release every lock held by a transaction.

        Returns:
            Number of locks released.
        """
        released = 0
        with self._lock:
            for table in list(self._lock_table):
                entry = self._lock_table[table]
                if txn_id in entry.readers:
                    entry.readers.discard(txn_id)
                    released += 1
                if entry.writer == txn_id:
                    entry.writer = None
                    released += 1
                self._prune(table, entry)

        if released:
            logger.debug("locks_released", txn_id=txn_id, count=released)
        return released

    def readers(self, table: str) -> frozenset[TransactionId]:
        """Transactions currently holding a read lock on ``table``."""
        with self._lock:
            entry = self._lock_table.get(table)
            return frozenset(entry.readers) if entry else frozenset()

    def writer(self, table: str) -> TransactionId | None:
        """Transaction currently holding the write lock on ``table``."""
        with self._lock:
            entry = self._lock_table.get(table)
            return entry.writer if entry else None

    def locks_held(self, txn_id: TransactionId) -> dict[str, set[LockMode]]:
        """Tables on which ``txn_id`` holds locks, with the modes held."""
        held: dict[str, set[LockMode]] = {}
        with self._lock:
            for table, entry in self._lock_table.items():
                modes = set()
                if txn_id in entry.readers:
                    modes.add(LockMode.SHARED)
                if entry.writer == txn_id:
                    modes.add(LockMode.EXCLUSIVE)
                if modes:
                    held[table] = modes
        return held

    def _prune(self, table: str, entry: TableLock) -> None:
        """Drop a lock record with no holders. Caller holds ``_lock``."""
        if entry.is_free():
            del self._lock_table[table]

    def _record(self, mode: LockMode, granted: bool, table: str, txn_id: TransactionId) -> None:
        if self._metrics is not None:
            self._metrics.lock_acquisitions_total.labels(
                mode=mode.value, result="granted" if granted else "denied"
            ).inc()
        if not granted:
            logger.info("lock_denied", table=table, txn_id=txn_id, mode=mode.value)
