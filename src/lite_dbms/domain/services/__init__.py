"""Domain services for the database engine.

Exports:
    - LockManager: Non-blocking per-table shared/exclusive locks
    - OrderedIndexManager: In-memory integer-key index per table
    - StatementApplier: Applies table statements to storage
    - TransactionManager: Buffers operations and replays them at commit
"""

from lite_dbms.domain.services.index_manager import OrderedIndexManager
from lite_dbms.domain.services.lock_manager import LockManager, TableLock
from lite_dbms.domain.services.statement_applier import StatementApplier
from lite_dbms.domain.services.transaction_manager import (
    TransactionManager,
    TransactionStats,
)

__all__ = [
    "LockManager",
    "TableLock",
    "OrderedIndexManager",
    "StatementApplier",
    "TransactionManager",
    "TransactionStats",
]
