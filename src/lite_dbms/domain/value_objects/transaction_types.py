"""Transaction-related types and enumerations."""

from __future__ import annotations

from enum import Enum, auto


class TransactionState(Enum):
    """Transaction Manager states.

    State machine:

        INACTIVE ──begin()──> ACTIVE
           ^                    │
           └──commit()/rollback()┘

    COMMIT returns to INACTIVE even when individual buffered operations
    failed during replay.
    """

    INACTIVE = auto()
    """No transaction open; statements run in autocommit mode."""

    ACTIVE = auto()
    """A transaction is open; writes are buffered in its log."""


class LockMode(Enum):
    """Table lock modes.

    Compatibility (between different transactions):

              | S | X |
        ------|---|---|
        S     | Y | N |
        X     | N | N |

    A transaction never conflicts with itself, so the sole reader of a
    table may upgrade to X.
    """

    SHARED = "read"
    """Shared lock - concurrent readers allowed."""

    EXCLUSIVE = "write"
    """Exclusive lock - single writer, no other readers."""


class OutcomeStatus(Enum):
    """Result of replaying one buffered operation at commit."""

    APPLIED = "applied"
    LOCK_CONFLICT = "lock_conflict"
    FAILED = "failed"


class ErrorKind(Enum):
    """Error categories reported by the statement interface."""

    PARSE = "parse"
    UNSUPPORTED = "unsupported"
    SEMANTIC = "semantic"
    LOCK_CONFLICT = "lock_conflict"
    PERSISTENCE = "persistence"
