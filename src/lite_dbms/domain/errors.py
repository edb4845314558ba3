"""Exception hierarchy for the database engine.

Errors are raised where they are detected and caught once, in
``QueryEngine.execute``, which turns them into an ``ExecutionResult``.
None of them is fatal: each aborts only the statement that raised it.
"""

from __future__ import annotations

from lite_dbms.domain.value_objects import ErrorKind


class DatabaseError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.SEMANTIC


class ParseError(DatabaseError):
    """Raised when a statement cannot be parsed."""

    kind = ErrorKind.PARSE


class UnsupportedCommandError(ParseError):
    """Raised when the leading keyword is not a known command."""

    kind = ErrorKind.UNSUPPORTED


class SemanticError(DatabaseError):
    """Raised when a well-formed statement is invalid in the current context.

    Examples: no database selected, table not found, value count mismatch,
    unknown column.
    """

    kind = ErrorKind.SEMANTIC


class TransactionStateError(SemanticError):
    """Raised when BEGIN/COMMIT/ROLLBACK is issued in the wrong state."""


class LockConflictError(DatabaseError):
    """Raised when a table lock cannot be acquired."""

    kind = ErrorKind.LOCK_CONFLICT


class PersistenceError(DatabaseError):
    """Raised when the catalog or a table file cannot be written."""

    kind = ErrorKind.PERSISTENCE
