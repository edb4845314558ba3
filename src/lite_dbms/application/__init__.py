"""Application layer for the database engine.

Exports:
    DatabaseEngine:
        - DatabaseEngine: Owns shared components and sessions
        - SessionNotFoundError: Unknown session id
    Query Engine:
        - QueryEngine: Executes statements for one session
        - ExecutionResult: Result of one statement
"""

from lite_dbms.application.database_engine import DatabaseEngine, SessionNotFoundError
from lite_dbms.application.query_engine import ExecutionResult, QueryEngine

__all__ = [
    "DatabaseEngine",
    "SessionNotFoundError",
    "QueryEngine",
    "ExecutionResult",
]
