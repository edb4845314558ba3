"""Inbound adapters for the database engine.

Inbound adapters handle incoming requests and convert them to
internal domain operations.

Exports:
    Statement Parser:
        - StatementParser: Parses statement text into typed statements
        - ParseError: Exception for malformed statements
        - UnsupportedCommandError: Exception for unknown commands

The REST API lives in ``lite_dbms.adapters.inbound.rest_api`` and is
imported from there (it depends on the application layer).
"""

from lite_dbms.adapters.inbound.statement_parser import (
    ParseError,
    StatementParser,
    UnsupportedCommandError,
    parse_condition,
)

__all__ = [
    "StatementParser",
    "ParseError",
    "UnsupportedCommandError",
    "parse_condition",
]
