"""Domain entities for the database engine.

Exports:
    Schema:
        - Column, TableSchema: Column definitions and the schema row

    Records:
        - Row: A returned data row
        - split_values, strip_quotes: Literal value helpers

    Statements:
        - Condition and the typed statement classes

    Transactions:
        - BufferedOperation: A deferred statement with its resolved table
        - Transaction: Transaction id, state and log
        - OperationOutcome, CommitReport: Commit replay results
"""

from lite_dbms.domain.entities.record import Row, split_values, strip_quotes
from lite_dbms.domain.entities.schema import Column, TableSchema, is_schema_row
from lite_dbms.domain.entities.statements import (
    BeginStatement,
    CommitStatement,
    Condition,
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
    TableStatement,
    UpdateStatement,
    UseStatement,
)
from lite_dbms.domain.entities.transaction import (
    BufferedOperation,
    CommitReport,
    OperationOutcome,
    Transaction,
)

__all__ = [
    # Schema
    "Column",
    "TableSchema",
    "is_schema_row",
    # Records
    "Row",
    "split_values",
    "strip_quotes",
    # Statements
    "Condition",
    "Statement",
    "TableStatement",
    "ShowDatabasesStatement",
    "ShowTablesStatement",
    "CreateDatabaseStatement",
    "CreateTableStatement",
    "UseStatement",
    "DescribeStatement",
    "InsertStatement",
    "UpdateStatement",
    "DeleteStatement",
    "SelectStatement",
    "BeginStatement",
    "CommitStatement",
    "RollbackStatement",
    # Transactions
    "BufferedOperation",
    "Transaction",
    "OperationOutcome",
    "CommitReport",
]
