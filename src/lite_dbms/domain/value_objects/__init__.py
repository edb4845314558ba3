"""Value objects for the database engine domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Identifiers:
        - TransactionId: Type-safe transaction identifier
        - QualifiedTableName: ``database.table`` pair

    Query Types:
        - StatementType: Statement kinds understood by the Query Engine
        - ColumnType: STRING, INT, FLOAT
        - ComparisonOp: WHERE operators and their scan order

    Transaction Types:
        - TransactionState: INACTIVE / ACTIVE
        - LockMode: SHARED / EXCLUSIVE
        - OutcomeStatus: Per-operation commit replay result
        - ErrorKind: Error categories of the statement interface
"""

from lite_dbms.domain.value_objects.identifiers import (
    QualifiedTableName,
    TransactionId,
)
from lite_dbms.domain.value_objects.query_types import (
    ColumnType,
    ComparisonOp,
    StatementType,
)
from lite_dbms.domain.value_objects.transaction_types import (
    ErrorKind,
    LockMode,
    OutcomeStatus,
    TransactionState,
)

__all__ = [
    # Identifiers
    "TransactionId",
    "QualifiedTableName",
    # Query types
    "StatementType",
    "ColumnType",
    "ComparisonOp",
    # Transaction types
    "TransactionState",
    "LockMode",
    "OutcomeStatus",
    "ErrorKind",
]
