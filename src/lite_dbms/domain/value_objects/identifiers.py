"""Identifiers used throughout the engine.

Tables are always addressed by their qualified ``database.table`` name once
they leave the Query Engine; the bare table name is only meaningful
relative to the session's active database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType


TransactionId = NewType("TransactionId", int)
"""Unique identifier for a transaction. Monotonically increasing per engine."""


@dataclass(frozen=True, slots=True)
class QualifiedTableName:
    """A table name qualified by its owning database.

    Example:
        >>> name = QualifiedTableName("students", "Profile")
        >>> name.database, name.table
        ('students', 'Profile')
        >>> str(name)
        'students.Profile'
    """

    database: str
    table: str

    def __post_init__(self) -> None:
        if not self.database or not self.table:
            raise ValueError("database and table must be non-empty")
        if "." in self.database:
            raise ValueError(f"database name may not contain '.': {self.database!r}")

    def __str__(self) -> str:
        return f"{self.database}.{self.table}"
