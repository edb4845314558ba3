"""Storage Manager port for the catalog and table row files.

The catalog maps each database name to the ordered list of table names it
owns. Each table is an ordered sequence of strings whose first element is
the schema row.

Every mutating call rewrites the affected file in full. There is no
write-ahead log, so a crash in the middle of a rewrite may lose that file.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, Sequence

from lite_dbms.domain.value_objects import QualifiedTableName


class StorageManager(Protocol):
    """Protocol for durable catalog and table storage.

    Thread Safety:
        Implementations must serialize catalog read-modify-write cycles;
        one instance is shared by every session of an engine.
    """

    @abstractmethod
    def create_database(self, name: str) -> bool:
        """Register a new database with no tables and persist the catalog.

        Returns:
            False (and no change) if the database already exists.

        Raises:
            PersistenceError: If the catalog cannot be written.
        """
        ...

    @abstractmethod
    def load_database(self) -> dict[str, list[str]]:
        """Read the full catalog.

        A missing, empty or unreadable catalog yields ``{}``. Never raises.
        """
        ...

    @abstractmethod
    def save_database(self, catalog: dict[str, list[str]]) -> None:
        """Rewrite the catalog file.

        Raises:
            PersistenceError: If the catalog cannot be written.
        """
        ...

    @abstractmethod
    def save_table(self, table: QualifiedTableName, rows: Sequence[str]) -> None:
        """Rewrite a table's row file and register it in the catalog.

        Raises:
            PersistenceError: If either file cannot be written.
        """
        ...

    @abstractmethod
    def load_table_data(self, table: QualifiedTableName) -> list[str]:
        """Read a table's row sequence, or ``[]`` if absent or unreadable."""
        ...

    @abstractmethod
    def table_exists(self, table: QualifiedTableName) -> bool:
        """Whether the catalog lists the table under its database."""
        ...
