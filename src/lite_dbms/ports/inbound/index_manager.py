"""Index Manager port for the auxiliary primary-key index.

Each table may have an ordered map from the integer in its first column to
the raw row text. The index is kept in step with inserts, updates and
deletes and rebuilt when a database is selected. Scans never consult it.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, Sequence


class IndexManager(Protocol):
    """Protocol for per-table integer-key indexes."""

    @abstractmethod
    def add_to_index(self, table: str, key: int, row: str) -> None:
        """Insert or overwrite ``key`` in the table's index."""
        ...

    @abstractmethod
    def update_index(self, table: str, key: int, row: str) -> bool:
        """Replace the row for an existing key.

        Returns:
            False (and no change) if the key is not indexed.
        """
        ...

    @abstractmethod
    def delete_from_index(self, table: str, key: int) -> bool:
        """Remove a key. Returns False if it was not indexed."""
        ...

    @abstractmethod
    def get_record_by_id(self, table: str, key: int) -> str | None:
        ...

    @abstractmethod
    def get_all_records(self, table: str) -> list[str]:
        """All indexed rows in ascending key order."""
        ...

    @abstractmethod
    def is_table_indexed(self, table: str) -> bool:
        ...

    @abstractmethod
    def rebuild_index(self, table: str, rows: Sequence[str]) -> int:
        """Clear and repopulate the index from a full row sequence.

        The schema row and rows whose first column is not an integer are
        skipped.

        Returns:
            Number of rows indexed.
        """
        ...

    @abstractmethod
    def index_row(self, table: str, row: str) -> None:
        """Index a newly stored row."""
        ...

    @abstractmethod
    def replace_row(self, table: str, old_row: str, new_row: str) -> None:
        """Move an updated row to its (possibly new) key."""
        ...

    @abstractmethod
    def unindex_row(self, table: str, row: str) -> None:
        ...
