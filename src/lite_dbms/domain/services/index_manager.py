"""In-memory ordered index keyed by each table's first column.

Keys are kept in a sorted list maintained with ``bisect`` alongside a dict
from key to row text, so lookups are O(1) and ordered iteration needs no
sort.
"""

from __future__ import annotations

import threading
from bisect import bisect_left, insort
from dataclasses import dataclass, field
from typing import Sequence

from lite_dbms.domain.entities.record import leading_integer
from lite_dbms.domain.entities.schema import is_schema_row
from lite_dbms.infrastructure.logging import get_logger
from lite_dbms.infrastructure.metrics import MetricsRegistry

logger = get_logger(__name__)


@dataclass
class TableIndex:
    """Sorted key -> row map for a single table."""

    rows: dict[int, str] = field(default_factory=dict)
    keys: list[int] = field(default_factory=list)

    def put(self, key: int, row: str) -> None:
        if key not in self.rows:
            insort(self.keys, key)
        self.rows[key] = row

    def remove(self, key: int) -> bool:
        if key not in self.rows:
            return False
        del self.rows[key]
        del self.keys[bisect_left(self.keys, key)]
        return True

    def ordered_rows(self) -> list[str]:
        return [self.rows[key] for key in self.keys]

    def __len__(self) -> int:
        return len(self.keys)


class OrderedIndexManager:
    """Index Manager holding one ``TableIndex`` per qualified table name.

    Thread Safety:
        Shared by every session of an engine; all methods hold an RLock.
    """

    def __init__(self, metrics: MetricsRegistry | None = None) -> None:
        self._lock = threading.RLock()
        self._indexes: dict[str, TableIndex] = {}
        self._metrics = metrics

    def add_to_index(self, table: str, key: int, row: str) -> None:
        with self._lock:
            index = self._indexes.setdefault(table, TableIndex())
            index.put(key, row)
            self._report_size(table, index)

    def update_index(self, table: str, key: int, row: str) -> bool:
        with self._lock:
            index = self._indexes.get(table)
            if index is None or key not in index.rows:
                return False
            index.rows[key] = row
            return True

    def delete_from_index(self, table: str, key: int) -> bool:
        with self._lock:
            index = self._indexes.get(table)
            if index is None or not index.remove(key):
                return False
            self._report_size(table, index)
            return True

    def get_record_by_id(self, table: str, key: int) -> str | None:
        with self._lock:
            index = self._indexes.get(table)
            return index.rows.get(key) if index else None

    def get_all_records(self, table: str) -> list[str]:
        with self._lock:
            index = self._indexes.get(table)
            return index.ordered_rows() if index else []

    def is_table_indexed(self, table: str) -> bool:
        with self._lock:
            return table in self._indexes

    def rebuild_index(self, table: str, rows: Sequence[str]) -> int:
        """Clear and repopulate a table's index from its full row sequence.

        Args:
            table: Qualified table name.
            rows: All stored rows, schema row included.

        Returns:
            Number of rows indexed.
        """
        index = TableIndex()
        skipped = 0
        for row in rows:
            if is_schema_row(row):
                continue
            key = leading_integer(row)
            if key is None:
                skipped += 1
                continue
            index.put(key, row)

        with self._lock:
            self._indexes[table] = index
            self._report_size(table, index)

        logger.debug("index_rebuilt", table=table, entries=len(index), skipped=skipped)
        return len(index)

    # Row-level helpers used when a statement changes stored rows

    def index_row(self, table: str, row: str) -> None:
        """Index a newly stored row if its first column is an integer."""
        key = leading_integer(row)
        if key is not None:
            self.add_to_index(table, key, row)

    def replace_row(self, table: str, old_row: str, new_row: str) -> None:
        """Keep the index in step with an updated row."""
        old_key = leading_integer(old_row)
        new_key = leading_integer(new_row)
        with self._lock:
            if old_key is not None and old_key != new_key:
                self.delete_from_index(table, old_key)
            if new_key is not None:
                if not self.update_index(table, new_key, new_row):
                    self.add_to_index(table, new_key, new_row)

    def unindex_row(self, table: str, row: str) -> None:
        """Drop the row's key from the index.

        Keys are not reference-counted: if another stored row shares the key,
        the entry is removed anyway and comes back on the next rebuild.
        """
        key = leading_integer(row)
        if key is not None:
            self.delete_from_index(table, key)

    def _report_size(self, table: str, index: TableIndex) -> None:
        if self._metrics is not None:
            self._metrics.index_entries.labels(table=table).set(len(index))
