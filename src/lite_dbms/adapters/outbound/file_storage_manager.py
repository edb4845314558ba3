"""File-based Storage Manager implementation.

Layout under the data directory:

    database.json              catalog: database -> [table, ...]
    <database>.<table>.json    row sequence of one table

Reads are forgiving: a missing or corrupt file is logged and treated as
empty, so a damaged table looks the same as an absent one. Writes replace
the whole file via a temporary file and ``os.replace`` and raise
``PersistenceError`` on failure.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Sequence

from lite_dbms.adapters.outbound.catalog_codec import (
    CatalogFormatError,
    decode_catalog,
    decode_rows,
    encode_catalog,
    encode_rows,
)
from lite_dbms.domain.errors import PersistenceError
from lite_dbms.domain.value_objects import QualifiedTableName
from lite_dbms.infrastructure.config import StorageConfig
from lite_dbms.infrastructure.logging import get_logger
from lite_dbms.infrastructure.metrics import MetricsRegistry

logger = get_logger(__name__)


class FileStorageManager:
    """Flat-file implementation of the StorageManager protocol.

    Attributes:
        data_dir: Directory holding the catalog and table files.
    """

    def __init__(
        self,
        data_dir: str | Path | None = None,
        config: StorageConfig | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the storage manager.

        Args:
            data_dir: Data directory (overrides ``config.data_dir``).
            config: Storage configuration; defaults apply when omitted.
            metrics: Optional metrics registry.
        """
        self._config = config or StorageConfig()
        self.data_dir = Path(data_dir) if data_dir is not None else self._config.data_dir
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._metrics = metrics

        # Serializes catalog read-modify-write across sessions
        self._lock = threading.RLock()

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / self._config.catalog_file

    def table_path(self, table: QualifiedTableName) -> Path:
        return self.data_dir / f"{table}{self._config.table_file_suffix}"

    def create_database(self, name: str) -> bool:
        with self._lock:
            catalog = self.load_database()
            if name in catalog:
                logger.warning("database_exists", name=name)
                return False
            catalog[name] = []
            self.save_database(catalog)

        logger.info("database_created", name=name)
        return True

    def load_database(self) -> dict[str, list[str]]:
        with self._lock:
            text = self._read(self.catalog_path, target="catalog")
            if text is None:
                return {}
            try:
                return decode_catalog(text)
            except CatalogFormatError as e:
                self._load_failed("catalog", self.catalog_path, e)
                return {}

    def save_database(self, catalog: dict[str, list[str]]) -> None:
        with self._lock:
            self._write(self.catalog_path, encode_catalog(catalog))

    def save_table(self, table: QualifiedTableName, rows: Sequence[str]) -> None:
        with self._lock:
            self._write(self.table_path(table), encode_rows(rows))
            if self._metrics is not None:
                self._metrics.table_writes_total.inc()

            catalog = self.load_database()
            tables = catalog.setdefault(table.database, [])
            if table.table not in tables:
                tables.append(table.table)
                self.save_database(catalog)
                logger.info("table_registered", table=str(table))

    def load_table_data(self, table: QualifiedTableName) -> list[str]:
        path = self.table_path(table)
        text = self._read(path, target="table")
        if text is None:
            return []
        try:
            return decode_rows(text)
        except CatalogFormatError as e:
            self._load_failed("table", path, e)
            return []

    def table_exists(self, table: QualifiedTableName) -> bool:
        return table.table in self.load_database().get(table.database, [])

    def _read(self, path: Path, target: str) -> str | None:
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._load_failed(target, path, e)
            return None

    def _write(self, path: Path, content: str) -> None:
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error("write_failed", path=str(path), error=str(e))
            raise PersistenceError(f"Could not write '{path.name}': {e}") from e

    def _load_failed(self, target: str, path: Path, error: Exception) -> None:
        logger.warning("load_failed", target=target, path=str(path), error=str(error))
        if self._metrics is not None:
            self._metrics.load_failures_total.labels(target=target).inc()
