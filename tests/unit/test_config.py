"""Unit tests for configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest

from lite_dbms.infrastructure.config import Config, ServerConfig, StorageConfig, TransactionConfig


@pytest.mark.unit
class TestConfig:
    """Tests for Config class."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = Config()

        assert config.storage.data_dir == Path("data")
        assert config.storage.catalog_file == "database.json"
        assert config.storage.table_file_suffix == ".json"
        assert config.transactions.read_your_writes is False
        assert config.server.port == 8000
        assert config.observability.otel_service_name == "lite_dbms"

    def test_ensure_directories(self, temp_dir: Path) -> None:
        """Test that ensure_directories creates the data directory."""
        config = Config(storage=StorageConfig(data_dir=temp_dir / "nested" / "data"))

        config.ensure_directories()

        assert config.storage.data_dir.exists()

    def test_read_your_writes_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Nested settings are read from prefixed environment variables."""
        monkeypatch.setenv("LITE_DBMS_TRANSACTIONS__READ_YOUR_WRITES", "true")

        config = Config()

        assert config.transactions.read_your_writes is True

    def test_data_dir_from_env(self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
        """Storage directory can be set from the environment."""
        monkeypatch.setenv("LITE_DBMS_STORAGE__DATA_DIR", str(temp_dir))

        assert Config().storage.data_dir == temp_dir

    def test_invalid_port(self) -> None:
        """Test that an out-of-range port raises validation error."""
        with pytest.raises(ValueError):
            ServerConfig(port=70000)

    def test_invalid_log_level(self) -> None:
        """Unknown log levels are rejected."""
        with pytest.raises(ValueError):
            Config(observability={"log_level": "TRACE"})

    def test_transaction_config(self) -> None:
        """Read-your-writes can be enabled explicitly."""
        assert TransactionConfig(read_your_writes=True).read_your_writes is True
