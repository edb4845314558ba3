"""Pytest configuration and fixtures for lite_dbms tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from lite_dbms.adapters.outbound.file_storage_manager import FileStorageManager
from lite_dbms.application import DatabaseEngine
from lite_dbms.infrastructure.config import Config, StorageConfig
from lite_dbms.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> Config:
    """Provide a test configuration with a temporary data directory."""
    return Config(storage=StorageConfig(data_dir=temp_dir / "data"))


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def storage(temp_dir: Path) -> FileStorageManager:
    """Provide a storage manager over an empty data directory."""
    return FileStorageManager(data_dir=temp_dir / "data")


@pytest.fixture
def engine(
    test_config: Config, metrics_registry: MetricsRegistry
) -> Generator[DatabaseEngine, None, None]:
    """Provide a started engine over an empty data directory."""
    db = DatabaseEngine(config=test_config, metrics=metrics_registry)
    db.start()
    yield db
    if db.is_started:
        db.stop()


@pytest.fixture
def students(engine: DatabaseEngine) -> DatabaseEngine:
    """Engine whose default session uses 'students' with an empty Profile table."""
    engine.execute_many(
        [
            "CREATE DATABASE students",
            "USE students",
            "CREATE TABLE Profile(bannerID STRING, gpa FLOAT)",
        ]
    )
    return engine


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
