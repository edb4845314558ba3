"""Configuration management for the database engine."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """Storage configuration."""

    data_dir: Path = Field(default=Path("data"), description="Directory holding catalog and table files")
    catalog_file: str = Field(default="database.json", description="Catalog file name inside data_dir")
    table_file_suffix: str = Field(default=".json", description="Suffix appended to qualified table names")


class TransactionConfig(BaseModel):
    """Transaction behaviour configuration."""

    read_your_writes: bool = Field(
        default=False,
        description="Let SELECT inside a transaction observe that transaction's buffered writes",
    )


class ServerConfig(BaseModel):
    """REST server configuration."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="lite_dbms", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the database engine."""

    model_config = SettingsConfigDict(
        env_prefix="LITE_DBMS_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    transactions: TransactionConfig = Field(default_factory=TransactionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    def ensure_directories(self) -> None:
        """Ensure the data directory exists."""
        self.storage.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    config = Config()
    config.ensure_directories()
    return config
