"""Outbound adapters - implementations of outbound ports."""

from lite_dbms.adapters.outbound.file_storage_manager import FileStorageManager

__all__ = ["FileStorageManager"]
