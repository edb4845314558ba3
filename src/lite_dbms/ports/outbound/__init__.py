"""Outbound ports - infrastructure the domain depends on."""

from lite_dbms.ports.outbound.storage_manager import StorageManager

__all__ = ["StorageManager"]
