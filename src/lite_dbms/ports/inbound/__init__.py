"""Inbound ports - services the application layer drives."""

from lite_dbms.ports.inbound.index_manager import IndexManager

__all__ = ["IndexManager"]
