"""
Lite DBMS - Embedded flat-file database engine

A small, single-process database engine: a lenient SQL-like statement
parser, flat record-file storage, buffered transactions with per-table
read/write locks, and an auxiliary in-memory integer index.
"""

__version__ = "0.1.0"
