"""Data rows and the literal row text they are stored as.

Rows are stored exactly as the values were written in the statement,
joined with commas: ``'B1',3.8``. Quotes stay in the stored text and are
only stripped when a value is compared or returned.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_QUOTES = ("'", '"')
_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass
class Row:
    """A row of data returned by a SELECT.

    Rows can be accessed by column name or index. ``raw`` holds the stored
    row text the values were taken from.
    """

    columns: list[str]
    values: list[str]
    raw: str = ""

    def __getitem__(self, key: str | int) -> str:
        if isinstance(key, int):
            return self.values[key]
        try:
            idx = self.columns.index(key)
            return self.values[idx]
        except ValueError as e:
            raise KeyError(f"Column '{key}' not found") from e

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except (KeyError, IndexError):
            return default

    def __repr__(self) -> str:
        pairs = ", ".join(f"{c}={v!r}" for c, v in zip(self.columns, self.values))
        return f"Row({pairs})"


def split_values(text: str) -> list[str]:
    """Split a value list on commas and trim each value.

    There is no handling of quoted commas: ``'a,b'`` yields two values.
    """
    return [value.strip() for value in text.split(",")]


def join_values(values: list[str] | tuple[str, ...]) -> str:
    return ",".join(values)


def strip_quotes(value: str) -> str:
    """Trim whitespace and one pair of surrounding quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def parse_number(value: str) -> float | None:
    """Parse a cell or literal as a number, or None if it is not numeric.

    Only plain decimal literals count: ``nan``, ``inf`` and digit
    separators such as ``1_0`` are not numbers.
    """
    text = strip_quotes(value)
    if not _DECIMAL.fullmatch(text):
        return None
    return float(text)


def leading_integer(row: str) -> int | None:
    """The integer value of a row's first column, if it has one."""
    first = strip_quotes(row.split(",", 1)[0])
    if not _INTEGER.fullmatch(first):
        return None
    return int(first)
