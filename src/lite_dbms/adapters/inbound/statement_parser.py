"""Line parser for the SQL-like statement language.

Supported statements (keywords are case-insensitive, a trailing ``;`` is
ignored):

    SHOW DATABASES | SHOW TABLES
    CREATE DATABASE <name>
    CREATE TABLE <name> (<column> <type>, ...)
    USE <name>
    DESCRIBE <name>
    INSERT INTO <name> VALUES (<value>, ...)
    SELECT <* | column, ...> FROM <name> [WHERE <column> <op> <value>]
    UPDATE <name> SET <column> = <value>, ... [WHERE <column> <op> <value>]
    DELETE FROM <name> [WHERE <column> <op> <value>]
    BEGIN TRANSACTION | COMMIT | ROLLBACK

The parser is deliberately lenient. Lists are split on every comma, with
no handling of commas inside quotes, and parentheses in a VALUES list are
dropped wherever they occur. A WHERE condition has exactly one comparison;
its operator is the first of ``>=, <=, !=, =, >, <`` whose text occurs
anywhere in the condition.
"""

from __future__ import annotations

import re

from lite_dbms.domain.entities.record import split_values
from lite_dbms.domain.entities.statements import (
    BeginStatement,
    CommitStatement,
    Condition,
    CreateDatabaseStatement,
    CreateTableStatement,
    DeleteStatement,
    DescribeStatement,
    InsertStatement,
    RollbackStatement,
    SelectStatement,
    ShowDatabasesStatement,
    ShowTablesStatement,
    Statement,
    UpdateStatement,
    UseStatement,
)
from lite_dbms.domain.errors import ParseError, UnsupportedCommandError
from lite_dbms.domain.value_objects import ComparisonOp

__all__ = ["ParseError", "StatementParser", "UnsupportedCommandError", "parse_condition"]


SUPPORTED_COMMANDS = (
    "SHOW", "USE", "CREATE", "DESCRIBE", "INSERT", "SELECT",
    "UPDATE", "DELETE", "BEGIN", "COMMIT", "ROLLBACK",
)

_FLAGS = re.IGNORECASE | re.DOTALL
_NAME = re.compile(r"\w+")
_CREATE_DATABASE = re.compile(r"CREATE\s+DATABASE\s+(?P<name>\S+)", _FLAGS)
_CREATE_TABLE = re.compile(r"CREATE\s+TABLE\s+(?P<table>[^\s(]+)\s*\((?P<columns>.*)\)", _FLAGS)
_INSERT = re.compile(r"INSERT\s+INTO\s+(?P<table>\S+)\s+VALUES\s*(?P<values>.*)", _FLAGS)
_SELECT = re.compile(
    r"SELECT\s+(?P<columns>.+?)\s+FROM\s+(?P<table>\S+)(?:\s+WHERE\s+(?P<condition>.+))?",
    _FLAGS,
)
_UPDATE = re.compile(
    r"UPDATE\s+(?P<table>\S+)\s+SET\s+(?P<assignments>.+?)(?:\s+WHERE\s+(?P<condition>.+))?",
    _FLAGS,
)
_DELETE = re.compile(
    r"DELETE\s+FROM\s+(?P<table>\S+)(?:\s+WHERE\s+(?P<condition>.+))?",
    _FLAGS,
)

_CONDITION_ERROR = "Invalid condition format. Use 'column operator value'."


def parse_condition(text: str) -> Condition:
    """Parse a single ``column op value`` condition.

    Raises:
        ParseError: If no operator occurs or either side is empty.
    """
    for op in ComparisonOp.scan_order():
        if op.value in text:
            column, _, value = text.partition(op.value)
            column, value = column.strip(), value.strip()
            if not column or not value:
                break
            return Condition(column=column, op=op, value=value)
    raise ParseError(_CONDITION_ERROR)


class StatementParser:
    """Parses one statement line into a typed ``Statement``.

    Example:
        >>> parser = StatementParser()
        >>> stmt = parser.parse("SELECT * FROM Profile WHERE gpa >= 3.8;")
        >>> stmt.table, str(stmt.condition)
        ('Profile', 'gpa >= 3.8')
    """

    def parse(self, text: str) -> Statement:
        """Parse a statement.

        Args:
            text: One statement, with or without a trailing semicolon.

        Returns:
            The typed statement; its ``text`` is the normalized input.

        Raises:
            UnsupportedCommandError: If the leading keyword is unknown.
            ParseError: If the statement is malformed.
        """
        sql = text.strip().rstrip(";").strip()
        if not sql:
            raise ParseError("Empty statement.")

        words = sql.split()
        command = words[0].upper()

        if command == "SHOW":
            return self._parse_show(sql, words)
        elif command == "USE":
            return UseStatement(name=self._single_name(words, "USE"), text=sql)
        elif command == "CREATE":
            return self._parse_create(sql, words)
        elif command == "DESCRIBE":
            return DescribeStatement(table=self._single_name(words, "DESCRIBE"), text=sql)
        elif command == "INSERT":
            return self._parse_insert(sql)
        elif command == "SELECT":
            return self._parse_select(sql)
        elif command == "UPDATE":
            return self._parse_update(sql)
        elif command == "DELETE":
            return self._parse_delete(sql)
        elif command == "BEGIN":
            if len(words) != 2 or words[1].upper() != "TRANSACTION":
                raise ParseError("Invalid BEGIN command. Use 'BEGIN TRANSACTION'.")
            return BeginStatement(text=sql)
        elif command == "COMMIT" and len(words) == 1:
            return CommitStatement(text=sql)
        elif command == "ROLLBACK" and len(words) == 1:
            return RollbackStatement(text=sql)
        elif command in ("COMMIT", "ROLLBACK"):
            raise ParseError(f"{command} takes no arguments.")

        raise UnsupportedCommandError(
            "Unsupported command. Supported commands: " + ", ".join(SUPPORTED_COMMANDS) + "."
        )

    def _parse_show(self, sql: str, words: list[str]) -> Statement:
        target = words[1].upper() if len(words) == 2 else ""
        if target == "DATABASES":
            return ShowDatabasesStatement(text=sql)
        if target == "TABLES":
            return ShowTablesStatement(text=sql)
        raise ParseError("Invalid SHOW command. Use 'SHOW DATABASES' or 'SHOW TABLES'.")

    def _parse_create(self, sql: str, words: list[str]) -> Statement:
        kind = words[1].upper() if len(words) > 1 else ""
        if kind == "DATABASE":
            match = _CREATE_DATABASE.fullmatch(sql)
            if not match:
                raise ParseError("Invalid CREATE DATABASE command. Use 'CREATE DATABASE name'.")
            return CreateDatabaseStatement(name=self._name(match["name"]), text=sql)

        if kind.startswith("TABLE"):
            match = _CREATE_TABLE.fullmatch(sql)
            if not match:
                raise ParseError(
                    "Invalid CREATE TABLE command. Use 'CREATE TABLE name (column type, ...)'."
                )
            columns = []
            for definition in match["columns"].split(","):
                parts = definition.split()
                if len(parts) != 2:
                    raise ParseError(f"Invalid column definition '{definition.strip()}'.")
                columns.append((self._name(parts[0]), parts[1]))
            return CreateTableStatement(
                table=self._name(match["table"]), columns=tuple(columns), text=sql
            )

        raise ParseError("Invalid CREATE command. Use 'CREATE DATABASE' or 'CREATE TABLE'.")

    def _parse_insert(self, sql: str) -> InsertStatement:
        match = _INSERT.fullmatch(sql)
        if not match:
            raise ParseError("Invalid INSERT command. Use 'INSERT INTO name VALUES (...)'.")
        values_text = match["values"].replace("(", "").replace(")", "").strip()
        if not values_text:
            raise ParseError("INSERT requires at least one value.")
        return InsertStatement(
            table=self._name(match["table"]),
            values=tuple(split_values(values_text)),
            text=sql,
        )

    def _parse_select(self, sql: str) -> SelectStatement:
        match = _SELECT.fullmatch(sql)
        if not match:
            raise ParseError("Invalid SELECT command. Use 'SELECT columns FROM name'.")
        columns_text = match["columns"].strip()
        columns = None
        if columns_text != "*":
            columns = tuple(split_values(columns_text))
            if not all(columns):
                raise ParseError("Invalid column list in SELECT.")
        condition = parse_condition(match["condition"]) if match["condition"] else None
        return SelectStatement(
            table=self._name(match["table"]), columns=columns, condition=condition, text=sql
        )

    def _parse_update(self, sql: str) -> UpdateStatement:
        match = _UPDATE.fullmatch(sql)
        if not match:
            raise ParseError("Invalid UPDATE command. Use 'UPDATE name SET column = value'.")
        assignments = []
        for assignment in match["assignments"].split(","):
            column, sep, value = assignment.partition("=")
            if not sep or not column.strip() or not value.strip():
                raise ParseError(f"Invalid assignment '{assignment.strip()}'.")
            assignments.append((column.strip(), value.strip()))
        condition = parse_condition(match["condition"]) if match["condition"] else None
        return UpdateStatement(
            table=self._name(match["table"]),
            assignments=tuple(assignments),
            condition=condition,
            text=sql,
        )

    def _parse_delete(self, sql: str) -> DeleteStatement:
        match = _DELETE.fullmatch(sql)
        if not match:
            raise ParseError("Invalid DELETE command. Use 'DELETE FROM name'.")
        condition = parse_condition(match["condition"]) if match["condition"] else None
        return DeleteStatement(table=self._name(match["table"]), condition=condition, text=sql)

    def _single_name(self, words: list[str], command: str) -> str:
        if len(words) != 2:
            raise ParseError(f"Invalid {command} command. Use '{command} name'.")
        return self._name(words[1])

    @staticmethod
    def _name(name: str) -> str:
        """Validate a database, table or column name."""
        if not _NAME.fullmatch(name):
            raise ParseError(f"Invalid name '{name}'.")
        return name
