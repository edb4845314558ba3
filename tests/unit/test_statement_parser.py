"""Unit tests for the statement parser."""

from __future__ import annotations

import pytest

from lite_dbms.adapters.inbound.statement_parser import (
    ParseError,
    StatementParser,
    UnsupportedCommandError,
    parse_condition,
)
from lite_dbms.domain.entities.statements import (
    BeginStatement,
    CommitStatement,
    CreateDatabaseStatement,
    CreateTableStatement,
    DeleteStatement,
    DescribeStatement,
    InsertStatement,
    RollbackStatement,
    SelectStatement,
    ShowDatabasesStatement,
    ShowTablesStatement,
    UpdateStatement,
    UseStatement,
)
from lite_dbms.domain.value_objects import ComparisonOp, StatementType


@pytest.fixture
def parser() -> StatementParser:
    """Create a parser for testing."""
    return StatementParser()


@pytest.mark.unit
class TestCatalogStatements:
    """SHOW / CREATE / USE / DESCRIBE."""

    def test_show_databases(self, parser: StatementParser) -> None:
        assert isinstance(parser.parse("show databases;"), ShowDatabasesStatement)

    def test_show_tables(self, parser: StatementParser) -> None:
        assert isinstance(parser.parse("SHOW TABLES"), ShowTablesStatement)

    def test_invalid_show(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid SHOW command"):
            parser.parse("SHOW USERS")

    def test_create_database(self, parser: StatementParser) -> None:
        stmt = parser.parse("CREATE DATABASE students;")

        assert isinstance(stmt, CreateDatabaseStatement)
        assert stmt.name == "students"
        assert stmt.text == "CREATE DATABASE students"

    def test_create_table(self, parser: StatementParser) -> None:
        """Column definitions keep their declared order."""
        stmt = parser.parse("CREATE TABLE Profile(bannerID STRING, gpa FLOAT)")

        assert isinstance(stmt, CreateTableStatement)
        assert stmt.table == "Profile"
        assert stmt.columns == (("bannerID", "STRING"), ("gpa", "FLOAT"))

    def test_create_table_with_space_before_paren(self, parser: StatementParser) -> None:
        stmt = parser.parse("create table Profile (id INT)")

        assert isinstance(stmt, CreateTableStatement)
        assert stmt.columns == (("id", "INT"),)

    def test_create_table_without_columns(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError):
            parser.parse("CREATE TABLE Profile")

    def test_create_table_bad_column(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid column definition"):
            parser.parse("CREATE TABLE Profile(id)")

    def test_invalid_create(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid CREATE command"):
            parser.parse("CREATE INDEX foo")

    def test_use(self, parser: StatementParser) -> None:
        stmt = parser.parse("USE students")

        assert isinstance(stmt, UseStatement)
        assert stmt.name == "students"

    def test_use_requires_name(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError):
            parser.parse("USE")

    def test_describe(self, parser: StatementParser) -> None:
        stmt = parser.parse("DESCRIBE Profile")

        assert isinstance(stmt, DescribeStatement)
        assert stmt.table == "Profile"

    def test_names_cannot_escape_data_dir(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid name"):
            parser.parse("CREATE DATABASE ../etc")


@pytest.mark.unit
class TestInsert:
    """INSERT parsing."""

    def test_insert_values(self, parser: StatementParser) -> None:
        stmt = parser.parse("INSERT INTO Profile VALUES('B1',3.8);")

        assert isinstance(stmt, InsertStatement)
        assert stmt.table == "Profile"
        assert stmt.values == ("'B1'", "3.8")

    def test_values_are_trimmed(self, parser: StatementParser) -> None:
        stmt = parser.parse("insert into Profile values ( 'B1' ,  3.8 )")

        assert stmt.values == ("'B1'", "3.8")

    def test_commas_inside_quotes_split(self, parser: StatementParser) -> None:
        """Value lists are split on every comma."""
        stmt = parser.parse("INSERT INTO T VALUES('a,b')")

        assert stmt.values == ("'a", "b'")

    def test_insert_without_values(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError):
            parser.parse("INSERT INTO Profile VALUES ()")

    def test_insert_without_into(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid INSERT command"):
            parser.parse("INSERT Profile VALUES (1)")


@pytest.mark.unit
class TestSelect:
    """SELECT parsing."""

    def test_select_star(self, parser: StatementParser) -> None:
        stmt = parser.parse("SELECT * FROM Profile")

        assert isinstance(stmt, SelectStatement)
        assert stmt.columns is None
        assert stmt.condition is None

    def test_select_columns_with_where(self, parser: StatementParser) -> None:
        stmt = parser.parse("select bannerID, gpa from Profile where gpa >= 3.8")

        assert stmt.columns == ("bannerID", "gpa")
        assert stmt.condition is not None
        assert stmt.condition.column == "gpa"
        assert stmt.condition.op == ComparisonOp.GE
        assert stmt.condition.value == "3.8"

    def test_select_without_from(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid SELECT command"):
            parser.parse("SELECT *")

    def test_select_bad_condition(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid condition format"):
            parser.parse("SELECT * FROM Profile WHERE gpa")


@pytest.mark.unit
class TestConditions:
    """WHERE operator selection."""

    @pytest.mark.parametrize(
        ("text", "op"),
        [
            ("a >= 1", ComparisonOp.GE),
            ("a <= 1", ComparisonOp.LE),
            ("a != 1", ComparisonOp.NE),
            ("a = 1", ComparisonOp.EQ),
            ("a > 1", ComparisonOp.GT),
            ("a < 1", ComparisonOp.LT),
        ],
    )
    def test_each_operator(self, text: str, op: ComparisonOp) -> None:
        condition = parse_condition(text)

        assert condition.op == op
        assert (condition.column, condition.value) == ("a", "1")

    def test_first_listed_operator_wins(self) -> None:
        """'=' is listed before '<', so it is chosen even though '<' comes first."""
        condition = parse_condition("name < 'a=b'")

        assert condition.op == ComparisonOp.EQ
        assert condition.column == "name < 'a"
        assert condition.value == "b'"

    def test_empty_side(self) -> None:
        with pytest.raises(ParseError):
            parse_condition("a =")


@pytest.mark.unit
class TestUpdateDelete:
    """UPDATE / DELETE parsing."""

    def test_update_with_where(self, parser: StatementParser) -> None:
        stmt = parser.parse("UPDATE Profile SET gpa = 4.0, bannerID = 'B9' WHERE bannerID = 'B1'")

        assert isinstance(stmt, UpdateStatement)
        assert stmt.assignments == (("gpa", "4.0"), ("bannerID", "'B9'"))
        assert str(stmt.condition) == "bannerID = 'B1'"

    def test_update_without_where(self, parser: StatementParser) -> None:
        stmt = parser.parse("UPDATE Profile SET gpa = 4.0")

        assert stmt.condition is None

    def test_update_bad_assignment(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Invalid assignment"):
            parser.parse("UPDATE Profile SET gpa")

    def test_delete(self, parser: StatementParser) -> None:
        stmt = parser.parse("DELETE FROM Profile WHERE gpa < 2")

        assert isinstance(stmt, DeleteStatement)
        assert stmt.condition is not None
        assert stmt.condition.op == ComparisonOp.LT

    def test_delete_all(self, parser: StatementParser) -> None:
        assert parser.parse("DELETE FROM Profile").condition is None


@pytest.mark.unit
class TestTransactionStatements:
    """BEGIN / COMMIT / ROLLBACK and unknown commands."""

    def test_begin_transaction(self, parser: StatementParser) -> None:
        stmt = parser.parse("BEGIN TRANSACTION;")

        assert isinstance(stmt, BeginStatement)
        assert stmt.statement_type == StatementType.BEGIN

    def test_begin_requires_transaction_keyword(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="BEGIN TRANSACTION"):
            parser.parse("BEGIN")

    def test_commit_and_rollback(self, parser: StatementParser) -> None:
        assert isinstance(parser.parse("commit"), CommitStatement)
        assert isinstance(parser.parse("ROLLBACK;"), RollbackStatement)

    def test_unsupported_command(self, parser: StatementParser) -> None:
        with pytest.raises(UnsupportedCommandError, match="Unsupported command"):
            parser.parse("DROP TABLE Profile")

    def test_empty_statement(self, parser: StatementParser) -> None:
        with pytest.raises(ParseError, match="Empty statement"):
            parser.parse("  ;  ")
