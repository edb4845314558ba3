"""Integration tests for DatabaseEngine."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from lite_dbms.application import DatabaseEngine, SessionNotFoundError
from lite_dbms.domain.value_objects import ErrorKind, OutcomeStatus, TransactionId
from lite_dbms.infrastructure.config import Config

PROFILE_SETUP = [
    "CREATE DATABASE students",
    "USE students",
    "CREATE TABLE Profile(bannerID STRING, gpa FLOAT)",
]


def banner_ids(result) -> list[str]:
    return [row["bannerID"] for row in result.rows]


@pytest.mark.integration
class TestDatabaseEngine:
    """End-to-end statement flows through the default session."""

    def test_create_and_start(self, temp_dir: Path) -> None:
        """Test creating and starting the database."""
        with DatabaseEngine(data_dir=temp_dir) as db:
            assert db.is_started
            stats = db.get_stats()
            assert stats["started"] is True
            assert stats["sessions"] == 1
        assert not db.is_started

    def test_execute_before_start(self, temp_dir: Path) -> None:
        db = DatabaseEngine(data_dir=temp_dir)

        with pytest.raises(RuntimeError):
            db.execute("SHOW DATABASES")

    def test_filtered_select_in_insertion_order(self, students: DatabaseEngine) -> None:
        """Rows come back in insertion order when a range condition matches."""
        students.execute("INSERT INTO Profile VALUES('B1',3.8)")
        students.execute("INSERT INTO Profile VALUES('B2',3.9)")

        result = students.execute("SELECT * FROM Profile WHERE gpa >= 3.8")

        assert result.success
        assert banner_ids(result) == ["B1", "B2"]
        assert str(result) == "Data in 'Profile':\n'B1',3.8\n'B2',3.9"

    def test_rolled_back_insert_is_never_visible(self, students: DatabaseEngine) -> None:
        students.execute("INSERT INTO Profile VALUES('B1',3.8)")

        students.execute_many(
            [
                "BEGIN TRANSACTION",
                "INSERT INTO Profile VALUES('B3',3.5)",
                "ROLLBACK",
            ]
        )
        result = students.execute("SELECT * FROM Profile")

        assert "B3" not in banner_ids(result)
        assert banner_ids(result) == ["B1"]

    def test_duplicate_create_table_leaves_table_unchanged(self, students: DatabaseEngine) -> None:
        students.execute("INSERT INTO Profile VALUES('B1',3.8)")

        result = students.execute("CREATE TABLE Profile (name STRING)")

        assert not result.success
        assert str(result) == "Error: Table 'Profile' already exists."
        assert str(students.execute("DESCRIBE Profile")).endswith(
            "SCHEMA: bannerID STRING, gpa FLOAT"
        )
        assert banner_ids(students.execute("SELECT * FROM Profile")) == ["B1"]

    def test_update_and_delete(self, students: DatabaseEngine) -> None:
        """Test updating and deleting data."""
        students.execute("INSERT INTO Profile VALUES('B1',3.8)")
        students.execute("INSERT INTO Profile VALUES('B2',3.1)")

        result = students.execute("UPDATE Profile SET gpa = 3.2 WHERE bannerID = 'B2'")
        assert result.affected_rows == 1

        result = students.execute("DELETE FROM Profile WHERE gpa != 3.2")
        assert result.affected_rows == 1

        result = students.execute("SELECT * FROM Profile")
        assert banner_ids(result) == ["B2"]
        assert result.rows[0]["gpa"] == "3.2"

    def test_data_survives_restart(self, test_config: Config, students: DatabaseEngine) -> None:
        """A new engine over the same directory sees the committed state."""
        students.execute("INSERT INTO Profile VALUES('B1',3.8)")
        students.execute("CREATE TABLE Course(id INT, title STRING)")
        students.execute("INSERT INTO Course VALUES(7, 'Compilers')")
        students.stop()

        with DatabaseEngine(config=test_config) as db:
            assert db.execute("USE students").success
            assert banner_ids(db.execute("SELECT * FROM Profile")) == ["B1"]
            assert db.index_manager.get_all_records("students.Course") == ["7,'Compilers'"]

    def test_index_tracks_autocommit_writes(self, students: DatabaseEngine) -> None:
        students.execute("CREATE TABLE Course(id INT, title STRING)")
        students.execute("INSERT INTO Course VALUES(2, 'Databases')")
        students.execute("INSERT INTO Course VALUES(1, 'Networks')")
        students.execute("DELETE FROM Course WHERE id = 2")

        index = students.index_manager
        assert index.get_record_by_id("students.Course", 1) == "1,'Networks'"
        assert index.get_record_by_id("students.Course", 2) is None

    def test_stats(self, students: DatabaseEngine) -> None:
        students.execute_many(
            ["BEGIN TRANSACTION", "INSERT INTO Profile VALUES('B1',3.8)", "COMMIT"]
        )
        students.execute_many(["BEGIN TRANSACTION", "ROLLBACK"])

        stats = students.get_stats()

        assert stats["databases"] == 1
        assert stats["transactions"] == {
            "active": 0,
            "committed": 1,
            "rolled_back": 1,
            "operations_applied": 1,
            "operations_failed": 0,
        }


@pytest.mark.integration
class TestTransactions:
    """Commit replay, locking and read visibility."""

    def test_commit_applies_log_in_order(self, students: DatabaseEngine) -> None:
        results = students.execute_many(
            [
                "BEGIN TRANSACTION",
                "INSERT INTO Profile VALUES('B1',3.0)",
                "UPDATE Profile SET gpa = 3.5 WHERE bannerID = 'B1'",
                "COMMIT",
            ]
        )

        report = results[-1].commit_report
        assert report is not None and report.all_applied
        assert [o.message for o in report.outcomes] == [
            "Data inserted successfully into 'Profile'.",
            "1 row(s) updated in 'Profile'.",
        ]
        result = students.execute("SELECT * FROM Profile")
        assert result.rows[0]["gpa"] == "3.5"

    def test_writes_hidden_until_commit_by_default(self, students: DatabaseEngine) -> None:
        students.execute("BEGIN TRANSACTION")
        students.execute("INSERT INTO Profile VALUES('B1',3.8)")

        assert students.execute("SELECT * FROM Profile").rows == []

        students.execute("COMMIT")
        assert banner_ids(students.execute("SELECT * FROM Profile")) == ["B1"]

    def test_read_your_writes(self, temp_dir: Path) -> None:
        """With the option on, a session sees its own buffered writes."""
        with DatabaseEngine(data_dir=temp_dir, read_your_writes=True) as db:
            db.execute_many(PROFILE_SETUP)
            db.execute("INSERT INTO Profile VALUES('B1',3.8)")
            db.execute("BEGIN TRANSACTION")
            db.execute("INSERT INTO Profile VALUES('B2',3.9)")
            db.execute("DELETE FROM Profile WHERE bannerID = 'B1'")

            assert banner_ids(db.execute("SELECT * FROM Profile")) == ["B2"]

            other = db.open_session()
            other.execute("USE students")
            assert banner_ids(other.execute("SELECT * FROM Profile")) == ["B1"]

            db.execute("ROLLBACK")
            assert banner_ids(db.execute("SELECT * FROM Profile")) == ["B1"]

    def test_commit_reports_lock_conflict(self, students: DatabaseEngine) -> None:
        """An entry whose lock is held elsewhere is skipped; the rest still apply."""
        students.execute("CREATE TABLE Course(id INT)")
        holder = TransactionId(10_000)
        assert students.lock_manager.acquire_read_lock("students.Profile", holder)

        results = students.execute_many(
            [
                "BEGIN TRANSACTION",
                "INSERT INTO Profile VALUES('B1',3.8)",
                "INSERT INTO Course VALUES(1)",
                "COMMIT",
            ]
        )

        commit = results[-1]
        assert not commit.success
        assert commit.error == ErrorKind.LOCK_CONFLICT
        assert [o.status for o in commit.commit_report.outcomes] == [
            OutcomeStatus.LOCK_CONFLICT,
            OutcomeStatus.APPLIED,
        ]
        assert str(commit) == (
            "Transaction committed with 1 failed operation(s).\n"
            "Error: Could not acquire write lock for table 'Profile'. "
            "(INSERT INTO Profile VALUES('B1',3.8))\n"
            "Committed: INSERT INTO Course VALUES(1)"
        )
        assert students.execute("SELECT * FROM Profile").rows == []
        assert students.lock_manager.readers("students.Profile") == {holder}

    def test_autocommit_write_honours_foreign_lock(self, students: DatabaseEngine) -> None:
        """A table held exclusively by another transaction rejects autocommit writes."""
        holder = TransactionId(10_000)
        assert students.lock_manager.acquire_write_lock("students.Profile", holder)

        result = students.execute("INSERT INTO Profile VALUES('B1',3.8)")

        assert result.error == ErrorKind.LOCK_CONFLICT
        assert str(result) == "Error: Could not acquire write lock for table 'Profile'."

        students.lock_manager.release_write_lock("students.Profile", holder)
        assert students.execute("INSERT INTO Profile VALUES('B1',3.8)").success
        assert banner_ids(students.execute("SELECT * FROM Profile")) == ["B1"]

    def test_locks_released_after_commit(self, students: DatabaseEngine) -> None:
        students.execute_many(
            ["BEGIN TRANSACTION", "INSERT INTO Profile VALUES('B1',3.8)", "COMMIT"]
        )

        assert students.lock_manager.writer("students.Profile") is None
        assert students.lock_manager.acquire_write_lock("students.Profile", TransactionId(10_000))

    def test_commit_after_interleaved_autocommit(self, students: DatabaseEngine) -> None:
        """Another session's autocommit write lands before the replayed entries."""
        other = students.open_session()
        other.execute("USE students")

        students.execute("BEGIN TRANSACTION")
        students.execute("INSERT INTO Profile VALUES('B1',3.8)")
        other.execute("INSERT INTO Profile VALUES('B0',2.5)")
        students.execute("INSERT INTO Profile VALUES('B2',3.9)")

        result = students.execute("COMMIT")

        assert result.commit_report.applied_count == 2
        assert banner_ids(other.execute("SELECT * FROM Profile")) == ["B0", "B1", "B2"]


@pytest.mark.integration
class TestSessions:
    """Independent sessions over one engine."""

    def test_sessions_have_own_database(self, students: DatabaseEngine) -> None:
        session = students.open_session()

        result = session.execute("SELECT * FROM Profile")

        assert str(result) == "Error: No database selected. Use 'USE database_name' first."
        assert session.execute("USE students").success

    def test_sessions_have_own_transaction(self, students: DatabaseEngine) -> None:
        second = students.create_session()
        students.execute("USE students", second)
        students.execute("BEGIN TRANSACTION", second)

        result = students.execute("COMMIT")

        assert str(result) == "Error: No active transaction to commit."
        assert students.get_session(second).transaction_manager.is_active

    def test_transaction_ids_unique_across_sessions(self, students: DatabaseEngine) -> None:
        second = students.open_session()
        students.execute("BEGIN TRANSACTION")
        second.execute("BEGIN TRANSACTION")

        first_id = students.get_session().transaction_manager.current.txn_id
        assert first_id != second.transaction_manager.current.txn_id

    def test_close_session_rolls_back(self, students: DatabaseEngine) -> None:
        session_id = students.create_session()
        students.execute_many(
            ["USE students", "BEGIN TRANSACTION", "INSERT INTO Profile VALUES('B9',2.0)"],
            session_id,
        )

        students.close_session(session_id)

        assert students.execute("SELECT * FROM Profile").rows == []
        with pytest.raises(SessionNotFoundError):
            students.execute("SHOW DATABASES", session_id)

    def test_close_unknown_session(self, engine: DatabaseEngine) -> None:
        with pytest.raises(SessionNotFoundError):
            engine.close_session(42)

    def test_concurrent_sessions_lose_no_inserts(self, students: DatabaseEngine) -> None:
        """Every acknowledged insert from parallel sessions is stored."""
        sessions = [students.open_session() for _ in range(4)]
        for session in sessions:
            session.execute("USE students")
        failures: list[str] = []

        def insert_rows(n: int) -> None:
            for i in range(50):
                result = sessions[n].execute(f"INSERT INTO Profile VALUES('S{n}_{i}',3.0)")
                if not result.success:
                    failures.append(str(result))

        threads = [threading.Thread(target=insert_rows, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert failures == []
        ids = banner_ids(students.execute("SELECT * FROM Profile"))
        assert len(ids) == 200
        assert set(ids) == {f"S{n}_{i}" for n in range(4) for i in range(50)}
