from __future__ import annotations

import logging

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from tablecrud.db.builder import build_insert, build_select, build_update
from tablecrud.db.models import OperationKind
from tablecrud.db.session import DbSession
from tablecrud.errors import DbConnectionError, ExecutionError


def _count(engine, target) -> int:
    with DbSession(engine) as session:
        return len(session.run(build_select(target), OperationKind.SELECT))


def test_transaction_commits_on_success(engine, orders) -> None:
    with DbSession(engine) as session:
        rows = session.run(build_insert(orders, {"id": 1, "age": 123}), OperationKind.INSERT)
        assert rows[0]["age"] == 123

    with DbSession(engine) as session2:
        rows = session2.run(build_select(orders, {"id": 1}), OperationKind.SELECT)
        assert [r["age"] for r in rows] == [123]


def test_transaction_rolls_back_on_exception(engine, orders) -> None:
    with pytest.raises(RuntimeError):
        with DbSession(engine) as session:
            session.run(build_insert(orders, {"id": 1, "age": 123}), OperationKind.INSERT)
            raise RuntimeError("boom")

    assert _count(engine, orders) == 0


def test_execution_error_rolls_back_earlier_statements(engine, orders) -> None:
    with pytest.raises(ExecutionError):
        with DbSession(engine) as session:
            session.run(build_insert(orders, {"id": 1}), OperationKind.INSERT)
            session.run(build_insert(orders, {"bogus": 1}), OperationKind.INSERT)

    assert _count(engine, orders) == 0


def test_connection_is_closed_after_exit(engine, orders) -> None:
    conn = None
    with DbSession(engine) as session:
        conn = session._conn  # behavior we care about: connection closes after exit
        assert conn is not None
        session.run(build_select(orders), OperationKind.SELECT)

    assert conn is not None
    assert conn.closed is True


def test_nested_usage_raises_runtime_error(engine) -> None:
    with DbSession(engine) as session:
        with pytest.raises(RuntimeError):
            with session:
                pass


def test_connection_outside_context_raises(engine) -> None:
    with pytest.raises(RuntimeError):
        DbSession(engine).connection


def test_run_returns_rowcount_for_update(engine, orders) -> None:
    with DbSession(engine) as session:
        session.run(build_insert(orders, {"id": 1, "age": 10}), OperationKind.INSERT)
        rc = session.run(build_update(orders, {"age": 11}, {"id": 1}), OperationKind.UPDATE)
        assert rc == 1


def test_execute_scalar(engine) -> None:
    with DbSession(engine) as session:
        assert session.execute_scalar("SELECT 1") == 1


def test_unreachable_database_raises_connection_error(tmp_path) -> None:
    # sqlite refuses to create a file inside a directory that does not exist
    bad = create_engine(f"sqlite:///{tmp_path / 'missing' / 'x.db'}")
    try:
        with pytest.raises(DbConnectionError) as excinfo:
            with DbSession(bad):
                pass
        assert isinstance(excinfo.value, ExecutionError)
        assert excinfo.value.connection_invalidated is True
    finally:
        bad.dispose()


class _BrokenTransaction:
    """Stands in for the session's transaction; commit and rollback both fail."""

    def commit(self) -> None:
        raise OperationalError("COMMIT", {}, Exception("server closed the connection"))

    def rollback(self) -> None:
        raise OperationalError("ROLLBACK", {}, Exception("server closed the connection"))


def test_failed_rollback_keeps_original_error(engine, orders, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="tablecrud.db.session"):
        with pytest.raises(ExecutionError) as excinfo:
            with DbSession(engine) as session:
                conn = session._conn
                session._tx = _BrokenTransaction()
                session.run(build_insert(orders, {"bogus": 1}), OperationKind.INSERT)

    assert "bogus" in str(excinfo.value)
    assert "Rollback failed" in caplog.text
    assert conn.closed is True
    assert _count(engine, orders) == 0


def test_failed_commit_raises_execution_error(engine, orders) -> None:
    with pytest.raises(ExecutionError) as excinfo:
        with DbSession(engine) as session:
            conn = session._conn
            session._tx = _BrokenTransaction()
            session.run(build_insert(orders, {"id": 1}), OperationKind.INSERT)

    assert "server closed the connection" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert conn.closed is True
    assert _count(engine, orders) == 0
