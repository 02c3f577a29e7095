from __future__ import annotations

import pytest

from tablecrud.db.metrics import observe_statement
from tablecrud.db.table import TableClient
from tablecrud.errors import ExecutionError, MissingFilterError
from tablecrud.metrics.registry import DB_STATEMENT_LATENCY_SECONDS, DB_STATEMENT_TOTAL


def _count(table: str, op_type: str, status: str) -> float:
    return DB_STATEMENT_TOTAL.labels(table=table, op_type=op_type, status=status)._value.get()


class TestObserveStatement:
    """Tests for observe_statement() function."""

    def test_increments_counter_with_correct_labels(self) -> None:
        initial = _count("test_table", "insert", "success")
        observe_statement(table="test_table", op_type="insert", status="success", latency_s=0.1)
        assert _count("test_table", "insert", "success") == initial + 1

    def test_records_latency_in_histogram(self) -> None:
        observe_statement(table="test_table", op_type="update", status="success", latency_s=0.25)
        samples = list(DB_STATEMENT_LATENCY_SECONDS.labels(table="test_table", op_type="update").collect())
        assert len(samples) > 0

    def test_error_status_tracked_separately(self) -> None:
        success = _count("test_table", "delete", "success")
        error = _count("test_table", "delete", "error")
        observe_statement(table="test_table", op_type="delete", status="error", latency_s=0.1)
        assert _count("test_table", "delete", "success") == success
        assert _count("test_table", "delete", "error") == error + 1


class TestTableClientMetrics:
    """TableClient records one observation per executed operation."""

    def test_successful_operations_are_counted(self, engine, orders) -> None:
        client = TableClient(engine, orders)
        table = str(orders)

        client.insert({"name": "Jane"})
        client.select({"name": "Jane"})

        assert _count(table, "insert", "success") == 1
        assert _count(table, "select", "success") == 1

    def test_database_failures_are_counted_as_errors(self, engine, orders) -> None:
        client = TableClient(engine, orders)
        table = str(orders)

        with pytest.raises(ExecutionError):
            client.insert({"bogus": 1})

        assert _count(table, "insert", "error") == 1
        assert _count(table, "insert", "success") == 0

    def test_rejected_requests_are_not_counted(self, engine, orders) -> None:
        client = TableClient(engine, orders)
        table = str(orders)

        with pytest.raises(MissingFilterError):
            client.delete({})

        assert _count(table, "delete", "error") == 0
