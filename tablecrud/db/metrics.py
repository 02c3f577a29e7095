from __future__ import annotations

from ..metrics.registry import DB_STATEMENT_LATENCY_SECONDS, DB_STATEMENT_TOTAL


def observe_statement(table: str, op_type: str, status: str, latency_s: float) -> None:
    """Record one table operation; status is "success" or "error"."""
    DB_STATEMENT_TOTAL.labels(table=table, op_type=op_type, status=status).inc()
    DB_STATEMENT_LATENCY_SECONDS.labels(table=table, op_type=op_type).observe(latency_s)
