from __future__ import annotations

import logging
import time
from typing import Optional

from sqlalchemy.engine import Engine

from ..errors import ExecutionError
from .builder import build_statement
from .guard import check_operation
from .metrics import observe_statement
from .models import ColumnValueMap, OperationKind, ResultRow, TableTarget
from .session import DbSession

logger = logging.getLogger(__name__)


class TableClient:
    """
    Generic CRUD against one table, driven by column -> value mappings.

    Every call validates the request, builds a parameterized statement,
    runs it in its own DbSession (one statement, one transaction) and
    returns plain rows or an affected row count.

    Usage:
        client = TableClient(engine, TableTarget("public", "orders"))
        rows = client.select({"status": "active"})
        row = client.insert({"name": "Jane", "age": 30})
        client.update({"status": "closed"}, {"id": row["id"]})
        client.delete({"id": row["id"]})

    Errors (InvalidIdentifier, EmptyDataError, MissingFilterError,
    ExecutionError) are raised to the caller unchanged; nothing is retried.
    """

    def __init__(self, engine: Engine, target: TableTarget) -> None:
        self.engine = engine
        self.target = target

    def _run(
        self,
        kind: OperationKind,
        data: Optional[ColumnValueMap] = None,
        filter: Optional[ColumnValueMap] = None,
        allow_unfiltered: bool = False,
    ) -> list[ResultRow] | int:
        check_operation(kind, data, filter, allow_unfiltered_update=allow_unfiltered)
        statement = build_statement(kind, self.target, data, filter)

        if kind == OperationKind.UPDATE and not filter:
            logger.warning("Unfiltered UPDATE on %s will modify every row", self.target)
        logger.debug(
            "%s on %s with %d bound parameters", kind.value.upper(), self.target, len(statement.params)
        )

        start_time = time.monotonic()
        status = "success"
        try:
            with DbSession(self.engine) as session:
                return session.run(statement, kind)
        except Exception:
            status = "error"
            raise
        finally:
            latency = time.monotonic() - start_time
            observe_statement(str(self.target), kind.value, status, latency)

    def select(self, filter: Optional[ColumnValueMap] = None) -> list[ResultRow]:
        """Rows matching every ``column = value`` in filter; all rows if filter is empty."""
        return self._run(OperationKind.SELECT, filter=filter)

    def select_all(self) -> list[ResultRow]:
        return self.select()

    def insert(self, data: ColumnValueMap) -> ResultRow:
        """
        Insert one row and return it as stored (RETURNING *), defaults included.

        Raises:
            ExecutionError: If the database returned no row (a trigger or
                rule suppressed the insert)
        """
        rows = self._run(OperationKind.INSERT, data=data)
        if not rows:
            raise ExecutionError(f"INSERT into {self.target} returned no row; nothing was stored")
        return rows[0]

    def update(
        self,
        data: ColumnValueMap,
        filter: Optional[ColumnValueMap] = None,
        allow_unfiltered: bool = False,
    ) -> int:
        """
        Set columns from data on rows matching filter; returns the affected row count.

        ⚠️ An empty filter is refused with MissingFilterError unless
        ``allow_unfiltered=True``, in which case every row is updated.
        """
        return self._run(
            OperationKind.UPDATE, data=data, filter=filter, allow_unfiltered=allow_unfiltered
        )

    def delete(self, filter: ColumnValueMap) -> int:
        """Delete rows matching filter; an empty filter is always refused."""
        return self._run(OperationKind.DELETE, filter=filter)

    def ping(self) -> bool:
        """Open a connection and run ``SELECT 1``."""
        with DbSession(self.engine) as session:
            return session.execute_scalar("SELECT 1") == 1
