from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.exc import SQLAlchemyError

from ..errors import DbConnectionError
from .executor import execute, wrap_error
from .models import GeneratedStatement, OperationKind, ResultRow
from .normalizer import normalize

logger = logging.getLogger(__name__)


class DbSession:
    """
    Transactional wrapper around a SQLAlchemy Engine connection.

    One session runs one generated statement: the connection is opened on
    enter, the transaction commits on a clean exit and rolls back on error,
    and the connection is always closed.

    Use as:
        with DbSession(engine) as session:
            rows = session.run(build_select(target, {"status": "active"}), OperationKind.SELECT)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        try:
            self._conn = self.engine.connect()
        except SQLAlchemyError as exc:
            err = wrap_error(exc)
            raise DbConnectionError(
                f"Could not connect to database: {err}",
                orig=exc,
                connection_invalidated=True,
            ) from exc
        self._tx = self._conn.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    self._tx.rollback()
                else:
                    self._tx.commit()
        except SQLAlchemyError as tx_exc:
            if exc_type is None:
                raise wrap_error(tx_exc) from tx_exc
            # the body's error propagates; closing the connection discards the transaction
            logger.warning("Rollback failed after %s: %s", exc_type.__name__, tx_exc)
        finally:
            if self._conn is not None:
                self._conn.close()

            self._conn = None
            self._tx = None

        # propagate exceptions (if any)
        return False

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._conn

    def run(
        self,
        statement: GeneratedStatement,
        kind: OperationKind,
    ) -> list[ResultRow] | int:
        """
        Execute a generated statement.

        Returns normalized rows for SELECT/INSERT and the affected row count
        for UPDATE/DELETE. Row cursors are drained and closed before return.
        """
        outcome = execute(self.connection, statement, kind)
        if isinstance(outcome, int):
            return outcome
        return normalize(outcome)

    def execute_scalar(self, sql: str) -> Any:
        """
        Execute a fixed statement expected to return a single scalar value.
        Intended for probes such as ``SELECT 1``.
        """
        try:
            result = self.connection.execute(text(sql))
            try:
                return result.scalar_one_or_none()
            finally:
                result.close()
        except SQLAlchemyError as exc:
            raise wrap_error(exc) from exc
