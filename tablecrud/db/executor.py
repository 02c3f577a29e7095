from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.types import Boolean, Float, Integer, NullType, Numeric, String, TypeEngine

from ..errors import ExecutionError
from .models import GeneratedStatement, OperationKind, ScalarKind

logger = logging.getLogger(__name__)


def _bind_type(value: Any) -> TypeEngine:
    """Pick the SQLAlchemy bind type for a parameter from its ScalarKind."""
    kind = ScalarKind.of(value)
    if kind == ScalarKind.NULL:
        return NullType()
    if kind == ScalarKind.BOOLEAN:
        return Boolean()
    if kind == ScalarKind.STRING:
        return String()
    if isinstance(value, int):
        return Integer()
    if isinstance(value, float):
        return Float()
    return Numeric(asdecimal=True)


def wrap_error(exc: SQLAlchemyError) -> ExecutionError:
    """Wrap a SQLAlchemy failure, keeping the driver message as-is."""
    if isinstance(exc, DBAPIError):
        return ExecutionError(
            str(exc.orig) if exc.orig is not None else str(exc),
            orig=exc,
            connection_invalidated=bool(exc.connection_invalidated),
        )
    return ExecutionError(str(exc), orig=exc)


def to_text_clause(statement: GeneratedStatement) -> TextClause:
    """
    Turn ``?`` placeholders into named binds ``:p1 .. :pN`` with typed values.

    Quoted identifiers are copied through untouched except that ``:`` is
    escaped, so text() never reads a bind name out of a column name.
    """
    parts: list[str] = []
    quoted = False
    index = 0
    for ch in statement.sql:
        if ch == '"':
            quoted = not quoted
            parts.append(ch)
        elif quoted:
            parts.append("\\:" if ch == ":" else ch)
        elif ch == "?":
            index += 1
            parts.append(f":p{index}")
        else:
            parts.append(ch)

    clause = text("".join(parts))
    if statement.params:
        clause = clause.bindparams(
            *[
                bindparam(f"p{i}", value, type_=_bind_type(value))
                for i, value in enumerate(statement.params, start=1)
            ]
        )
    return clause


def execute(
    connection: Connection,
    statement: GeneratedStatement,
    kind: OperationKind,
) -> CursorResult | int:
    """
    Bind and run a generated statement on an open connection.

    For SELECT and INSERT the open CursorResult is returned; the caller must
    drain and close it (normalize() does both). For UPDATE and DELETE the
    result is closed here and the affected row count is returned.

    No retries: any database failure is raised once as ExecutionError,
    chained to the original exception.

    Raises:
        ExecutionError: On any driver-level or SQLAlchemy failure
        TypeError: If a parameter is not a supported scalar
    """
    kind = OperationKind(kind)
    clause = to_text_clause(statement)
    logger.debug("Executing %s: %s (%d params)", kind.value, statement.sql, len(statement.params))

    try:
        result = connection.execute(clause)
    except SQLAlchemyError as exc:
        raise wrap_error(exc) from exc

    if kind.returns_rows:
        return result

    try:
        rowcount = result.rowcount
    finally:
        result.close()
    if rowcount is None or rowcount < 0:
        raise ExecutionError(
            f"{kind.value.upper()} did not report an affected row count"
        )
    return int(rowcount)
