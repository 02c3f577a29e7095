from __future__ import annotations

from typing import Optional

from ..errors import EmptyDataError, MissingFilterError
from .identifier import quote_identifier
from .models import (
    ColumnValueMap,
    GeneratedStatement,
    OperationKind,
    Scalar,
    TableTarget,
)


def _assignments(columns: ColumnValueMap) -> list[str]:
    return [f"{quote_identifier(col, 'column name')} = ?" for col in columns]


def _where(filter: Optional[ColumnValueMap]) -> tuple[str, list[Scalar]]:
    """
    Build the WHERE clause (leading space included) and its values, in the map's order.

    Returns an empty clause for an empty (or missing) filter.
    """
    if not filter:
        return "", []
    clause = " AND ".join(_assignments(filter))
    return f" WHERE {clause}", list(filter.values())


def build_select(
    target: TableTarget, filter: Optional[ColumnValueMap] = None
) -> GeneratedStatement:
    """
    SELECT * FROM <target> [WHERE c1 = ? AND ...].

    An empty filter selects every row.
    """
    where, params = _where(filter)
    return GeneratedStatement(f"SELECT * FROM {target.qualified()}{where}", tuple(params))


def build_insert(target: TableTarget, data: ColumnValueMap) -> GeneratedStatement:
    """
    INSERT INTO <target> (c1, c2, ...) VALUES (?, ?, ...) RETURNING *.

    Raises:
        EmptyDataError: If data has no columns
    """
    if not data:
        raise EmptyDataError("INSERT requires at least one column value")

    cols = ", ".join(quote_identifier(col, "column name") for col in data)
    placeholders = ", ".join("?" for _ in data)
    sql = (
        f"INSERT INTO {target.qualified()} ({cols}) "
        f"VALUES ({placeholders}) RETURNING *"
    )
    return GeneratedStatement(sql, tuple(data.values()))


def build_update(
    target: TableTarget,
    data: ColumnValueMap,
    filter: Optional[ColumnValueMap] = None,
) -> GeneratedStatement:
    """
    UPDATE <target> SET c1 = ?, ... [WHERE f1 = ? AND ...].

    Parameters are the data values followed by the filter values.

    ⚠️ An empty filter omits the WHERE clause and updates every row.
    This builder allows it; callers must confirm that intent themselves
    (see check_operation(..., allow_unfiltered_update=True)).

    Raises:
        EmptyDataError: If data has no columns
    """
    if not data:
        raise EmptyDataError("UPDATE requires at least one column to set")

    set_sql = ", ".join(_assignments(data))
    where, filter_params = _where(filter)
    sql = f"UPDATE {target.qualified()} SET {set_sql}{where}"
    return GeneratedStatement(sql, tuple(data.values()) + tuple(filter_params))


def build_delete(target: TableTarget, filter: ColumnValueMap) -> GeneratedStatement:
    """
    DELETE FROM <target> WHERE f1 = ? AND ....

    Raises:
        MissingFilterError: If filter is empty; a DELETE is never emitted
            without a WHERE clause
    """
    if not filter:
        raise MissingFilterError("DELETE requires at least one filter condition")

    where, params = _where(filter)
    return GeneratedStatement(f"DELETE FROM {target.qualified()}{where}", tuple(params))


def build_statement(
    kind: OperationKind,
    target: TableTarget,
    data: Optional[ColumnValueMap] = None,
    filter: Optional[ColumnValueMap] = None,
) -> GeneratedStatement:
    """Dispatch to the builder for ``kind``."""
    if kind == OperationKind.SELECT:
        return build_select(target, filter)
    if kind == OperationKind.INSERT:
        return build_insert(target, data or {})
    if kind == OperationKind.UPDATE:
        return build_update(target, data or {}, filter)
    if kind == OperationKind.DELETE:
        return build_delete(target, filter or {})
    raise ValueError(f"Unknown operation kind: {kind}")
