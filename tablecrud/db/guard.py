from __future__ import annotations

from typing import Optional

from ..errors import EmptyDataError, MissingFilterError
from .identifier import quote_identifier
from .models import ColumnValueMap, OperationKind


def check_operation(
    kind: OperationKind,
    data: Optional[ColumnValueMap] = None,
    filter: Optional[ColumnValueMap] = None,
    allow_unfiltered_update: bool = False,
) -> None:
    """
    Reject unsafe or malformed requests before any SQL is built.

    Raises the same error types as the builders, so callers see one
    validation surface whichever layer catches the problem first.

    ⚠️ UPDATE without a filter touches every row. The builder accepts it,
    but here it is refused unless ``allow_unfiltered_update`` is set.
    DELETE without a filter is refused unconditionally.

    Raises:
        EmptyDataError: INSERT/UPDATE with no data columns
        MissingFilterError: DELETE without filter, or unconfirmed UPDATE without filter
        InvalidIdentifier: Any data or filter key that is not a usable column name
    """
    kind = OperationKind(kind)

    if kind in (OperationKind.INSERT, OperationKind.UPDATE) and not data:
        raise EmptyDataError(f"{kind.value.upper()} requires at least one column value")

    if kind == OperationKind.DELETE and not filter:
        raise MissingFilterError("DELETE requires at least one filter condition")

    if kind == OperationKind.UPDATE and not filter and not allow_unfiltered_update:
        raise MissingFilterError(
            "UPDATE without a filter would modify every row; "
            "pass allow_unfiltered_update=True to confirm"
        )

    for col in data or {}:
        quote_identifier(col, "column name")
    for col in filter or {}:
        quote_identifier(col, "filter column")
