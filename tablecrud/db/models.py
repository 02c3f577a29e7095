from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .identifier import qualify_table

Scalar = Union[None, str, int, float, Decimal, bool]

# column name -> value; iteration order is the placeholder order
ColumnValueMap = Mapping[str, Scalar]

ResultRow = dict[str, Scalar]


class OperationKind(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def returns_rows(self) -> bool:
        """SELECT and INSERT ... RETURNING produce a row cursor."""
        return self in (OperationKind.SELECT, OperationKind.INSERT)


class ScalarKind(str, Enum):
    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"

    @classmethod
    def of(cls, value: Any) -> "ScalarKind":
        """
        Classify a value bound to a placeholder.

        bool is checked before int since bool is an int subclass.
        Raises TypeError for anything outside the four supported kinds.
        """
        if value is None:
            return cls.NULL
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, (int, float, Decimal)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.STRING
        raise TypeError(
            f"Unsupported parameter type {type(value).__name__}; "
            "expected None, str, int, float, Decimal or bool"
        )


def count_placeholders(sql: str) -> int:
    """Count ``?`` markers that sit outside double-quoted identifiers."""
    count = 0
    quoted = False
    for ch in sql:
        if ch == '"':
            # a doubled "" toggles twice and leaves the state unchanged
            quoted = not quoted
        elif ch == "?" and not quoted:
            count += 1
    return count


@dataclass(frozen=True)
class TableTarget:
    """
    The table every operation runs against.

    Comes from configuration, never from user-entered column keys.
    """
    schema: Optional[str]
    table: str

    def qualified(self) -> str:
        return qualify_table(self.table, self.schema)

    def __str__(self) -> str:
        return f"{self.schema}.{self.table}" if self.schema else self.table


@dataclass(frozen=True)
class GeneratedStatement:
    """
    SQL text with ``?`` positional placeholders plus the values bound to them.

    Placeholder #i binds to ``params[i - 1]``.
    """
    sql: str
    params: tuple[Scalar, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.params, tuple):
            object.__setattr__(self, "params", tuple(self.params))
        placeholders = count_placeholders(self.sql)
        if placeholders != len(self.params):
            raise ValueError(
                f"Statement has {placeholders} placeholders but "
                f"{len(self.params)} parameters: {self.sql!r}"
            )
