from __future__ import annotations

from typing import Any, Optional

from ..errors import InvalidIdentifier


def quote_identifier(name: Any, identifier_type: str = "identifier") -> str:
    """
    Quote a SQL identifier (schema, table or column name) for PostgreSQL.

    The name is wrapped in double quotes and any embedded double quote is
    doubled, so the result can be spliced into SQL text whatever the name
    contains (reserved words, mixed case, spaces, quotes, non-ASCII).

    This is the only way column names typed by a user reach SQL text.
    Values never do; they are always bound through placeholders.

    Args:
        name: The identifier to quote
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The delimited identifier

    Raises:
        InvalidIdentifier: If name is None, not a string, or empty

    Example:
        >>> quote_identifier("status")
        '"status"'
        >>> quote_identifier('a"b')
        '"a""b"'
        >>> quote_identifier("")
        InvalidIdentifier: identifier cannot be empty
    """
    if name is None:
        raise InvalidIdentifier(f"{identifier_type} cannot be None")
    if not isinstance(name, str):
        raise InvalidIdentifier(
            f"{identifier_type} must be a string, got {type(name).__name__}"
        )
    if not name:
        raise InvalidIdentifier(f"{identifier_type} cannot be empty")
    if "\x00" in name:
        raise InvalidIdentifier(f"{identifier_type} {name!r} contains a NUL character")

    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def qualify_table(table: str, schema: Optional[str] = None) -> str:
    """
    Build a schema-qualified table reference, both parts quoted.

    Examples:
        >>> qualify_table("orders", schema="public")
        '"public"."orders"'
        >>> qualify_table("orders")
        '"orders"'
    """
    quoted_table = quote_identifier(table, "table")
    if schema is not None:
        return f"{quote_identifier(schema, 'schema')}.{quoted_table}"
    return quoted_table
