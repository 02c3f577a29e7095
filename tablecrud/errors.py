from __future__ import annotations


class TableCrudError(Exception):
    """Base exception for tablecrud errors."""


class ConfigError(TableCrudError, ValueError):
    """Invalid or incomplete database configuration."""


class InvalidIdentifier(TableCrudError, ValueError):
    """Empty or non-string column, table or schema name."""


class EmptyDataError(TableCrudError, ValueError):
    """INSERT or UPDATE requested with no columns to write."""


class MissingFilterError(TableCrudError, ValueError):
    """DELETE (or an unconfirmed UPDATE) requested without any filter."""


class ExecutionError(TableCrudError):
    """
    Any failure reported by the database while running a statement.

    The wrapped SQLAlchemy exception is kept on ``orig`` (and chained as
    ``__cause__``); the driver's message is preserved verbatim.
    ``connection_invalidated`` is True for connection-level failures.
    """

    def __init__(
        self,
        message: str,
        orig: BaseException | None = None,
        connection_invalidated: bool = False,
    ) -> None:
        super().__init__(message)
        self.orig = orig
        self.connection_invalidated = connection_invalidated


class DbConnectionError(ExecutionError):
    """A connection to the database could not be established."""
