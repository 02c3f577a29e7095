"""Convert driver result rows into plain scalar rows.

Cells come back as whatever the driver produces (Decimal, datetime, UUID,
memoryview, ...). Rows handed to callers only ever hold None, str, bool,
int, float or Decimal.
"""

from __future__ import annotations

import base64
import datetime
import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError

from .executor import wrap_error
from .models import ResultRow, Scalar


def _decode_bytes(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return base64.b64encode(data).decode("ascii")


def normalize_value(value: Any) -> Scalar:
    """
    Map one cell onto the scalar kinds (null, string, number, boolean).

    - None, str, bool, int, float and Decimal pass through
    - datetime, date and time become ISO-8601 strings
    - timedelta becomes total seconds
    - UUID becomes its canonical string
    - bytes/memoryview are decoded as UTF-8, falling back to base64
    - anything else (arrays, JSON, network types, ...) becomes str(value)
    """
    if value is None or isinstance(value, (str, bool, int, float, Decimal)):
        return value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, memoryview):
        return _decode_bytes(value.tobytes())
    if isinstance(value, (bytes, bytearray)):
        return _decode_bytes(bytes(value))
    return str(value)


def normalize(result: CursorResult) -> list[ResultRow]:
    """
    Drain a row cursor into a list of ``{column label: scalar}`` dicts.

    Column labels are read once from the cursor metadata. Row order is the
    database's order. The cursor is closed on every exit path.

    Cells are classified by the Python type the driver returned for the
    column rather than by ``cursor.description`` type codes. The driver's
    type mapping already follows the column type (NUMERIC arrives as
    Decimal, double precision as float), and type codes are driver-specific.

    Raises:
        ExecutionError: If fetching rows fails
    """
    try:
        columns = list(result.keys())
        return [
            {col: normalize_value(cell) for col, cell in zip(columns, row)}
            for row in result
        ]
    except SQLAlchemyError as exc:
        raise wrap_error(exc) from exc
    finally:
        result.close()
