"""
Schema-less mapping of result rows to {column: text} records.

Column names and types are only known once the query has run, so every
cell is rendered as text, the way a raw-bytes scan would see it.
"""
import datetime
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence

from ..errors import RowMappingError

logger = logging.getLogger(__name__)


def _timedelta_text(value: datetime.timedelta) -> str:
    # MySQL TIME: [-]HH:MM:SS[.ffffff], hours not wrapped at 24
    micros = value // datetime.timedelta(microseconds=1)
    sign = "-" if micros < 0 else ""
    seconds, micros = divmod(abs(micros), 1000000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if micros:
        text += f".{micros:06d}"
    return text


def _float_text(value: float) -> str:
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return _float_text(value)
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, datetime.timedelta):
        return _timedelta_text(value)
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(value)
    except Exception as e:
        raise RowMappingError(f"cannot convert {type(value).__name__} to text: {e}") from e


def map_row(columns: Sequence[str], row: Sequence[Any]) -> Dict[str, str]:
    if len(row) != len(columns):
        raise RowMappingError(f"expected {len(columns)} columns, got {len(row)}")
    return {name: cell_to_text(row[i]) for i, name in enumerate(columns)}


def map_rows(columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> List[Dict[str, str]]:
    """
    Map every row in cursor order. A row that cannot be converted is
    logged and left out; the rest of the result set is still returned.
    """
    columns = list(columns)
    out: List[Dict[str, str]] = []
    for index, row in enumerate(rows):
        try:
            out.append(map_row(columns, row))
        except RowMappingError as e:
            logger.warning("[RowMapper] skipping malformed row %d: %s", index, e)
    return out
