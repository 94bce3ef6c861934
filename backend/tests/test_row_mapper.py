import datetime
import logging
import uuid
from decimal import Decimal

import pytest

from connector.errors import RowMappingError
from connector.services.row_mapper import cell_to_text, map_row, map_rows


@pytest.mark.parametrize("value, expected", [
    (None, ""),
    ("text", "text"),
    (b"raw", "raw"),
    (bytearray(b"abc"), "abc"),
    (True, "1"),
    (False, "0"),
    (42, "42"),
    (1.5, "1.5"),
    (1.0, "1"),
    (-3.0, "-3"),
    (0.1, "0.1"),
    (1e20, "1e+20"),
    (datetime.timedelta(hours=26), "26:00:00"),
    (datetime.timedelta(hours=-1), "-01:00:00"),
    (datetime.timedelta(minutes=5, seconds=3, microseconds=250), "00:05:03.000250"),
    (Decimal("10.50"), "10.50"),
    (datetime.datetime(2024, 2, 1, 8, 30, 0), "2024-02-01 08:30:00"),
    (datetime.date(2024, 2, 1), "2024-02-01"),
    (datetime.time(8, 30), "08:30:00"),
    (uuid.UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
])
def test_cell_to_text(value, expected):
    assert cell_to_text(value) == expected


def test_undecodable_bytes_are_replaced_not_rejected():
    assert cell_to_text(b"\xff\x00ok") == "\ufffd\x00ok"


def test_map_row_has_one_key_per_column():
    assert map_row(["id", "name"], (1, "Alice")) == {"id": "1", "name": "Alice"}


def test_map_row_column_count_mismatch():
    with pytest.raises(RowMappingError):
        map_row(["id", "name"], (1,))


def test_map_rows_keeps_cursor_order_and_skips_malformed(caplog):
    rows = [(1, b"ok"), (2,), (3, None)]
    with caplog.at_level(logging.WARNING):
        out = map_rows(["id", "blob"], rows)
    assert out == [{"id": "1", "blob": "ok"}, {"id": "3", "blob": ""}]
    assert "skipping malformed row 1" in caplog.text


def test_map_rows_empty_result():
    assert map_rows(["id"], []) == []


def test_value_without_text_form_raises():
    class Opaque:
        def __str__(self):
            raise RuntimeError("no text")

    with pytest.raises(RowMappingError, match="cannot convert Opaque"):
        cell_to_text(Opaque())
