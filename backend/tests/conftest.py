import sqlite3

import pytest
from fastapi.testclient import TestClient

from connector.config import ConnectorConfig
from connector.main import create_app
from connector.security import AUTH_USER

API_KEY = "test-api-key"


@pytest.fixture
def sqlite_dsn(tmp_path):
    """A seeded SQLite file; its path is the DSN for the `sqlite` driver."""
    path = tmp_path / "school.db"
    con = sqlite3.connect(path)
    con.execute("""
        CREATE TABLE students (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            grade INTEGER,
            notes BLOB
        )
    """)
    con.executemany(
        "INSERT INTO students (name, grade, notes) VALUES (?, ?, ?)",
        [
            ("Alice", 10, b"prefect"),
            ("Bob", 11, None),
            ("Carla", 12, b"captain"),
        ],
    )
    con.commit()
    con.close()
    return str(path)


@pytest.fixture
def config():
    return ConnectorConfig(api_key=API_KEY)


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as c:
        c.auth = (AUTH_USER, API_KEY)
        yield c
