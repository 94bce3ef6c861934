from concurrent.futures import ThreadPoolExecutor

import pytest

from connector.errors import DatabaseConnectionError, DatabaseError, MalformedRequest, UnknownTaskType
from connector.models import ExecResult, Task
from connector.services import task_executor
from connector.services.task_executor import execute_task

from .factories import make_task


def test_query_task_returns_rows(sqlite_dsn):
    task = Task(**make_task("mysql.query", "SELECT 1 AS x", sqlite_dsn))
    assert execute_task(task) == [{"x": "1"}]


def test_query_task_row_count_and_keys(sqlite_dsn):
    task = Task(**make_task("mssql.query", "SELECT id, name FROM students", sqlite_dsn))
    rows = execute_task(task)
    assert len(rows) == 3
    assert all(set(row) == {"id", "name"} for row in rows)


def test_exec_task_returns_counts(sqlite_dsn):
    task = Task(**make_task("mssql.exec", "DELETE FROM students WHERE grade < 12", sqlite_dsn))
    result = execute_task(task)
    assert isinstance(result, ExecResult)
    assert result.rows_affected == 2
    assert isinstance(result.last_insert_id, int)


def test_unknown_type_never_opens_a_connection(monkeypatch, sqlite_dsn):
    def fail(*args, **kwargs):
        raise AssertionError("connection attempted")

    monkeypatch.setattr(task_executor, "Database", fail)
    task = Task(**make_task("bogus.query", "SELECT 1", sqlite_dsn))
    with pytest.raises(UnknownTaskType) as excinfo:
        execute_task(task)
    assert str(excinfo.value) == "Unknown task type: bogus.query"
    assert excinfo.value.task_type == "bogus.query"


def test_missing_config_is_malformed():
    task = Task(id="1", type="mysql.query", payload="SELECT 1")
    with pytest.raises(MalformedRequest, match="Unable to parse task config"):
        execute_task(task)


def test_bad_sql_is_database_error(sqlite_dsn):
    task = Task(**make_task("mysql.query", "SELEC 1", sqlite_dsn))
    with pytest.raises(DatabaseError, match="^Database error: "):
        execute_task(task)


def test_unsupported_driver_is_connection_error():
    task = Task(**make_task("mysql.exec", "DELETE FROM t", "x", driver="db2"))
    with pytest.raises(DatabaseConnectionError):
        execute_task(task)


def test_concurrent_tasks_keep_their_own_rows(sqlite_dsn):
    first = Task(**make_task("mysql.query", "SELECT name FROM students WHERE grade = 10", sqlite_dsn, task_id="a"))
    second = Task(**make_task("mysql.query", "SELECT name FROM students WHERE grade > 10 ORDER BY id", sqlite_dsn, task_id="b"))

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(execute_task, t) for t in [first, second] * 10]
        results = [f.result() for f in futures]

    for i, rows in enumerate(results):
        if i % 2 == 0:
            assert rows == [{"name": "Alice"}]
        else:
            assert rows == [{"name": "Bob"}, {"name": "Carla"}]
