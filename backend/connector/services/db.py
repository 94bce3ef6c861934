import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine, URL
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from ..errors import DatabaseConnectionError, DatabaseError
from ..models import ExecResult
from .dsn import resolve_url
from .row_mapper import map_rows

logger = logging.getLogger(__name__)

# Upper bound on idle connections the driver pool may hold.
MAX_IDLE_CONNECTIONS = 100

# Drivers can raise plain TypeError/ValueError (e.g. bad encodings) that SQLAlchemy does not wrap
EXECUTION_ERRORS = (SQLAlchemyError, TypeError, ValueError)


def _error_detail(e: Exception) -> str:
    if isinstance(e, DBAPIError) and e.orig is not None:
        return str(e.orig)
    return str(e)


def _count(getter: Callable[[], Any]) -> int:
    # Drivers that cannot report a value yield 0 instead of failing the exec
    try:
        value = getter()
    except Exception as e:
        logger.debug("[Database] count unavailable: %s", e)
        return 0
    if isinstance(value, int) and value > 0:
        return value
    return 0


class Database:
    """
    A short-lived handle on one database, opened for a single task.

    Every call to query()/execute() opens its own connection and
    releases it (and the engine behind it) before returning.
    """

    def __init__(self, driver: str, dsn: str):
        self.driver = driver
        self.url: URL = resolve_url(driver, dsn)

    def _create_engine(self) -> Engine:
        try:
            return create_engine(self.url, pool_size=MAX_IDLE_CONNECTIONS)
        except (SQLAlchemyError, ImportError, TypeError, ValueError) as e:
            raise DatabaseConnectionError(f"unable to load {self.driver} driver: {e}") from e

    @contextmanager
    def session(self) -> Iterator[Connection]:
        logger.info("[Database] Initialising connection to %s", self.url.render_as_string(hide_password=True))
        engine = self._create_engine()
        try:
            try:
                conn = engine.connect()
            except (SQLAlchemyError, TypeError, ValueError, OSError) as e:
                raise DatabaseConnectionError(_error_detail(e)) from e
            try:
                yield conn.execution_options(
                    isolation_level="AUTOCOMMIT", no_parameters=True, preserve_rowcount=True
                )
            finally:
                conn.close()
        finally:
            engine.dispose()

    def query(self, sql: str) -> List[Dict[str, str]]:
        """
        Run a read statement and return every row as {column: text}.
        Statements that return no result set yield an empty list.
        """
        with self.session() as conn:
            try:
                result = conn.exec_driver_sql(sql)
                try:
                    if not result.returns_rows:
                        return []
                    return map_rows(result.keys(), result)
                finally:
                    result.close()
            except EXECUTION_ERRORS as e:
                raise DatabaseError(_error_detail(e)) from e

    def execute(self, sql: str) -> ExecResult:
        with self.session() as conn:
            try:
                result = conn.exec_driver_sql(sql)
            except EXECUTION_ERRORS as e:
                raise DatabaseError(_error_detail(e)) from e
            try:
                return ExecResult(
                    last_insert_id=_count(lambda: result.lastrowid),
                    rows_affected=_count(lambda: result.rowcount),
                )
            finally:
                result.close()
