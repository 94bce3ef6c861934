"""
Turns the (driver, dsn) pair carried by a task into a SQLAlchemy URL.

The Digistorm API sends DSNs in the formats the Go drivers understood,
so besides plain URLs we accept the classic MySQL DSN
(`user:pass@tcp(host:3306)/db?charset=utf8mb4`) and ADO-style SQL Server
strings (`server=host,1433;user id=sa;password=...;database=db`).
"""
import logging
import math
import re
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import parse_qsl, unquote, urlsplit

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from ..errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

MYSQL_DRIVER = "mysql+pymysql"
MSSQL_DRIVER = "mssql+pymssql"
SQLITE_DRIVER = "sqlite"

MYSQL_DEFAULT_ADDR = "127.0.0.1:3306"
MYSQL_DEFAULT_SOCKET = "/tmp/mysql.sock"

_ADDR_RE = re.compile(r"^(?P<proto>[A-Za-z0-9]*)(?:\((?P<addr>[^)]*)\))?$")
_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {"ns": 1e-9, "us": 1e-6, "µs": 1e-6, "ms": 1e-3, "s": 1.0, "m": 60.0, "h": 3600.0}

# MySQL DSN parameters with a PyMySQL counterpart; the rest are Go driver
# options that PyMySQL would reject as unknown keyword arguments.
_MYSQL_PARAMS: Dict[str, Tuple[str, Callable[[str], str]]] = {
    "charset": ("charset", lambda v: v.split(",")[0]),
    "timeout": ("connect_timeout", lambda v: str(_duration_seconds(v))),
    "readTimeout": ("read_timeout", lambda v: str(_duration_seconds(v))),
    "writeTimeout": ("write_timeout", lambda v: str(_duration_seconds(v))),
}

_MSSQL_KEYS = {
    "server": "host",
    "data source": "host",
    "address": "host",
    "addr": "host",
    "network address": "host",
    "port": "port",
    "user id": "username",
    "uid": "username",
    "user": "username",
    "password": "password",
    "pwd": "password",
    "database": "database",
    "initial catalog": "database",
}


def _duration_seconds(value: str) -> int:
    """Convert a Go duration such as `30s` or `1m30s` into whole seconds."""
    if value.isdigit():
        return int(value)
    pos = 0
    total = 0.0
    for m in _DURATION_RE.finditer(value):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(value) or not value:
        raise ValueError(f"invalid duration {value!r}")
    return max(1, math.ceil(total))


def _split_host_port(address: str, default_port: Optional[int]) -> Tuple[Optional[str], Optional[int]]:
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise ValueError(f"invalid address {address!r}")
        host, rest = address[1:end], address[end + 1:]
        port_text = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, port_text = address.split(":")
    else:
        host, port_text = address, ""
    if port_text:
        if not port_text.isdigit():
            raise ValueError(f"invalid port in address {address!r}")
        return host or None, int(port_text)
    return host or None, default_port


def _mysql_url_from_dsn(dsn: str) -> URL:
    slash = dsn.rfind("/")
    if slash < 0:
        raise ValueError("missing the slash separating the database name")
    prefix, rest = dsn[:slash], dsn[slash + 1:]
    dbname, _, params = rest.partition("?")

    userinfo, _, addr_part = prefix.rpartition("@")
    username, _, password = userinfo.partition(":")

    m = _ADDR_RE.match(addr_part)
    if not m:
        raise ValueError(f"invalid network address {addr_part!r}")
    proto = m.group("proto") or "tcp"
    address = m.group("addr") or ""

    query: Dict[str, str] = {}
    host = port = None
    if proto == "unix":
        query["unix_socket"] = address or MYSQL_DEFAULT_SOCKET
    elif proto in ("tcp", "tcp6"):
        host, port = _split_host_port(address or MYSQL_DEFAULT_ADDR, 3306)
    else:
        raise ValueError(f"unsupported network protocol {proto!r}")

    for key, value in parse_qsl(params, keep_blank_values=True):
        if key in _MYSQL_PARAMS:
            name, convert = _MYSQL_PARAMS[key]
            query[name] = convert(value)
        else:
            logger.debug("[DSN] ignoring MySQL DSN parameter %s", key)

    return URL.create(
        MYSQL_DRIVER,
        username=username or None,
        password=password or None,
        host=host,
        port=port,
        database=dbname or None,
        query=query,
    )


def _mysql_url(dsn: str) -> URL:
    if "://" in dsn:
        url = make_url(dsn)
        if url.get_backend_name() != "mysql":
            raise ValueError(f"expected a mysql:// URL, got {url.drivername}://")
        return url.set(drivername=MYSQL_DRIVER)
    return _mysql_url_from_dsn(dsn)


def _mssql_url_from_pairs(dsn: str) -> URL:
    parts: Dict[str, str] = {}
    for item in dsn.split(";"):
        if not item.strip():
            continue
        key, eq, value = item.partition("=")
        if not eq:
            raise ValueError(f"expected key=value, got {item.strip()!r}")
        field = _MSSQL_KEYS.get(key.strip().lower())
        if field:
            parts[field] = value.strip()
        else:
            logger.debug("[DSN] ignoring SQL Server DSN parameter %s", key.strip())

    host = parts.get("host") or "localhost"
    port: Optional[int] = None
    if "," in host:
        host, _, port_text = host.partition(",")
        parts.setdefault("port", port_text.strip())
    if parts.get("port"):
        if not parts["port"].isdigit():
            raise ValueError(f"invalid port {parts['port']!r}")
        port = int(parts["port"])

    return URL.create(
        MSSQL_DRIVER,
        username=parts.get("username") or None,
        password=parts.get("password") or None,
        host=host,
        port=port,
        database=parts.get("database") or None,
    )


def _mssql_url_from_uri(dsn: str) -> URL:
    parts = urlsplit(dsn)
    if parts.scheme not in ("sqlserver", "mssql", "mssql+pymssql"):
        raise ValueError(f"unsupported scheme {parts.scheme!r}")
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    host = parts.hostname or "localhost"
    # sqlserver://host/instance names an instance, mssql://host/db a database
    path = unquote(parts.path.lstrip("/"))
    database = query.get("database") or None
    if path and parts.scheme == "sqlserver":
        host = f"{host}\\{path}"
    elif path:
        database = database or path
    return URL.create(
        MSSQL_DRIVER,
        username=unquote(parts.username) if parts.username else None,
        password=unquote(parts.password) if parts.password else None,
        host=host,
        port=parts.port,
        database=database,
    )


def _mssql_url(dsn: str) -> URL:
    if "://" in dsn:
        return _mssql_url_from_uri(dsn)
    return _mssql_url_from_pairs(dsn)


def _sqlite_url(dsn: str) -> URL:
    if dsn.startswith("sqlite:"):
        return make_url(dsn)
    if dsn.startswith("file:"):
        dsn = dsn[len("file:"):].split("?", 1)[0]
    return URL.create(SQLITE_DRIVER, database=dsn or None)


RESOLVERS: Dict[str, Callable[[str], URL]] = {
    "mysql": _mysql_url,
    "mssql": _mssql_url,
    "sqlserver": _mssql_url,
    "sqlite": _sqlite_url,
    "sqlite3": _sqlite_url,
}


def resolve_url(driver: str, dsn: str) -> URL:
    """
    Return the SQLAlchemy URL for a task's database config.
    Raises DatabaseConnectionError for an unknown driver or unusable DSN.
    """
    resolver = RESOLVERS.get(driver)
    if resolver is None:
        raise DatabaseConnectionError(f"unsupported database driver: {driver!r}")
    try:
        return resolver(dsn)
    except (ValueError, ArgumentError) as e:
        raise DatabaseConnectionError(f"invalid {driver} DSN: {e}") from e
