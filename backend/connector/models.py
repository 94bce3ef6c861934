from enum import Enum
from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, ValidationError

from .errors import MalformedRequest, UnknownTaskType


class TaskMode(str, Enum):
    QUERY = "query"
    EXEC = "exec"


class TaskType(str, Enum):
    MYSQL_QUERY = "mysql.query"
    MYSQL_EXEC = "mysql.exec"
    MSSQL_QUERY = "mssql.query"
    MSSQL_EXEC = "mssql.exec"

    @property
    def backend(self) -> str:
        return self.value.split(".", 1)[0]

    @property
    def mode(self) -> TaskMode:
        return TaskMode(self.value.split(".", 1)[1])


class TaskDbConfig(BaseModel):
    """Connection settings carried inside a task: the driver name and its DSN."""
    type: str = ""
    dsn: str = ""


class Task(BaseModel):
    """
    A unit of work sent by the Digistorm API.

    `config` stays as raw decoded JSON until the task type has been
    resolved; only then is it read as a TaskDbConfig.
    """
    id: str = ""
    type: str = ""
    config: Any = None
    payload: str = ""

    def task_type(self) -> TaskType:
        try:
            return TaskType(self.type)
        except ValueError:
            raise UnknownTaskType(self.type) from None

    def db_config(self) -> TaskDbConfig:
        try:
            return TaskDbConfig.model_validate(self.config)
        except ValidationError as e:
            raise MalformedRequest(f"Unable to parse task config: {e}") from e


class ExecResult(BaseModel):
    last_insert_id: int = 0
    rows_affected: int = 0


Rows = List[Dict[str, str]]
TaskResult = Union[Rows, ExecResult]


class Envelope(BaseModel):
    type: Literal["success", "error"]
    body: Any = None

    @classmethod
    def success(cls, body: Any) -> "Envelope":
        if isinstance(body, BaseModel):
            body = body.model_dump()
        return cls(type="success", body=body)

    @classmethod
    def error(cls, message: str) -> "Envelope":
        return cls(type="error", body=message)
