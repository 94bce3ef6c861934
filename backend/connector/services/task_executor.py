import logging
from typing import Callable, Dict

from ..models import ExecResult, Rows, Task, TaskMode, TaskResult
from .db import Database

logger = logging.getLogger(__name__)


def run_query(task: Task) -> Rows:
    logger.debug("[TaskExecutor] Querying database: %s", task.payload)
    config = task.db_config()
    return Database(config.type, config.dsn).query(task.payload)


def run_exec(task: Task) -> ExecResult:
    logger.debug("[TaskExecutor] Executing statement: %s", task.payload)
    config = task.db_config()
    return Database(config.type, config.dsn).execute(task.payload)


HANDLERS: Dict[TaskMode, Callable[[Task], TaskResult]] = {
    TaskMode.QUERY: run_query,
    TaskMode.EXEC: run_exec,
}


def execute_task(task: Task) -> TaskResult:
    """
    Run one task to completion.

    The task type is resolved before anything else, so an unknown type
    never opens a connection. Failures are raised as TaskError subclasses.
    """
    task_type = task.task_type()
    logger.info("[TaskExecutor] Running %s task %s", task_type.value, task.id)
    return HANDLERS[task_type.mode](task)
