class TaskError(Exception):
    """Base class for every failure a task can report back to the caller."""


class MalformedRequest(TaskError):
    pass


class UnknownTaskType(TaskError):
    def __init__(self, task_type: str):
        self.task_type = task_type
        super().__init__(f"Unknown task type: {task_type}")


class DatabaseConnectionError(TaskError):
    """The driver could not be loaded or the connection could not be opened."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Database error: {detail}")


class DatabaseError(TaskError):
    """The query or statement itself failed."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Database error: {detail}")


class RowMappingError(TaskError):
    """A single result row could not be converted to text. Never reaches the caller."""


class ConfigError(Exception):
    pass
