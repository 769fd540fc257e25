from typing import Optional


class SchedulerError(Exception):
    """
    Base class for all errors raised by the task runner.
    """


class ConfigurationError(SchedulerError):
    """
    Raised when a scheduler is created or reconfigured with an unusable limit or history size.
    """


class InvalidTaskError(SchedulerError):
    """
    Raised by submit when the given task is not callable without arguments.
    """


class SchedulerClosedError(SchedulerError):
    """
    Raised by submit after the scheduler has been shut down.
    """


class CancelledError(SchedulerError):
    """
    Delivered through the handle of a queued task that was removed before it started.

    Unlike asyncio.CancelledError this is a regular exception, so awaiting a
    cleared handle raises it without cancelling the awaiting task.
    """

    def __init__(self, message: str = "Task cancelled - queue cleared", entry_id: Optional[str] = None):
        super().__init__(message)
        self.entry_id = entry_id


class TaskError(SchedulerError):
    """
    Wraps an exception raised by a task's own execution.
    """

    def __init__(self, entry_id: str, original_error: BaseException):
        super().__init__(f"Task {entry_id} failed: {original_error}")
        self.entry_id = entry_id
        self.original_error = original_error


def validate_limit(limit: int) -> int:
    """
    Check that a concurrency limit is a positive integer and return it.

    Raises:
        ConfigurationError: If the limit is not an int or is less than 1.
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ConfigurationError(f"Concurrency limit must be an integer, got {type(limit).__name__}")
    if limit < 1:
        raise ConfigurationError(f"Concurrency limit must be greater than 0, got {limit}")
    return limit


def validate_history_size(history_size: int) -> int:
    """
    Check that a history size is a non-negative integer and return it.

    Raises:
        ConfigurationError: If the size is not an int or is negative.
    """
    if isinstance(history_size, bool) or not isinstance(history_size, int):
        raise ConfigurationError(f"History size must be an integer, got {type(history_size).__name__}")
    if history_size < 0:
        raise ConfigurationError(f"History size must not be negative, got {history_size}")
    return history_size
