import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from task_runner.errors import ConfigurationError, validate_history_size, validate_limit

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SchedulerConfig(BaseModel):
    """
    Validated settings for building a scheduler.
    """
    limit: int = Field(default=3, description="Maximum number of tasks running at the same time")
    history_size: int = Field(default=100, description="Number of finished entries kept for diagnostics")
    log_level: str = Field(default="INFO", description="Log level used by setup_logging")

    @field_validator("limit", mode="before")
    def check_limit(cls, v):
        return validate_limit(v)

    @field_validator("history_size")
    def check_history_size(cls, v: int) -> int:
        return validate_history_size(v)

    @field_validator("log_level")
    def check_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level '{v}'")
        return level

    @classmethod
    def from_env(cls, prefix: str = "TASK_RUNNER_", environ: Optional[Mapping[str, str]] = None) -> "SchedulerConfig":
        """
        Build a config from environment variables such as TASK_RUNNER_LIMIT.

        Variables that are not set fall back to the field defaults.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in ("limit", "history_size"):
            raw = environ.get(f"{prefix}{name.upper()}")
            if raw is None:
                continue
            try:
                values[name] = int(raw)
            except ValueError:
                raise ConfigurationError(f"{prefix}{name.upper()} must be an integer, got '{raw}'")
        log_level = environ.get(f"{prefix}LOG_LEVEL")
        if log_level is not None:
            values["log_level"] = log_level
        return cls(**values)
