"""
Bounded-Concurrency Task Runner

This module defines the core concepts and components of a task runner that
executes at most a fixed number of tasks at the same time.

Core Concepts:

Task:
    A zero-argument callable supplied by the caller. For the AsyncScheduler it
    usually returns an awaitable; for the ThreadScheduler it is a blocking call.

Entry:
    A TaskEntry is created for every submission. It holds the task, its
    completion handle and diagnostic timestamps, and waits in a FIFO queue
    until a slot is free.

Slot:
    One unit of concurrency. At most `limit` slots are occupied at once; when a
    running task finishes its slot is released and the next queued entry is
    admitted.

Relationships:
    - Each submission creates exactly one Entry, whose handle is resolved or rejected exactly once.
    - Entries are admitted strictly in submission order.
"""

from .backends import *
from .config import SchedulerConfig
from .domain import TaskEntry, EntryStatus, SchedulerStatus
from .errors import (
    SchedulerError,
    ConfigurationError,
    InvalidTaskError,
    SchedulerClosedError,
    CancelledError,
    TaskError,
)
from .log import setup_logging

__all__ = [
    "BaseScheduler",
    "AsyncScheduler",
    "ThreadScheduler",
    "SchedulerConfig",
    "TaskEntry",
    "EntryStatus",
    "SchedulerStatus",
    "SchedulerError",
    "ConfigurationError",
    "InvalidTaskError",
    "SchedulerClosedError",
    "CancelledError",
    "TaskError",
    "setup_logging",
]
