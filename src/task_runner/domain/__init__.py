from .entry import TaskEntry, EntryStatus
from .status import SchedulerStatus

__all__ = ["TaskEntry", "EntryStatus", "SchedulerStatus"]
