from .base import BaseScheduler
from .event_loop import AsyncScheduler
from .thread_pool import ThreadScheduler

__all__ = ["BaseScheduler", "AsyncScheduler", "ThreadScheduler"]
