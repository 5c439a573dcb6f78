"""
taskmail - a personal task tracker with emailed completion reports.

Tasks move through a fixed workflow (To Do -> In Progress -> Done), are
saved after every change, and finished tasks can be reported by email.
"""

from .version import VERSION
from .models import (
    TaskStatus,
    Task,
    EmailReport,
    SendResult,
)
from .store import TaskStore
from .data import TaskPersistence, FileBlobStore, MemoryBlobStore
from .report import format_report

__version__ = VERSION

__all__ = [
    "VERSION",
    "TaskStatus",
    "Task",
    "EmailReport",
    "SendResult",
    "TaskStore",
    "TaskPersistence",
    "FileBlobStore",
    "MemoryBlobStore",
    "format_report",
]
