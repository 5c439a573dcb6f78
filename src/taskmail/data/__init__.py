"""
Persistence submodule: blob stores, blob validation and the task list adapter.
"""

from .core import TaskPersistence, TASKS_KEY
from .io import BlobStore, FileBlobStore, MemoryBlobStore

__all__ = [
    'TaskPersistence',
    'TASKS_KEY',
    'BlobStore',
    'FileBlobStore',
    'MemoryBlobStore',
]
