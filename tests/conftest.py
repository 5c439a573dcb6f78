"""Shared fixtures and fakes for the taskmail test suite."""

import os
import tempfile

# Keep test runs from writing logs into the user's home directory.
os.environ.setdefault("TASKMAIL_LOG_DIR", tempfile.mkdtemp(prefix="taskmail-logs-"))

import pytest

from taskmail.data import MemoryBlobStore, TaskPersistence
from taskmail.recovery import FileOperationError
from taskmail.store import TaskStore

SETTING_ENV_VARS = (
    "TASKMAIL_CONFIG",
    "TASKMAIL_DATA_DIR",
    "TASKMAIL_DATE_FORMAT",
    "TASKMAIL_MAIL_BACKEND",
    "TASKMAIL_DRAFT_DIR",
)


class RecordingPersistence:
    """Persistence fake that keeps a copy of every saved snapshot."""

    def __init__(self, result=True):
        self.result = result
        self.saves = []

    def save(self, tasks):
        self.saves.append([task.model_copy() for task in tasks])
        return self.result

    def load(self):
        return []


class FailingBlobStore(MemoryBlobStore):
    """Blob store whose reads and/or writes raise I/O errors."""

    def __init__(self, fail_get=False, fail_put=True):
        super().__init__()
        self.fail_get = fail_get
        self.fail_put = fail_put

    def get(self, key):
        if self.fail_get:
            raise FileOperationError("disk unreadable")
        return super().get(key)

    def put(self, key, data):
        if self.fail_put:
            raise FileOperationError("disk full")
        super().put(key, data)


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    for name in SETTING_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def recorder():
    return RecordingPersistence()


@pytest.fixture
def store(recorder):
    return TaskStore(recorder)


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def persistence(blob_store):
    return TaskPersistence(blob_store)
