"""
TaskPersistence - saves and restores the whole task list under one blob key.

Failures never reach the caller: a failed save is logged and reported as
False, and a failed load degrades to an empty list. The in-memory list stays
authoritative for the running process.
"""
from datetime import datetime
from typing import List, Sequence

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from taskmail.recovery import CorruptionError, FileOperationError
from taskmail.models import Task, TaskList
from taskmail.logs import get_logger
from .io import BlobStore
from .validate import check_blob

log = get_logger("data")

TASKS_KEY = "tasksKey"

class TaskPersistence:
    def __init__(self, store: BlobStore, key: str = TASKS_KEY):
        self.store = store
        self.key = key

    def encode(self, tasks: Sequence[Task]) -> bytes:
        return TaskList.dump_json(list(tasks), by_alias=True)

    def decode(self, raw: bytes) -> List[Task]:
        data = check_blob(raw)
        try:
            return TaskList.validate_python(data)
        except ValidationError as e:
            raise CorruptionError(f"Stored tasks could not be parsed: {e}") from e

    def save(self, tasks: Sequence[Task]) -> bool:
        try:
            payload = self.encode(tasks)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            log.error(f"Could not encode {len(tasks)} task(s): {e}")
            return False

        try:
            self.store.put(self.key, payload)
        except (FileOperationError, OSError, ValueError) as e:
            log.error(f"Could not save tasks under '{self.key}': {e}")
            return False

        log.debug(f"Saved {len(tasks)} task(s) under '{self.key}'")
        return True

    def load(self) -> List[Task]:
        try:
            raw = self.store.get(self.key)
        except (FileOperationError, OSError, ValueError) as e:
            log.error(f"Could not read tasks under '{self.key}': {e}")
            return []

        if raw is None:
            log.info(f"No saved tasks under '{self.key}', starting empty")
            return []

        try:
            tasks = self.decode(raw)
        except CorruptionError as e:
            log.warning(f"Discarding unreadable tasks: {e}")
            self._quarantine(raw)
            return []

        log.info(f"Loaded {len(tasks)} task(s) from '{self.key}'")
        return tasks

    def _quarantine(self, raw: bytes) -> None:
        """Move an unreadable blob aside so later loads start clean and no save destroys it."""
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        corrupt_key = f"{self.key}.corrupt-{stamp}"
        try:
            self.store.put(corrupt_key, raw)
        except (FileOperationError, OSError, ValueError) as e:
            log.error(f"Could not quarantine unreadable tasks: {e}")
            return

        # Only drop the original once the copy is safely written
        try:
            self.store.delete(self.key)
        except (FileOperationError, OSError) as e:
            log.error(f"Quarantined tasks to '{corrupt_key}' but could not remove '{self.key}': {e}")
            return
        log.warning(f"Unreadable tasks moved to '{corrupt_key}'")
