"""
TaskStore - the ordered task list and its status workflow.

Statuses only move forward: To Do -> In Progress -> Done. Every mutation
calls the persistence hook's ``save`` before returning. Operations that name
an unknown task id do nothing and return None.
"""
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple
from uuid import UUID

from taskmail.models import Task, TaskStatus
from taskmail.recovery import InvalidTitleError, TaskIndexError
from taskmail.logs import get_logger

log = get_logger("store")


class TaskSaver(Protocol):
    def save(self, tasks: Sequence[Task]) -> bool: ...


class TaskStore:
    def __init__(self, persistence: Optional[TaskSaver] = None, tasks: Optional[Iterable[Task]] = None):
        self.persistence = persistence
        self._tasks: List[Task] = list(tasks or [])

    @classmethod
    def open(cls, persistence) -> 'TaskStore':
        """Create a store hydrated from ``persistence.load()``."""
        return cls(persistence, persistence.load())

    # -------------------- queries --------------------
    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(tuple(self._tasks))

    def get(self, position: int) -> Task:
        if not 0 <= position < len(self._tasks):
            raise TaskIndexError(f"No task at position {position} (have {len(self._tasks)})")
        return self._tasks[position]

    def index_of(self, task_id: UUID) -> Optional[int]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return None

    def find(self, task_id: UUID) -> Optional[Task]:
        index = self.index_of(task_id)
        return None if index is None else self._tasks[index]

    def find_by_prefix(self, prefix: str) -> Optional[Task]:
        """Task whose id starts with ``prefix``; None if missing or ambiguous."""
        needle = prefix.lower().replace("-", "")
        if not needle:
            return None
        matches = [t for t in self._tasks if t.id.hex.startswith(needle)]
        if len(matches) != 1:
            return None
        return matches[0]

    # -------------------- mutations --------------------
    def add_task(self, title: str, due_date: Optional[datetime] = None) -> Task:
        if not title or not title.strip():
            raise InvalidTitleError("Task title must not be empty")

        task = Task(title=title, due_date=due_date or datetime.now())
        self._tasks.append(task)
        log.info(f"Added task {task.short_id} '{title}'")
        self._commit()
        return task

    def delete_tasks(self, positions: Iterable[int]) -> List[Task]:
        """Remove the tasks at ``positions`` in one step.

        All positions are checked first; if any is out of range nothing is
        removed and TaskIndexError is raised.
        """
        wanted = set(positions)
        if not wanted:
            return []

        bad = sorted(p for p in wanted if not 0 <= p < len(self._tasks))
        if bad:
            raise TaskIndexError(f"Positions out of range: {bad} (have {len(self._tasks)})")

        removed = [t for i, t in enumerate(self._tasks) if i in wanted]
        self._tasks = [t for i, t in enumerate(self._tasks) if i not in wanted]
        log.info(f"Deleted {len(removed)} task(s) at positions {sorted(wanted)}")
        self._commit()
        return removed

    def toggle_completion(self, task_id: UUID) -> Optional[Task]:
        task = self._lookup(task_id)
        if task is None:
            return None

        task.is_completed = not task.is_completed
        # One-way coupling: unticking leaves status alone
        if task.is_completed:
            task.status = TaskStatus.DONE
        log.info(f"Task {task.short_id} completed={task.is_completed} status={task.status.value}")
        self._commit()
        return task

    def advance_status(self, task_id: UUID) -> Optional[Task]:
        task = self._lookup(task_id)
        if task is None:
            return None
        if task.status.is_terminal:
            log.debug(f"Task {task.short_id} already {task.status.value}")
            return task

        previous = task.status
        task.status = previous.advanced()
        log.info(f"Task {task.short_id} moved {previous.value} -> {task.status.value}")
        self._commit()
        return task

    def set_recipient_email(self, task_id: UUID, email: str) -> Optional[Task]:
        task = self._lookup(task_id)
        if task is None:
            return None

        task.recipient_email = email
        log.info(f"Task {task.short_id} recipient set to '{email}'")
        self._commit()
        return task

    # -------------------- internals --------------------
    def _lookup(self, task_id: UUID) -> Optional[Task]:
        task = self.find(task_id)
        if task is None:
            log.debug(f"Ignoring operation on unknown task id {task_id}")
        return task

    def _commit(self) -> None:
        if self.persistence is None:
            return
        if not self.persistence.save(self._tasks):
            log.warning("Changes kept in memory only; saving failed")
