"""Unit tests for TaskStore and the status workflow."""

import pytest
from datetime import datetime
from uuid import uuid4

from taskmail.models import Task, TaskStatus
from taskmail.recovery import InvalidTitleError, TaskIndexError
from taskmail.store import TaskStore

from conftest import RecordingPersistence


def _titles(store):
    return [t.title for t in store.tasks]


class TestAddTask:
    """Test task creation."""

    def test_preserves_insertion_order(self, store):
        for title in ["A", "B", "C", "D"]:
            store.add_task(title, datetime(2024, 1, 10))
        assert _titles(store) == ["A", "B", "C", "D"]

    def test_unique_ids(self, store):
        tasks = [store.add_task(f"task {i}") for i in range(20)]
        assert len({t.id for t in tasks}) == 20

    def test_new_task_fields(self, store):
        due = datetime(2024, 1, 10)
        task = store.add_task("Essay", due)
        assert task.due_date == due
        assert task.status == TaskStatus.TODO
        assert task.is_completed is False
        assert task.recipient_email == ""

    def test_due_date_defaults_to_now(self, store):
        before = datetime.now()
        task = store.add_task("Essay")
        assert before <= task.due_date <= datetime.now()

    @pytest.mark.parametrize("title", ["", "   ", "\t\n"])
    def test_blank_title_rejected(self, store, recorder, title):
        with pytest.raises(InvalidTitleError):
            store.add_task(title)
        assert len(store) == 0
        assert recorder.saves == []

    def test_blank_title_is_value_error(self, store):
        with pytest.raises(ValueError):
            store.add_task(" ")

    def test_saves_after_add(self, store, recorder):
        store.add_task("A")
        store.add_task("B")
        assert [[t.title for t in snap] for snap in recorder.saves] == [["A"], ["A", "B"]]


class TestDeleteTasks:
    """Test positional deletion."""

    @pytest.fixture
    def abc_store(self, store):
        for title in ["A", "B", "C"]:
            store.add_task(title)
        return store

    def test_delete_first(self, abc_store):
        removed = abc_store.delete_tasks({0})
        assert [t.title for t in removed] == ["A"]
        assert _titles(abc_store) == ["B", "C"]

    def test_delete_several_at_once(self, abc_store):
        abc_store.delete_tasks([2, 0])
        assert _titles(abc_store) == ["B"]

    def test_duplicate_positions_collapse(self, abc_store):
        abc_store.delete_tasks([1, 1])
        assert _titles(abc_store) == ["A", "C"]

    def test_empty_input_is_noop(self, abc_store, recorder):
        saves = len(recorder.saves)
        assert abc_store.delete_tasks([]) == []
        assert _titles(abc_store) == ["A", "B", "C"]
        assert len(recorder.saves) == saves

    @pytest.mark.parametrize("positions", [{3}, {-1}, {0, 7}])
    def test_out_of_range_leaves_collection_unchanged(self, abc_store, recorder, positions):
        saves = len(recorder.saves)
        with pytest.raises(TaskIndexError):
            abc_store.delete_tasks(positions)
        assert _titles(abc_store) == ["A", "B", "C"]
        assert len(recorder.saves) == saves

    def test_saves_once_per_delete(self, abc_store, recorder):
        saves = len(recorder.saves)
        abc_store.delete_tasks({0, 1})
        assert len(recorder.saves) == saves + 1
        assert [t.title for t in recorder.saves[-1]] == ["C"]


class TestToggleCompletion:
    """Test the completion checkbox and its one-way link to status."""

    def test_toggle_on_forces_done(self, store):
        task = store.add_task("Essay")
        store.toggle_completion(task.id)
        assert task.is_completed is True
        assert task.status == TaskStatus.DONE

    def test_toggle_off_keeps_done(self, store):
        task = store.add_task("Essay")
        store.toggle_completion(task.id)
        store.toggle_completion(task.id)
        assert task.is_completed is False
        assert task.status == TaskStatus.DONE

    def test_toggle_from_in_progress(self, store):
        task = store.add_task("Essay")
        store.advance_status(task.id)
        store.toggle_completion(task.id)
        assert task.status == TaskStatus.DONE

    def test_unknown_id_is_silent_noop(self, store, recorder):
        store.add_task("Essay")
        saves = len(recorder.saves)
        assert store.toggle_completion(uuid4()) is None
        assert len(recorder.saves) == saves


class TestAdvanceStatus:
    """Test forward-only status transitions."""

    def test_two_advances_reach_done(self, store):
        task = store.add_task("Essay")
        store.advance_status(task.id)
        assert task.status == TaskStatus.IN_PROGRESS
        store.advance_status(task.id)
        assert task.status == TaskStatus.DONE

    def test_third_advance_is_noop(self, store, recorder):
        task = store.add_task("Essay")
        store.advance_status(task.id)
        store.advance_status(task.id)
        saves = len(recorder.saves)
        store.advance_status(task.id)
        assert task.status == TaskStatus.DONE
        assert len(recorder.saves) == saves

    def test_does_not_touch_completion_flag(self, store):
        task = store.add_task("Essay")
        store.advance_status(task.id)
        store.advance_status(task.id)
        assert task.is_completed is False

    def test_unknown_id_is_silent_noop(self, store):
        task = store.add_task("Essay")
        assert store.advance_status(uuid4()) is None
        assert task.status == TaskStatus.TODO


class TestSetRecipientEmail:
    """Test recipient editing."""

    def test_overwrites_without_validation(self, store):
        task = store.add_task("Essay")
        store.set_recipient_email(task.id, "not an address")
        assert task.recipient_email == "not an address"
        store.set_recipient_email(task.id, "")
        assert task.recipient_email == ""

    def test_saves(self, store, recorder):
        task = store.add_task("Essay")
        store.set_recipient_email(task.id, "x@y.com")
        assert recorder.saves[-1][0].recipient_email == "x@y.com"

    def test_unknown_id_is_silent_noop(self, store, recorder):
        store.add_task("Essay")
        saves = len(recorder.saves)
        assert store.set_recipient_email(uuid4(), "x@y.com") is None
        assert len(recorder.saves) == saves


class TestQueries:
    """Test lookups and snapshots."""

    def test_tasks_is_a_snapshot(self, store):
        store.add_task("A")
        snapshot = store.tasks
        store.add_task("B")
        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_get_and_index_of(self, store):
        a = store.add_task("A")
        b = store.add_task("B")
        assert store.get(1) is b
        assert store.index_of(a.id) == 0
        assert store.index_of(uuid4()) is None
        with pytest.raises(TaskIndexError):
            store.get(2)

    def test_find_by_prefix(self, store):
        task = store.add_task("A")
        assert store.find_by_prefix(task.id.hex[:6]) is task
        assert store.find_by_prefix(str(task.id).upper()) is task
        assert store.find_by_prefix("") is None

    def test_find_by_prefix_ambiguous(self):
        tasks = [Task(id="aaaa0000-0000-4000-8000-000000000001", title="A"),
                 Task(id="aaaa0000-0000-4000-8000-000000000002", title="B")]
        store = TaskStore(tasks=tasks)
        assert store.find_by_prefix("aaaa") is None
        assert store.find_by_prefix("aaaa0000000040008000000000000002").title == "B"


class TestPersistenceHook:
    """Test wiring between the store and its persistence object."""

    def test_open_hydrates_from_load(self):
        class Loaded(RecordingPersistence):
            def load(self):
                return [Task(title="Saved")]

        store = TaskStore.open(Loaded())
        assert _titles(store) == ["Saved"]

    def test_failed_save_keeps_memory_state(self):
        store = TaskStore(RecordingPersistence(result=False))
        task = store.add_task("Essay")
        store.advance_status(task.id)
        assert task.status == TaskStatus.IN_PROGRESS

    def test_works_without_persistence(self):
        store = TaskStore()
        store.add_task("Essay")
        assert len(store) == 1

    def test_report_scenario(self, store, recorder):
        task = store.add_task("Report", datetime(2024, 1, 10))
        store.advance_status(task.id)
        store.advance_status(task.id)
        store.set_recipient_email(task.id, "x@y.com")
        saved = recorder.saves[-1][0]
        assert saved.status == TaskStatus.DONE
        assert saved.recipient_email == "x@y.com"
