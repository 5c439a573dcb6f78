"""
Command Line Interface for taskmail.

TASK arguments accept either a list number (as shown by ``taskmail list``)
or a prefix of the task id.
"""

import click
from datetime import datetime
from pathlib import Path
from typing import Optional

from .version import VERSION
from .config import Settings, load_settings
from .data import FileBlobStore, TaskPersistence, TASKS_KEY
from .data.validate import check_blob
from .mail import BACKENDS, get_sender
from .models import Task, TaskStatus
from .recovery import TaskMailError, TaskIndexError
from .report import format_report, format_short_date
from .store import TaskStore


STATUS_ICONS = {
    TaskStatus.TODO: "📝",
    TaskStatus.IN_PROGRESS: "🔧",
    TaskStatus.DONE: "✅",
}


class AppContext:
    """Settings plus a task store opened on first use."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.blob_store = FileBlobStore(settings.data_dir)
        self._store: Optional[TaskStore] = None

    @property
    def store(self) -> TaskStore:
        if self._store is None:
            self._store = TaskStore.open(TaskPersistence(self.blob_store))
        return self._store


def _fail(message: str):
    click.echo(f"❌ {message}", err=True)
    click.get_current_context().exit(1)


def _resolve(store: TaskStore, ref: str) -> Task:
    # List numbers win; anything else (including out-of-range digits) is an id prefix
    if ref.isdecimal() and 1 <= int(ref) <= len(store):
        return store.get(int(ref) - 1)
    task = store.find_by_prefix(ref)
    if task is None:
        _fail(f"No single task matches '{ref}' (there are {len(store)} tasks)")
    return task


def _describe(task: Task, date_format: str) -> str:
    mark = "x" if task.is_completed else " "
    due = format_short_date(task.due_date, date_format)
    return f"[{mark}] {STATUS_ICONS[task.status]} {task.status.value:<11} {task.short_id}  {task.title}  (due {due})"


@click.group()
@click.version_option(version=VERSION, prog_name="taskmail")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Path to a YAML config file')
@click.pass_context
def main(ctx, config_path):
    """
    taskmail - a personal task tracker with emailed completion reports.

    Tasks move To Do -> In Progress -> Done; finished tasks can be reported
    by email.
    """
    try:
        settings = load_settings(config_path)
    except TaskMailError as e:
        _fail(str(e))
    ctx.obj = AppContext(settings)


@main.command()
@click.argument('title')
@click.option('--due', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Due date (YYYY-MM-DD), defaults to now')
@click.pass_obj
def add(app: AppContext, title, due):
    """Add a new task."""
    try:
        task = app.store.add_task(title, due)
    except TaskMailError as e:
        _fail(str(e))
    click.echo(f"➕ Added {task.short_id}: {task.title}")


@main.command(name='list')
@click.pass_obj
def list_tasks(app: AppContext):
    """Show all tasks in order."""
    store = app.store
    if not len(store):
        click.echo("📭 No tasks yet")
        click.echo("💡 Use 'taskmail add TITLE' to create one")
        return
    for number, task in enumerate(store, start=1):
        click.echo(f"{number:>3}. {_describe(task, app.settings.date_format)}")


@main.command()
@click.argument('numbers', nargs=-1, type=int, required=True)
@click.pass_obj
def delete(app: AppContext, numbers):
    """Delete tasks by list number."""
    try:
        removed = app.store.delete_tasks(n - 1 for n in numbers)
    except TaskIndexError as e:
        _fail(f"Nothing deleted: {e}")
    for task in removed:
        click.echo(f"🗑️  Deleted {task.short_id}: {task.title}")


@main.command()
@click.argument('task_ref')
@click.pass_obj
def toggle(app: AppContext, task_ref):
    """Tick or untick a task's completion box."""
    task = _resolve(app.store, task_ref)
    app.store.toggle_completion(task.id)
    click.echo(_describe(task, app.settings.date_format))


@main.command()
@click.argument('task_ref')
@click.pass_obj
def advance(app: AppContext, task_ref):
    """Move a task to its next status."""
    task = _resolve(app.store, task_ref)
    if task.status.is_terminal:
        click.echo(f"💤 {task.short_id} is already {task.status.value}")
        return
    app.store.advance_status(task.id)
    click.echo(_describe(task, app.settings.date_format))


@main.command()
@click.argument('task_ref')
@click.argument('address')
@click.pass_obj
def email(app: AppContext, task_ref, address):
    """Set where a finished task's report is sent."""
    task = _resolve(app.store, task_ref)
    if task.status is not TaskStatus.DONE:
        _fail(f"{task.short_id} is {task.status.value}; the recipient can be set once it is Done")
    app.store.set_recipient_email(task.id, address)
    click.echo(f"📧 Report for {task.short_id} will go to {address or '(nobody)'}")


@main.command()
@click.argument('task_ref')
@click.option('--backend', type=click.Choice(BACKENDS), default=None,
              help='Override the configured mail backend')
@click.pass_obj
def send(app: AppContext, task_ref, backend):
    """Email the completion report for a finished task."""
    task = _resolve(app.store, task_ref)
    if task.status is not TaskStatus.DONE:
        _fail(f"{task.short_id} is {task.status.value}; only Done tasks can be reported")

    settings = app.settings
    if backend:
        settings = settings.model_copy(update={'mail_backend': backend})
    if not task.recipient_email:
        click.echo(f"⚠️  No recipient set for {task.short_id}; use 'taskmail email' to add one")

    report = format_report(task, datetime.now(), settings.date_format)
    result = get_sender(settings).send(report)
    if not result.success:
        _fail(f"Report not sent: {result.error}")
    click.echo(f"📤 Report for {task.short_id} handed to {result.backend}")
    if result.target:
        click.echo(f"   {result.target}")


@main.command()
@click.pass_obj
def check(app: AppContext):
    """Validate the saved task data without loading it."""
    click.echo(f"📁 Data: {app.blob_store.path_for(TASKS_KEY)}")
    try:
        raw = app.blob_store.get(TASKS_KEY)
        if raw is None:
            click.echo("📭 No saved tasks")
            return
        data = check_blob(raw)
    except TaskMailError as e:
        _fail(str(e))
    click.echo(f"✅ {len(data)} task(s) valid")


if __name__ == "__main__":
    main()
