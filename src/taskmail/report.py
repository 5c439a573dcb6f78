"""Completion report text for finished tasks."""
from datetime import datetime

from taskmail.models import EmailReport, Task

REPORT_SUBJECT = "Laporan Tugas Selesai"
TITLE_LABEL = "Nama Tugas"
DUE_DATE_LABEL = "Tanggal Pengerjaan"
COMPLETED_LABEL = "Tanggal Selesai"

# id_ID short date style, e.g. 10/01/24
SHORT_DATE_FORMAT = "%d/%m/%y"


def format_short_date(value: datetime, date_format: str = SHORT_DATE_FORMAT) -> str:
    return value.strftime(date_format)


def format_report(task: Task, completion_time: datetime, date_format: str = SHORT_DATE_FORMAT) -> EmailReport:
    """Build the report for ``task``.

    ``completion_time`` is supplied by the caller so the output depends only
    on the arguments. The recipient is passed through as-is, empty or not.
    """
    body = "\n".join([
        f"{TITLE_LABEL}: {task.title}",
        f"{DUE_DATE_LABEL}: {format_short_date(task.due_date, date_format)}",
        f"{COMPLETED_LABEL}: {format_short_date(completion_time, date_format)}",
    ])
    return EmailReport(subject=REPORT_SUBJECT, recipients=[task.recipient_email], body=body)
