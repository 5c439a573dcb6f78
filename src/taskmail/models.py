from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer, field_validator
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from uuid import UUID, uuid4

# dueDate is stored as seconds since this instant (Apple reference date)
REFERENCE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)
_REFERENCE_OFFSET = REFERENCE_EPOCH.timestamp()


def to_reference_timestamp(value: datetime) -> float:
    """Seconds between ``value`` and the reference epoch. Naive values are local time."""
    return value.timestamp() - _REFERENCE_OFFSET


def from_reference_timestamp(seconds: float) -> datetime:
    """Inverse of :func:`to_reference_timestamp`, returning a naive local datetime."""
    return datetime.fromtimestamp(seconds + _REFERENCE_OFFSET)


class TaskStatus(Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"

    def advanced(self) -> 'TaskStatus':
        """Next status in the workflow. Done is terminal and maps to itself."""
        return _NEXT_STATUS.get(self, self)

    @property
    def is_terminal(self) -> bool:
        return self is TaskStatus.DONE

_NEXT_STATUS = {
    TaskStatus.TODO: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.DONE,
}


class Task(BaseModel):
    """A single tracked task.

    ``is_completed`` and ``status`` are independent signals: completing via
    toggle forces Done, but clearing the flag never moves status back and
    advancing to Done never sets the flag.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, frozen=True, description="Opaque unique identifier, never reused")
    title: str = Field(description="Display title of the task")
    is_completed: bool = Field(default=False, alias="isCompleted", description="Legacy completion checkbox")
    due_date: datetime = Field(default_factory=datetime.now, alias="dueDate", description="When the task is due")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Current workflow status")
    recipient_email: str = Field(default="", alias="recipientEmail", description="Where the completion report goes")

    @field_validator('due_date', mode='before')
    @classmethod
    def decode_reference_timestamp(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return from_reference_timestamp(v)
        return v

    @field_validator('due_date')
    @classmethod
    def as_naive_local(cls, v: datetime) -> datetime:
        # Stored dates carry no zone, so keep every due date in naive local time
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @field_serializer('due_date', when_used='json')
    def encode_reference_timestamp(self, value: datetime) -> float:
        return to_reference_timestamp(value)

    @property
    def short_id(self) -> str:
        return self.id.hex[:8]


TaskList = TypeAdapter(List[Task])


class EmailReport(BaseModel):
    """Subject, recipients and body handed to a report sender."""

    subject: str = Field(description="Fixed localized subject line")
    recipients: List[str] = Field(default_factory=list, description="Addresses, passed through unvalidated")
    body: str = Field(description="Plain-text report body")


class SendResult(BaseModel):
    success: bool = Field(description="Whether the report was handed off")
    backend: str = Field(description="Name of the sender backend used")
    target: Optional[str] = Field(default=None, description="URL or file path given to the OS")
    error: Optional[str] = Field(default=None, description="Failure reason when success is False")
