"""Task and step models with lifecycle states."""

import math
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def to_local_naive(value: datetime | None) -> datetime | None:
    """Convert a timezone-aware datetime to naive local time.

    Naive datetimes are returned unchanged, so comparisons between stored
    timestamps and the local clock never mix aware and naive values.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class TaskStatus(str, Enum):
    """Task lifecycle states.

    State transitions:
    - PENDING → IN_PROGRESS (start)
    - PENDING / IN_PROGRESS → COMPLETED (complete)
    - PENDING / IN_PROGRESS → CANCELLED (cancel via update)
    - COMPLETED → IN_PROGRESS (reopen when all steps are reset)
    """

    PENDING = "pending"
    """Created, work not started."""

    IN_PROGRESS = "in_progress"
    """Work has started."""

    COMPLETED = "completed"
    """Work finished."""

    CANCELLED = "cancelled"
    """Abandoned (terminal)."""


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskStep(CamelModel):
    """An ordered sub-unit of a task."""

    id: str = Field(..., description="Step identifier, unique within its task")
    description: str = Field(..., description="What the step involves")
    completed: bool = Field(default=False, description="Whether the step is done")
    order: int = Field(..., description="Sort key within the task")
    estimated_time: float | None = Field(
        default=None,
        description="Estimated duration in minutes",
    )


class Task(CamelModel):
    """A unit of work tracked through its lifecycle.

    Owns its steps and tags. Timestamps are naive local datetimes in memory
    and ISO-8601 strings on disk.
    """

    id: str = Field(..., description="Unique task identifier")
    title: str
    description: str
    steps: list[TaskStep] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    due_date: datetime | None = None
    planned_start_date: datetime | None = None
    actual_start_date: datetime | None = Field(
        default=None,
        description="Set by the start operation",
    )
    actual_completion_date: datetime | None = Field(
        default=None,
        description="Set by the completion operation",
    )
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    priority: int = Field(
        default=3,
        ge=1,
        le=5,
        description="Priority from 1 (highest) to 5 (lowest)",
    )

    @field_validator(
        "created_at",
        "updated_at",
        "due_date",
        "planned_start_date",
        "actual_start_date",
        "actual_completion_date",
    )
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)

    def completed_steps(self) -> list[TaskStep]:
        """Steps already marked complete."""
        return [step for step in self.steps if step.completed]

    def incomplete_steps(self) -> list[TaskStep]:
        """Steps still open."""
        return [step for step in self.steps if not step.completed]

    def all_steps_completed(self) -> bool:
        """True when the task has steps and every one is complete."""
        return bool(self.steps) and all(step.completed for step in self.steps)

    def completion_percentage(self) -> int:
        """Percentage of completed steps, rounded half up."""
        if not self.steps:
            return 0
        return math.floor(len(self.completed_steps()) / len(self.steps) * 100 + 0.5)

    def to_dict(self) -> dict:
        """Serialize to the camelCase JSON shape used on disk and over the API."""
        return self.model_dump(mode="json", by_alias=True)
