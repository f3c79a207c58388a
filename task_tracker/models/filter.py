"""Search filter model for task queries."""

from datetime import datetime

from pydantic import Field, field_validator

from task_tracker.models.task import CamelModel, TaskStatus, to_local_naive


class TaskFilter(CamelModel):
    """Conjunctive search criteria. Unset fields match everything.

    Range bounds are inclusive.
    """

    status: TaskStatus | None = None
    tags: list[str] | None = Field(
        default=None,
        description="Task must carry every one of these tags",
    )
    priority: int | None = Field(default=None, ge=1, le=5)
    due_date_from: datetime | None = None
    due_date_to: datetime | None = None
    planned_start_date_from: datetime | None = None
    planned_start_date_to: datetime | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    search_text: str | None = Field(
        default=None,
        description="Case-insensitive substring of title, description or a step",
    )

    @field_validator(
        "due_date_from",
        "due_date_to",
        "planned_start_date_from",
        "planned_start_date_to",
        "created_from",
        "created_to",
    )
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)
