"""Derived analytics models: per-task time info and collection summaries."""

from datetime import datetime
from enum import Enum

from pydantic import Field, computed_field

from task_tracker.models.task import CamelModel


class VarianceClass(str, Enum):
    """How closely actual work time matched the estimate."""

    ACCURATE = "accurate"
    """Within the accuracy threshold of the estimate."""

    UNDERESTIMATED = "underestimated"
    """Took longer than estimated."""

    OVERESTIMATED = "overestimated"
    """Took less time than estimated."""


class TaskTimeInfo(CamelModel):
    """Time metrics derived from a single task."""

    task_id: str
    start_reference: datetime
    completion_reference: datetime | None = None
    work_duration_minutes: float = 0
    work_duration_hours: float = 0
    estimated_total_minutes: float = 0
    time_difference_minutes: float | None = None
    variance_class: VarianceClass | None = None
    formatted_start: str | None = None
    formatted_completion: str | None = None


class TaskTimeDifference(CamelModel):
    """Estimate vs. actual comparison for one completed task."""

    task_id: str
    title: str
    completion_date: datetime
    estimated_minutes: float
    actual_minutes: float
    difference_minutes: float
    variance_class: VarianceClass

    @property
    def ratio(self) -> float:
        """Actual over estimated work time."""
        return self.actual_minutes / self.estimated_minutes


class TaskAnalysis(CamelModel):
    """Aggregate statistics over a task collection."""

    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    cancelled_tasks: int = 0
    overdue_tasks: int = 0
    tag_distribution: dict[str, int] = Field(
        default_factory=dict,
        description="Tag counts in first-seen order",
    )
    average_completion_hours: float | None = Field(
        default=None,
        description="Mean work duration over tasks with a completion date",
    )
    average_time_difference_minutes: float | None = None
    task_time_differences: list[TaskTimeDifference] = Field(default_factory=list)

    def sorted_tags(self) -> list[tuple[str, int]]:
        """Tags by count descending; ties keep first-seen order."""
        return sorted(self.tag_distribution.items(), key=lambda item: -item[1])


class AccuracySummary(CamelModel):
    """Counts and percentages per variance bucket."""

    total: int = 0
    accurate: int = 0
    underestimated: int = 0
    overestimated: int = 0

    def percentage(self, count: int) -> float:
        if not self.total:
            return 0.0
        return count / self.total * 100


class VarianceTrend(CamelModel):
    """Earlier vs. later completed tasks by mean actual/estimated ratio."""

    first_half_ratio: float
    second_half_ratio: float
    first_half_count: int
    second_half_count: int

    @computed_field
    @property
    def improving(self) -> bool:
        """True when the later half sits closer to a ratio of 1.0."""
        return abs(self.second_half_ratio - 1) < abs(self.first_half_ratio - 1)
