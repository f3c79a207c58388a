"""Time analytics for tasks.

Pure functions deriving work duration, estimates and estimate variance from
a task's timestamps and steps. Nothing here reads the clock.
"""

from datetime import datetime

from task_tracker.models.analysis import TaskTimeInfo, VarianceClass
from task_tracker.models.task import Task

# Variance within this fraction of the estimate counts as accurate
ACCURACY_THRESHOLD = 0.20


def start_reference(task: Task) -> datetime:
    """When work on the task is considered to have begun."""
    return task.actual_start_date or task.created_at


def completion_reference(task: Task) -> datetime | None:
    """When the task was completed, if it has been."""
    return task.actual_completion_date


def work_duration_minutes(task: Task) -> float:
    """Minutes between the start reference and completion.

    Returns 0 for tasks without a completion date.
    """
    if task.actual_completion_date is None:
        return 0
    return (task.actual_completion_date - start_reference(task)).total_seconds() / 60


def work_duration_hours(task: Task) -> float:
    return work_duration_minutes(task) / 60


def estimated_total_minutes(task: Task) -> float:
    """Sum of the positive step estimates, 0 when no step carries one."""
    return sum(
        step.estimated_time
        for step in task.steps
        if step.estimated_time is not None and step.estimated_time > 0
    )


def time_difference_minutes(task: Task) -> float | None:
    """Actual minus estimated work time.

    Positive means the task ran over its estimate. Returns None unless the
    task is completed and has a positive estimate.
    """
    if task.actual_completion_date is None:
        return None
    estimate = estimated_total_minutes(task)
    if estimate <= 0:
        return None
    return work_duration_minutes(task) - estimate


def classify_variance(difference: float, estimate: float) -> VarianceClass:
    """Bucket a variance relative to its estimate.

    Args:
        difference: Actual minus estimated minutes.
        estimate: Estimated minutes, must be positive.

    Returns:
        ACCURATE within the threshold, otherwise UNDERESTIMATED for overruns
        and OVERESTIMATED for early finishes.
    """
    if abs(difference) / estimate <= ACCURACY_THRESHOLD:
        return VarianceClass.ACCURATE
    if difference > 0:
        return VarianceClass.UNDERESTIMATED
    return VarianceClass.OVERESTIMATED


def classify_task(task: Task) -> VarianceClass | None:
    """Variance class for a task, or None when no variance is defined."""
    difference = time_difference_minutes(task)
    if difference is None:
        return None
    return classify_variance(difference, estimated_total_minutes(task))


def format_date(value: datetime | None) -> str | None:
    """Format as YYYY-MM-DD, passing None through."""
    if value is None:
        return None
    return value.strftime("%Y-%m-%d")


def days_difference(first: datetime, second: datetime) -> int:
    """Whole calendar days from first to second.

    Time of day is ignored; the result is positive when second falls on a
    later day.
    """
    return (second.date() - first.date()).days


def get_task_time_info(task: Task) -> TaskTimeInfo:
    """Bundle every time metric for a task."""
    start = start_reference(task)
    completion = completion_reference(task)
    return TaskTimeInfo(
        task_id=task.id,
        start_reference=start,
        completion_reference=completion,
        work_duration_minutes=work_duration_minutes(task),
        work_duration_hours=work_duration_hours(task),
        estimated_total_minutes=estimated_total_minutes(task),
        time_difference_minutes=time_difference_minutes(task),
        variance_class=classify_task(task),
        formatted_start=format_date(start),
        formatted_completion=format_date(completion),
    )
