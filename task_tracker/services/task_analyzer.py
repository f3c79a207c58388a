"""Aggregate statistics over a task collection."""

import logging
from collections.abc import Callable
from datetime import datetime

from task_tracker.models.analysis import (
    AccuracySummary,
    TaskAnalysis,
    TaskTimeDifference,
    VarianceClass,
    VarianceTrend,
)
from task_tracker.models.task import Task, TaskStatus
from task_tracker.services import time_analytics

logger = logging.getLogger(__name__)

# Trend analysis needs enough tasks to split into two meaningful halves
MIN_TREND_TASKS = 3


class TaskAnalyzer:
    """Summarizes tasks by status, tags, overdue state and timing accuracy.

    "Now" for overdue checks comes from the injected clock.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock

    def is_overdue(self, task: Task, now: datetime | None = None) -> bool:
        """True when the task has a past due date and is still open."""
        if task.due_date is None:
            return False
        if task.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
            return False
        return task.due_date < (now or self.clock())

    def analyze(self, tasks: list[Task]) -> TaskAnalysis:
        """Compute the full analysis for a task list.

        Args:
            tasks: Tasks to summarize, typically already filtered.

        Returns:
            TaskAnalysis with counts, tag histogram and time metrics.
        """
        now = self.clock()
        analysis = TaskAnalysis(total_tasks=len(tasks))

        for task in tasks:
            if task.status == TaskStatus.COMPLETED:
                analysis.completed_tasks += 1
            elif task.status == TaskStatus.PENDING:
                analysis.pending_tasks += 1
            elif task.status == TaskStatus.IN_PROGRESS:
                analysis.in_progress_tasks += 1
            elif task.status == TaskStatus.CANCELLED:
                analysis.cancelled_tasks += 1

            if self.is_overdue(task, now):
                analysis.overdue_tasks += 1

            for tag in task.tags:
                analysis.tag_distribution[tag] = analysis.tag_distribution.get(tag, 0) + 1

        finished = [task for task in tasks if task.actual_completion_date is not None]
        if finished:
            analysis.average_completion_hours = sum(
                time_analytics.work_duration_hours(task) for task in finished
            ) / len(finished)

        analysis.task_time_differences = self.time_differences(tasks)
        if analysis.task_time_differences:
            analysis.average_time_difference_minutes = sum(
                d.difference_minutes for d in analysis.task_time_differences
            ) / len(analysis.task_time_differences)

        logger.debug(
            f"Analyzed {analysis.total_tasks} tasks "
            f"({len(analysis.task_time_differences)} with estimate variance)"
        )
        return analysis

    @staticmethod
    def time_differences(tasks: list[Task]) -> list[TaskTimeDifference]:
        """Estimate vs. actual entries for tasks where a variance is defined."""
        differences = []
        for task in tasks:
            difference = time_analytics.time_difference_minutes(task)
            if difference is None:
                continue
            estimate = time_analytics.estimated_total_minutes(task)
            differences.append(
                TaskTimeDifference(
                    task_id=task.id,
                    title=task.title,
                    completion_date=task.actual_completion_date,
                    estimated_minutes=estimate,
                    actual_minutes=time_analytics.work_duration_minutes(task),
                    difference_minutes=difference,
                    variance_class=time_analytics.classify_variance(difference, estimate),
                )
            )
        return differences


def accuracy_summary(differences: list[TaskTimeDifference]) -> AccuracySummary:
    """Count entries per variance bucket."""
    summary = AccuracySummary(total=len(differences))
    for entry in differences:
        if entry.variance_class == VarianceClass.ACCURATE:
            summary.accurate += 1
        elif entry.variance_class == VarianceClass.UNDERESTIMATED:
            summary.underestimated += 1
        else:
            summary.overestimated += 1
    return summary


def variance_trend(differences: list[TaskTimeDifference]) -> VarianceTrend | None:
    """Compare earlier and later completions by mean actual/estimated ratio.

    Entries are ordered by completion date and split at ``n // 2``, so an
    odd middle entry lands in the later half. Returns None with fewer than
    three entries.
    """
    if len(differences) < MIN_TREND_TASKS:
        return None

    ordered = sorted(differences, key=lambda d: d.completion_date)
    half = len(ordered) // 2
    first, second = ordered[:half], ordered[half:]
    return VarianceTrend(
        first_half_ratio=sum(d.ratio for d in first) / len(first),
        second_half_ratio=sum(d.ratio for d in second) / len(second),
        first_half_count=len(first),
        second_half_count=len(second),
    )
