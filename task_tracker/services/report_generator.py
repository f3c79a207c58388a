"""Markdown progress report generation.

Builds a report from the current task collection and its analysis, with
optional date-range scoping on task creation time, and writes it to disk.
"""

import logging
from datetime import date, datetime, time, timedelta
from pathlib import Path

from task_tracker.models.analysis import TaskAnalysis, VarianceClass
from task_tracker.models.task import Task, TaskStatus
from task_tracker.services import time_analytics
from task_tracker.services.task_analyzer import TaskAnalyzer, accuracy_summary, variance_trend
from task_tracker.services.task_manager import TaskManager
from task_tracker.services.task_store import StorageError

logger = logging.getLogger(__name__)

# Start of a day; the range ends before the start of the day after end_date
DAY_START = time(0, 0, 0)

PRIORITY_STEP_COUNT = 3

STATUS_SECTIONS = [
    (TaskStatus.COMPLETED, "Completed"),
    (TaskStatus.IN_PROGRESS, "In Progress"),
    (TaskStatus.PENDING, "Pending"),
    (TaskStatus.CANCELLED, "Cancelled"),
]

VARIANCE_LABELS = {
    VarianceClass.ACCURATE: "Accurate",
    VarianceClass.UNDERESTIMATED: "Underestimated",
    VarianceClass.OVERESTIMATED: "Overestimated",
}


def _as_date(value: date | datetime | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def filter_tasks_by_date_range(
    tasks: list[Task],
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[Task]:
    """Keep tasks created within the inclusive day range.

    Args:
        tasks: Tasks to filter.
        start_date: First day included, from 00:00:00.000.
        end_date: Last day included, through its final microsecond.

    Returns:
        Matching tasks in their original order.
    """
    lower = datetime.combine(start_date, DAY_START) if start_date else None
    upper = datetime.combine(end_date + timedelta(days=1), DAY_START) if end_date else None
    return [
        task
        for task in tasks
        if (lower is None or task.created_at >= lower)
        and (upper is None or task.created_at < upper)
    ]


def _minutes(value: float) -> str:
    return f"{value:.0f}"


def _signed(value: float) -> str:
    return f"{value:+.0f}"


class ReportGenerator:
    """Renders and writes Markdown progress reports."""

    def __init__(
        self,
        manager: TaskManager,
        analyzer: TaskAnalyzer,
        default_output_path: str | Path = "task/TaskProgressReport.md",
    ):
        """Initialize the generator.

        Args:
            manager: Source of the task collection.
            analyzer: Computes the statistics rendered in the report.
            default_output_path: Where reports go when no path is given.
        """
        self.manager = manager
        self.analyzer = analyzer
        self.default_output_path = Path(default_output_path)

    @property
    def reports_dir(self) -> Path:
        """Directory that holds the default report."""
        return self.default_output_path.resolve().parent

    def resolve_output_path(self, requested: str | Path | None) -> Path:
        """Resolve a caller-supplied report path inside the reports directory.

        Relative paths are taken from the reports directory. Absolute paths
        are accepted only when they already point inside it.

        Args:
            requested: Path from the caller, or None for the default.

        Returns:
            The resolved destination.

        Raises:
            ValueError: If the path escapes the reports directory.
        """
        if not requested:
            return self.default_output_path

        base = self.reports_dir
        path = (base / Path(requested)).resolve()
        if not path.is_relative_to(base):
            logger.warning(f"Rejected report path outside {base}: {requested}")
            raise ValueError(f"outputPath must be inside the reports directory {base}")
        return path

    def generate_report(self, output_path: str | Path | None = None) -> str:
        """Generate a report over every task."""
        return self.generate_report_with_date_range(output_path)

    def generate_report_with_date_range(
        self,
        output_path: str | Path | None = None,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> str:
        """Generate a report over tasks created within a day range.

        Args:
            output_path: Destination file; parent directories are created.
            start_date: Optional first day (date or YYYY-MM-DD).
            end_date: Optional last day (date or YYYY-MM-DD).

        Returns:
            The Markdown report.

        Raises:
            StorageError: If the tasks cannot be loaded or the report written.
            ValueError: If a date string is not YYYY-MM-DD.
        """
        start = _as_date(start_date)
        end = _as_date(end_date)

        tasks = self.manager.get_all_tasks()
        if start or end:
            tasks = filter_tasks_by_date_range(tasks, start, end)

        analysis = self.analyzer.analyze(tasks)
        report = self.build_report(tasks, analysis, start, end)

        path = Path(output_path) if output_path else self.default_output_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(report, encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing report to {path}: {e}")
            raise StorageError("write report", path, e) from e

        logger.info(f"Wrote progress report for {len(tasks)} tasks to {path}")
        return report

    def build_report(
        self,
        tasks: list[Task],
        analysis: TaskAnalysis,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> str:
        """Render the Markdown document without touching the filesystem."""
        now = self.analyzer.clock()
        lines = ["# Task Progress Report", ""]
        lines += self._date_range_section(start_date, end_date)
        lines += self._overview_section(analysis)
        lines += self._tag_section(analysis)
        lines += self._status_sections(tasks, now)
        lines += self._priority_section(tasks)
        lines += self._start_variance_section(tasks)
        lines += self._recommendations_section(tasks, analysis)
        lines += self._time_estimation_section(analysis)
        return "\n".join(lines).rstrip("\n") + "\n"

    # =========================================================================
    # Sections
    # =========================================================================

    @staticmethod
    def _date_range_section(start_date: date | None, end_date: date | None) -> list[str]:
        if not start_date and not end_date:
            return []
        if start_date and end_date:
            text = f"- Covers tasks created from **{start_date}** to **{end_date}**"
        elif start_date:
            text = f"- Covers tasks created from **{start_date}** onwards"
        else:
            text = f"- Covers tasks created up to **{end_date}**"
        return ["## Report Date Range", "", text, ""]

    @staticmethod
    def _overview_section(analysis: TaskAnalysis) -> list[str]:
        lines = [
            "## Overview",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Total tasks | {analysis.total_tasks} |",
            f"| Completed | {analysis.completed_tasks} |",
            f"| Pending | {analysis.pending_tasks} |",
            f"| In progress | {analysis.in_progress_tasks} |",
            f"| Cancelled | {analysis.cancelled_tasks} |",
            f"| Overdue | {analysis.overdue_tasks} |",
        ]
        if analysis.average_completion_hours is not None:
            hours = analysis.average_completion_hours
            lines.append(
                f"| Average completion time | {hours:.2f} hours (about {hours * 60:.0f} minutes) |"
            )
        if analysis.average_time_difference_minutes is not None:
            lines.append(
                f"| Average time variance | "
                f"{_signed(analysis.average_time_difference_minutes)} minutes |"
            )
        lines.append("")
        return lines

    @staticmethod
    def _tag_section(analysis: TaskAnalysis) -> list[str]:
        lines = ["## Tag Distribution", "", "| Tag | Tasks |", "|-----|-------|"]
        lines += [f"| {tag} | {count} |" for tag, count in analysis.sorted_tags()]
        lines.append("")
        return lines

    def _status_sections(self, tasks: list[Task], now: datetime) -> list[str]:
        lines = ["## Task Status", ""]
        for status, label in STATUS_SECTIONS:
            group = [task for task in tasks if task.status == status]
            if not group:
                continue
            lines += [f"### {label} ({len(group)})", ""]
            for index, task in enumerate(group, start=1):
                lines += self._task_details(task, index, now)
        return lines

    def _task_details(self, task: Task, index: int, now: datetime) -> list[str]:
        done = task.completed_steps()
        open_steps = task.incomplete_steps()

        lines = [
            f"{index}. **{task.title}**",
            f"   - Description: {task.description}",
            f"   - Steps done: {len(done)}/{len(task.steps)} ({task.completion_percentage()}%)",
            f"   - Priority: {task.priority}",
            f"   - Created: {time_analytics.format_date(task.created_at)}",
        ]
        if task.planned_start_date:
            lines.append(f"   - Planned start: {time_analytics.format_date(task.planned_start_date)}")
        if task.actual_start_date:
            lines.append(f"   - Started: {time_analytics.format_date(task.actual_start_date)}")
        if task.actual_completion_date:
            lines.append(
                f"   - Completed: {time_analytics.format_date(task.actual_completion_date)}"
            )
        if task.due_date:
            overdue = " (overdue)" if self.analyzer.is_overdue(task, now) else ""
            lines.append(f"   - Due: {time_analytics.format_date(task.due_date)}{overdue}")
        lines.append(f"   - Tags: {', '.join(task.tags)}")

        if open_steps and task.status != TaskStatus.COMPLETED:
            lines.append("   - Remaining steps:")
            lines += [f"     - {step.description}" for step in open_steps]
        if done and len(done) < len(task.steps):
            lines.append("   - Completed steps:")
            lines += [f"     - {step.description}" for step in done]

        lines.append("")
        return lines

    @staticmethod
    def _priority_section(tasks: list[Task]) -> list[str]:
        candidates = [
            (step, task)
            for task in tasks
            if task.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)
            for step in task.incomplete_steps()
        ]
        candidates.sort(key=lambda pair: pair[0].estimated_time or 0)

        lines = ["## Priority Items", ""]
        if not candidates:
            return lines
        lines += ["Based on current progress, tackle these items first:", ""]
        for index, (step, task) in enumerate(candidates[:PRIORITY_STEP_COUNT], start=1):
            estimate = f" ({_minutes(step.estimated_time)} min)" if step.estimated_time else ""
            lines.append(f"{index}. **{step.description}**{estimate} - from task '{task.title}'")
        lines.append("")
        return lines

    @staticmethod
    def _start_variance_section(tasks: list[Task]) -> list[str]:
        rows = [
            (
                task,
                time_analytics.days_difference(task.planned_start_date, task.actual_start_date),
            )
            for task in tasks
            if task.planned_start_date and task.actual_start_date
        ]
        if not rows:
            return []

        lines = [
            "## Start Date Variance",
            "",
            "| Task | Planned start | Actual start | Offset (days) |",
            "|------|---------------|--------------|---------------|",
        ]
        for task, offset in rows:
            lines.append(
                f"| {task.title} | {time_analytics.format_date(task.planned_start_date)} | "
                f"{time_analytics.format_date(task.actual_start_date)} | {offset:+d} |"
            )
        average = sum(offset for _, offset in rows) / len(rows)
        lines += ["", f"Average start offset: {average:+.1f} days", ""]
        return lines

    @staticmethod
    def _recommendations_section(tasks: list[Task], analysis: TaskAnalysis) -> list[str]:
        recommendations = []
        if analysis.overdue_tasks > 0:
            recommendations.append(
                f"{analysis.overdue_tasks} task(s) are overdue; deal with these first."
            )
        if analysis.pending_tasks > 0:
            recommendations.append(
                f"{analysis.pending_tasks} task(s) are pending; start them in priority order."
            )

        total_steps = sum(len(task.steps) for task in tasks)
        done_steps = sum(len(task.completed_steps()) for task in tasks)
        percentage = int(done_steps / total_steps * 100 + 0.5) if total_steps else 0

        if percentage < 25:
            advice = "The project is in its early stages; draw up a detailed plan."
        elif percentage < 50:
            advice = "Progress is on track; keep following the plan."
        elif percentage < 75:
            advice = "More than half is done; start planning testing and polish."
        else:
            advice = "Nearly finished; prepare final testing and release."
        recommendations.append(f"Overall step completion is about {percentage}%. {advice}")

        lines = ["## Recommendations", ""]
        lines += [f"{index}. {text}" for index, text in enumerate(recommendations, start=1)]
        lines.append("")
        return lines

    @staticmethod
    def _time_estimation_section(analysis: TaskAnalysis) -> list[str]:
        differences = analysis.task_time_differences
        if not differences:
            return []

        lines = [
            "## Time Estimation Analysis",
            "",
            "| Task | Estimated (min) | Actual (min) | Difference (min) | Accuracy |",
            "|------|-----------------|--------------|------------------|----------|",
        ]
        for entry in sorted(differences, key=lambda d: d.difference_minutes, reverse=True):
            lines.append(
                f"| {entry.title} | {_minutes(entry.estimated_minutes)} | "
                f"{_minutes(entry.actual_minutes)} | {_signed(entry.difference_minutes)} | "
                f"{VARIANCE_LABELS[entry.variance_class]} |"
            )

        summary = accuracy_summary(differences)
        lines += [
            "",
            "### Estimation Accuracy",
            "",
            f"- Accurate (within 20%): {summary.accurate} "
            f"({summary.percentage(summary.accurate):.1f}%)",
            f"- Underestimated: {summary.underestimated} "
            f"({summary.percentage(summary.underestimated):.1f}%)",
            f"- Overestimated: {summary.overestimated} "
            f"({summary.percentage(summary.overestimated):.1f}%)",
            "",
        ]

        most_over = max(differences, key=lambda d: d.difference_minutes)
        most_under = min(differences, key=lambda d: d.difference_minutes)
        if most_over.difference_minutes > 0:
            lines.append(
                f"- Most underestimated: **{most_over.title}** "
                f"ran {_minutes(most_over.difference_minutes)} minutes over its estimate"
            )
        if most_under.difference_minutes < 0:
            lines.append(
                f"- Most overestimated: **{most_under.title}** "
                f"finished {_minutes(-most_under.difference_minutes)} minutes early"
            )
        lines.append("")

        trend = variance_trend(differences)
        if trend is not None:
            direction = "improving" if trend.improving else "not improving"
            lines += [
                "### Estimation Trend",
                "",
                f"- Earlier tasks ({trend.first_half_count}): "
                f"actual/estimated ratio {trend.first_half_ratio:.2f}",
                f"- Later tasks ({trend.second_half_count}): "
                f"actual/estimated ratio {trend.second_half_ratio:.2f}",
                f"- Estimation accuracy is {direction}.",
                "",
            ]
        return lines
