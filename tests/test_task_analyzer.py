"""Tests for TaskAnalyzer and the accuracy/trend helpers."""

from datetime import datetime, timedelta

import pytest

from task_tracker.models.analysis import TaskTimeDifference, VarianceClass
from task_tracker.models.task import Task, TaskStatus, TaskStep
from task_tracker.services.task_analyzer import accuracy_summary, variance_trend

CREATED = datetime(2024, 1, 1, 9, 0)


def make_task(task_id, status=TaskStatus.PENDING, tags=(), due=None, estimate=None, worked=None):
    """Build a task; `worked` minutes after creation sets the completion date."""
    steps = []
    if estimate is not None:
        steps.append(TaskStep(id="s1", description="work", order=1, estimated_time=estimate))
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        description="D",
        steps=steps,
        tags=list(tags),
        created_at=CREATED,
        updated_at=CREATED,
        due_date=due,
        status=status,
        actual_completion_date=CREATED + timedelta(minutes=worked) if worked is not None else None,
    )


def make_difference(task_id, day, estimated, actual) -> TaskTimeDifference:
    return TaskTimeDifference(
        task_id=task_id,
        title=task_id,
        completion_date=datetime(2024, 1, day),
        estimated_minutes=estimated,
        actual_minutes=actual,
        difference_minutes=actual - estimated,
        variance_class=VarianceClass.ACCURATE,
    )


class TestStatusCounts:
    """Tests for per-status counting."""

    def test_counts(self, analyzer):
        tasks = [
            make_task("a"),
            make_task("b", TaskStatus.IN_PROGRESS),
            make_task("c", TaskStatus.COMPLETED, worked=60),
            make_task("d", TaskStatus.CANCELLED),
            make_task("e"),
        ]

        analysis = analyzer.analyze(tasks)

        assert analysis.total_tasks == 5
        assert analysis.pending_tasks == 2
        assert analysis.in_progress_tasks == 1
        assert analysis.completed_tasks == 1
        assert analysis.cancelled_tasks == 1

    def test_empty(self, analyzer):
        analysis = analyzer.analyze([])

        assert analysis.total_tasks == 0
        assert analysis.average_completion_hours is None
        assert analysis.average_time_difference_minutes is None
        assert analysis.task_time_differences == []


class TestOverdue:
    """Tests for overdue detection against the injected clock."""

    def test_open_tasks_past_due(self, analyzer, clock):
        past = clock.now - timedelta(days=1)
        future = clock.now + timedelta(days=1)
        tasks = [
            make_task("a", due=past),
            make_task("b", TaskStatus.IN_PROGRESS, due=past),
            make_task("c", due=future),
            make_task("d", TaskStatus.COMPLETED, due=past),
            make_task("e", TaskStatus.CANCELLED, due=past),
            make_task("f"),
        ]

        assert analyzer.analyze(tasks).overdue_tasks == 2

    def test_depends_on_clock(self, analyzer, clock):
        """The same data becomes overdue once the clock passes the due date."""
        task = make_task("a", due=clock.now + timedelta(hours=1))
        assert analyzer.analyze([task]).overdue_tasks == 0

        clock.advance(hours=2)

        assert analyzer.analyze([task]).overdue_tasks == 1


class TestTagDistribution:
    """Tests for tag counting."""

    def test_counts_and_order(self, analyzer):
        tasks = [
            make_task("a", tags=["ui", "docs"]),
            make_task("b", tags=["bug", "ui"]),
            make_task("c", tags=["docs", "ui"]),
        ]

        analysis = analyzer.analyze(tasks)

        assert analysis.tag_distribution == {"ui": 3, "docs": 2, "bug": 1}
        assert list(analysis.tag_distribution) == ["ui", "docs", "bug"]
        assert analysis.sorted_tags() == [("ui", 3), ("docs", 2), ("bug", 1)]


class TestTimeMetrics:
    """Tests for completion and variance averages."""

    def test_average_completion_hours(self, analyzer):
        tasks = [
            make_task("a", TaskStatus.COMPLETED, worked=60),
            make_task("b", TaskStatus.COMPLETED, worked=180),
            make_task("c"),
        ]
        assert analyzer.analyze(tasks).average_completion_hours == pytest.approx(2.0)

    def test_time_differences_only_where_defined(self, analyzer):
        """Tasks without an estimate or completion are excluded."""
        tasks = [
            make_task("a", TaskStatus.COMPLETED, estimate=60, worked=90),
            make_task("b", TaskStatus.COMPLETED, estimate=100, worked=50),
            make_task("c", TaskStatus.COMPLETED, worked=30),
            make_task("d", estimate=30),
        ]

        analysis = analyzer.analyze(tasks)

        assert [d.task_id for d in analysis.task_time_differences] == ["a", "b"]
        assert analysis.average_time_difference_minutes == pytest.approx(-10)
        a, b = analysis.task_time_differences
        assert a.variance_class == VarianceClass.UNDERESTIMATED
        assert b.variance_class == VarianceClass.OVERESTIMATED
        assert a.ratio == pytest.approx(1.5)


class TestAccuracySummary:
    """Tests for accuracy_summary."""

    def test_buckets(self, analyzer):
        tasks = [
            make_task("a", TaskStatus.COMPLETED, estimate=100, worked=110),
            make_task("b", TaskStatus.COMPLETED, estimate=100, worked=150),
            make_task("c", TaskStatus.COMPLETED, estimate=100, worked=40),
            make_task("d", TaskStatus.COMPLETED, estimate=100, worked=95),
        ]

        summary = accuracy_summary(analyzer.analyze(tasks).task_time_differences)

        assert summary.total == 4
        assert summary.accurate == 2
        assert summary.underestimated == 1
        assert summary.overestimated == 1
        assert summary.percentage(summary.accurate) == 50.0


class TestVarianceTrend:
    """Tests for variance_trend."""

    def test_needs_three_entries(self):
        entries = [make_difference("a", 1, 60, 90), make_difference("b", 2, 60, 60)]
        assert variance_trend(entries) is None

    def test_splits_chronologically(self):
        """Entries are ordered by completion date; the odd middle goes to the later half."""
        entries = [
            make_difference("late", 9, 100, 100),
            make_difference("early", 1, 100, 200),
            make_difference("middle", 5, 100, 120),
        ]

        trend = variance_trend(entries)

        assert trend.first_half_count == 1
        assert trend.second_half_count == 2
        assert trend.first_half_ratio == pytest.approx(2.0)
        assert trend.second_half_ratio == pytest.approx(1.1)
        assert trend.improving is True

    def test_worsening(self):
        entries = [
            make_difference("a", 1, 100, 100),
            make_difference("b", 2, 100, 105),
            make_difference("c", 3, 100, 200),
            make_difference("d", 4, 100, 180),
        ]

        trend = variance_trend(entries)

        assert trend.first_half_ratio == pytest.approx(1.025)
        assert trend.second_half_ratio == pytest.approx(1.9)
        assert trend.improving is False
