"""Tests for time analytics functions."""

from datetime import datetime, timedelta

import pytest

from task_tracker.models.analysis import VarianceClass
from task_tracker.models.task import Task, TaskStatus, TaskStep
from task_tracker.services import time_analytics

CREATED = datetime(2024, 1, 1, 9, 0)


def make_task(estimates=(), started=None, completed_after=None, **overrides) -> Task:
    """Build a task whose completion lands completed_after minutes past its start."""
    steps = [
        TaskStep(id=f"s{i}", description=f"step {i}", order=i, estimated_time=estimate)
        for i, estimate in enumerate(estimates, start=1)
    ]
    start = started or CREATED
    completion = start + timedelta(minutes=completed_after) if completed_after is not None else None
    return Task(
        id="t",
        title="T",
        description="D",
        steps=steps,
        created_at=CREATED,
        updated_at=CREATED,
        actual_start_date=started,
        actual_completion_date=completion,
        status=TaskStatus.COMPLETED if completion else TaskStatus.PENDING,
        **overrides,
    )


class TestReferences:
    """Tests for start and completion references."""

    def test_start_falls_back_to_created(self):
        assert time_analytics.start_reference(make_task()) == CREATED

    def test_start_prefers_actual_start(self):
        started = datetime(2024, 1, 2, 10, 0)
        assert time_analytics.start_reference(make_task(started=started)) == started

    def test_completion_reference(self):
        assert time_analytics.completion_reference(make_task()) is None
        task = make_task(completed_after=60)
        assert time_analytics.completion_reference(task) == CREATED + timedelta(hours=1)


class TestDurations:
    """Tests for work duration and estimate sums."""

    def test_zero_without_completion(self):
        """Work duration is 0 for incomplete tasks."""
        task = make_task(estimates=[30])
        assert time_analytics.work_duration_minutes(task) == 0
        assert time_analytics.work_duration_hours(task) == 0

    def test_duration_from_actual_start(self):
        """Duration counts from the actual start when present."""
        task = make_task(started=datetime(2024, 1, 3, 8, 0), completed_after=150)
        assert time_analytics.work_duration_minutes(task) == 150
        assert time_analytics.work_duration_hours(task) == 2.5

    def test_estimate_sums_positive_values_only(self):
        """Missing estimates are skipped."""
        task = make_task(estimates=[30, None, 45])
        assert time_analytics.estimated_total_minutes(task) == 75

    def test_estimate_zero_without_steps(self):
        assert time_analytics.estimated_total_minutes(make_task()) == 0


class TestTimeDifference:
    """Tests for time_difference_minutes and classification."""

    def test_none_when_incomplete(self):
        assert time_analytics.time_difference_minutes(make_task(estimates=[30])) is None

    def test_none_without_estimate(self):
        assert time_analytics.time_difference_minutes(make_task(completed_after=30)) is None

    def test_accurate_example(self):
        """30+60 estimated, done 95 minutes after start: +5, accurate."""
        task = make_task(
            estimates=[30, 60], started=datetime(2024, 1, 2, 9, 0), completed_after=95
        )

        assert time_analytics.time_difference_minutes(task) == 5
        assert time_analytics.classify_task(task) == VarianceClass.ACCURATE

    def test_negative_when_early(self):
        task = make_task(estimates=[120], completed_after=60)
        assert time_analytics.time_difference_minutes(task) == -60
        assert time_analytics.classify_task(task) == VarianceClass.OVERESTIMATED

    def test_classify_none_without_variance(self):
        assert time_analytics.classify_task(make_task()) is None

    @pytest.mark.parametrize(
        "difference,expected",
        [
            (0, VarianceClass.ACCURATE),
            (20, VarianceClass.ACCURATE),
            (-20, VarianceClass.ACCURATE),
            (21, VarianceClass.UNDERESTIMATED),
            (-21, VarianceClass.OVERESTIMATED),
        ],
    )
    def test_threshold_is_inclusive(self, difference, expected):
        """Exactly 20% of the estimate still counts as accurate."""
        assert time_analytics.classify_variance(difference, 100) == expected


class TestDateHelpers:
    """Tests for format_date and days_difference."""

    def test_format_date(self):
        assert time_analytics.format_date(datetime(2024, 3, 7, 23, 59)) == "2024-03-07"
        assert time_analytics.format_date(None) is None

    def test_days_difference_ignores_time_of_day(self):
        """Late evening to early next morning is one day."""
        assert time_analytics.days_difference(
            datetime(2024, 1, 1, 23, 0), datetime(2024, 1, 2, 1, 0)
        ) == 1

    def test_days_difference_sign(self):
        assert time_analytics.days_difference(
            datetime(2024, 1, 10), datetime(2024, 1, 7)
        ) == -3


class TestTaskTimeInfo:
    """Tests for get_task_time_info."""

    def test_bundles_metrics(self):
        task = make_task(estimates=[60], completed_after=90)

        info = time_analytics.get_task_time_info(task)

        assert info.task_id == "t"
        assert info.start_reference == CREATED
        assert info.estimated_total_minutes == 60
        assert info.work_duration_minutes == 90
        assert info.work_duration_hours == 1.5
        assert info.time_difference_minutes == 30
        assert info.variance_class == VarianceClass.UNDERESTIMATED
        assert info.formatted_start == "2024-01-01"
        assert info.formatted_completion == "2024-01-01"

    def test_incomplete_task(self):
        info = time_analytics.get_task_time_info(make_task(estimates=[60]))

        assert info.completion_reference is None
        assert info.time_difference_minutes is None
        assert info.variance_class is None
        assert info.formatted_completion is None
