"""Domain models for the task tracker."""

from task_tracker.models.analysis import (
    AccuracySummary,
    TaskAnalysis,
    TaskTimeDifference,
    TaskTimeInfo,
    VarianceClass,
    VarianceTrend,
)
from task_tracker.models.config import (
    AppConfig,
    GuidanceConfig,
    LoggingConfig,
    ReportConfig,
    StorageConfig,
)
from task_tracker.models.filter import TaskFilter
from task_tracker.models.task import Task, TaskStatus, TaskStep

__all__ = [
    # Task
    "Task",
    "TaskStatus",
    "TaskStep",
    "TaskFilter",
    # Analysis
    "AccuracySummary",
    "TaskAnalysis",
    "TaskTimeDifference",
    "TaskTimeInfo",
    "VarianceClass",
    "VarianceTrend",
    # Config
    "AppConfig",
    "GuidanceConfig",
    "LoggingConfig",
    "ReportConfig",
    "StorageConfig",
]
