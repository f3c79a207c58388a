"""Services for the task tracker."""

from task_tracker.services.config_service import (
    ConfigService,
    get_config_service,
    reset_config_service,
)
from task_tracker.services.guidance_store import GuidanceStore
from task_tracker.services.report_generator import ReportGenerator, filter_tasks_by_date_range
from task_tracker.services.task_analyzer import TaskAnalyzer, accuracy_summary, variance_trend
from task_tracker.services.task_manager import (
    CompletionResult,
    StepInput,
    StepUpdate,
    TaskManager,
    TaskUpdate,
    TaskValidationError,
    completion_notice,
)
from task_tracker.services.task_state_machine import (
    VALID_TRANSITIONS,
    StateTransitionError,
    TaskStateMachine,
    TransitionResult,
    TransitionTrigger,
)
from task_tracker.services.task_store import StorageError, TaskStore

__all__ = [
    "CompletionResult",
    "ConfigService",
    "GuidanceStore",
    "ReportGenerator",
    "StateTransitionError",
    "StepInput",
    "StepUpdate",
    "StorageError",
    "TaskAnalyzer",
    "TaskManager",
    "TaskStateMachine",
    "TaskStore",
    "TaskUpdate",
    "TaskValidationError",
    "TransitionResult",
    "TransitionTrigger",
    "VALID_TRANSITIONS",
    "accuracy_summary",
    "completion_notice",
    "filter_tasks_by_date_range",
    "get_config_service",
    "reset_config_service",
    "variance_trend",
]
