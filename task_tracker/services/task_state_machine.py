"""Task State Machine for managing task status transitions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from task_tracker.models.task import Task, TaskStatus


class TransitionTrigger(str, Enum):
    """Triggers that cause status transitions."""

    START = "start"
    """Work begins (PENDING → IN_PROGRESS)."""

    COMPLETE = "complete"
    """Work finished (PENDING / IN_PROGRESS / COMPLETED → COMPLETED)."""

    CANCEL = "cancel"
    """Task abandoned via update (PENDING / IN_PROGRESS → CANCELLED)."""

    REOPEN = "reopen"
    """All steps reset on a finished task (COMPLETED → IN_PROGRESS)."""


@dataclass
class TransitionResult:
    """Result of a status transition."""

    success: bool
    from_state: TaskStatus
    to_state: TaskStatus
    trigger: TransitionTrigger
    timestamp: datetime
    error: str | None = None


class StateTransitionError(Exception):
    """Raised when an illegal status transition is attempted."""

    def __init__(self, from_state: TaskStatus, to_state: TaskStatus, trigger: TransitionTrigger):
        self.from_state = from_state
        self.to_state = to_state
        self.trigger = trigger
        super().__init__(
            f"Invalid transition: {from_state.value} → {to_state.value} "
            f"(trigger: {trigger.value})"
        )


# Valid transitions: (from_state, to_state) → required_trigger
VALID_TRANSITIONS: dict[tuple[TaskStatus, TaskStatus], TransitionTrigger] = {
    (TaskStatus.PENDING, TaskStatus.IN_PROGRESS): TransitionTrigger.START,
    (TaskStatus.PENDING, TaskStatus.COMPLETED): TransitionTrigger.COMPLETE,
    (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED): TransitionTrigger.COMPLETE,
    # Completing again refreshes the completion timestamp
    (TaskStatus.COMPLETED, TaskStatus.COMPLETED): TransitionTrigger.COMPLETE,
    (TaskStatus.PENDING, TaskStatus.CANCELLED): TransitionTrigger.CANCEL,
    (TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED): TransitionTrigger.CANCEL,
    (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS): TransitionTrigger.REOPEN,
}


class TaskStateMachine:
    """Manages status transitions for Tasks.

    Timestamps are stamped from the ``at`` argument so callers control
    the clock:
    - START sets ``actual_start_date``
    - COMPLETE sets ``actual_completion_date``
    - REOPEN clears ``actual_completion_date``
    """

    def transition(
        self,
        task: Task,
        to_state: TaskStatus,
        trigger: TransitionTrigger,
        at: datetime,
    ) -> TransitionResult:
        """Attempt to transition a task to a new status.

        Args:
            task: The task to transition (mutated in place).
            to_state: The target status.
            trigger: The trigger causing this transition.
            at: Timestamp recorded for the transition.

        Returns:
            TransitionResult with success status and metadata.

        Raises:
            StateTransitionError: If the transition is not valid.
        """
        from_state = task.status

        key = (from_state, to_state)
        if key not in VALID_TRANSITIONS:
            raise StateTransitionError(from_state, to_state, trigger)

        if trigger != VALID_TRANSITIONS[key]:
            raise StateTransitionError(from_state, to_state, trigger)

        task.status = to_state

        if trigger == TransitionTrigger.START:
            task.actual_start_date = at
        elif trigger == TransitionTrigger.COMPLETE:
            task.actual_completion_date = at
        elif trigger == TransitionTrigger.REOPEN:
            task.actual_completion_date = None

        return TransitionResult(
            success=True,
            from_state=from_state,
            to_state=to_state,
            trigger=trigger,
            timestamp=at,
        )

    def start(self, task: Task, at: datetime) -> TransitionResult:
        """Convenience method: Transition from PENDING to IN_PROGRESS."""
        return self.transition(task, TaskStatus.IN_PROGRESS, TransitionTrigger.START, at)

    def complete(self, task: Task, at: datetime) -> TransitionResult:
        """Convenience method: Transition to COMPLETED.

        Works from PENDING, IN_PROGRESS or COMPLETED.
        """
        return self.transition(task, TaskStatus.COMPLETED, TransitionTrigger.COMPLETE, at)

    def cancel(self, task: Task, at: datetime) -> TransitionResult:
        """Convenience method: Transition to CANCELLED."""
        return self.transition(task, TaskStatus.CANCELLED, TransitionTrigger.CANCEL, at)

    def reopen(self, task: Task, at: datetime) -> TransitionResult:
        """Convenience method: Transition from COMPLETED back to IN_PROGRESS."""
        return self.transition(task, TaskStatus.IN_PROGRESS, TransitionTrigger.REOPEN, at)

