"""TaskManager - task lifecycle, step management and search.

Every operation performs a full read-modify-write against the TaskStore:
load the collection, mutate it in memory, save it back. Status changes go
through the TaskStateMachine so illegal transitions are rejected before
anything is written.
"""

import contextlib
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, ValidationError, field_validator

from task_tracker.models.filter import TaskFilter
from task_tracker.models.task import CamelModel, Task, TaskStatus, TaskStep, to_local_naive
from task_tracker.services.task_state_machine import (
    StateTransitionError,
    TaskStateMachine,
    TransitionTrigger,
)
from task_tracker.services.task_store import TaskStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def new_id() -> str:
    """Generate a random task or step identifier."""
    return str(uuid.uuid4())


class TaskValidationError(Exception):
    """Raised when task input violates a data-model rule."""


class StepInput(CamelModel):
    """A step as supplied when creating a task or adding a step."""

    description: str
    completed: bool = False
    order: int | None = None
    estimated_time: float | None = None


class TaskUpdate(CamelModel):
    """Fields a generic update may change.

    Identity, creation time, step list and the start/completion stamps are
    not updatable and are ignored if supplied.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    due_date: datetime | None = None
    planned_start_date: datetime | None = None
    priority: int | None = None
    status: TaskStatus | None = None

    @field_validator("due_date", "planned_start_date")
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)


class StepUpdate(CamelModel):
    """Fields of a step that may be merged by an update."""

    model_config = ConfigDict(extra="ignore")

    description: str | None = None
    completed: bool | None = None
    order: int | None = None
    estimated_time: float | None = None


@dataclass
class CompletionResult:
    """Outcome of a quick-complete request."""

    success: bool
    message: str
    task: Task | None = None


def completion_notice(task: Task) -> str | None:
    """Advisory text when every step is done but the task is still open."""
    if task.all_steps_completed() and task.status != TaskStatus.COMPLETED:
        return (
            f"All steps of task '{task.title}' are complete. "
            "Call complete_task to mark the task itself as completed."
        )
    return None


def _coerce(model: type[CamelModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        raise TaskValidationError(str(e)) from e


def _check_text(value: str | None, field: str) -> None:
    if value is None or not value.strip():
        raise TaskValidationError(f"{field} must not be empty")


def _check_priority(priority: int) -> None:
    if isinstance(priority, bool) or not isinstance(priority, int) or not 1 <= priority <= 5:
        raise TaskValidationError(f"priority must be an integer from 1 to 5, got {priority!r}")


def _check_estimate(estimated_time: float | None) -> None:
    if estimated_time is not None and estimated_time <= 0:
        raise TaskValidationError(f"estimatedTime must be positive, got {estimated_time}")


def _in_range(value: datetime, start: datetime | None, end: datetime | None) -> bool:
    if start is not None and value < start:
        return False
    return not (end is not None and value > end)


class TaskManager:
    """Lifecycle operations over the persisted task collection.

    Events are emitted to in-process listeners after each successful save:
    task_created, task_updated, task_started, task_completed, task_deleted
    and all_steps_completed. Subscribe with "*" to receive all of them.
    """

    def __init__(
        self,
        store: TaskStore,
        clock: Clock = datetime.now,
        id_factory: IdFactory = new_id,
        state_machine: TaskStateMachine | None = None,
    ):
        """Initialize the manager.

        Args:
            store: Persistence backend for the task collection.
            clock: Returns the current time; injected for deterministic tests.
            id_factory: Returns fresh task and step identifiers.
            state_machine: Status transition rules.
        """
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.state_machine = state_machine or TaskStateMachine()
        self._listeners: dict[str, list[Callable]] = {}

    # =========================================================================
    # Task CRUD
    # =========================================================================

    def create_task(
        self,
        title: str,
        description: str,
        steps: Iterable[StepInput | dict] | None = None,
        tags: Iterable[str] | None = None,
        due_date: datetime | None = None,
        planned_start_date: datetime | None = None,
        priority: int = 3,
    ) -> Task:
        """Create and persist a new PENDING task.

        Args:
            title: Short name of the task.
            description: What the task involves.
            steps: Step inputs; order defaults to 1-based input position.
            tags: Labels, kept in the given order.
            due_date: Optional deadline.
            planned_start_date: Optional planned start.
            priority: 1 (highest) to 5 (lowest).

        Returns:
            The created task.

        Raises:
            TaskValidationError: On empty text, bad priority or bad step input.
        """
        _check_text(title, "title")
        _check_text(description, "description")
        _check_priority(priority)

        task_id = self.id_factory()
        new_steps = []
        for index, raw_step in enumerate(steps or []):
            step = _coerce(StepInput, raw_step)
            _check_text(step.description, "step description")
            _check_estimate(step.estimated_time)
            new_steps.append(
                TaskStep(
                    id=self.id_factory(),
                    description=step.description,
                    completed=step.completed,
                    order=step.order if step.order is not None else index + 1,
                    estimated_time=step.estimated_time,
                )
            )

        now = self.clock()
        task = Task(
            id=task_id,
            title=title,
            description=description,
            steps=new_steps,
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
            due_date=due_date,
            planned_start_date=planned_start_date,
            status=TaskStatus.PENDING,
            priority=priority,
        )

        tasks = self.store.load()
        tasks.append(task)
        self.store.save(tasks)

        logger.info(f"Created task {task.id}: {task.title}")
        self._emit("task_created", {"task_id": task.id})
        return task

    def get_all_tasks(self) -> list[Task]:
        """Return every task in storage order."""
        return self.store.load()

    def get_task_by_id(self, task_id: str) -> Task | None:
        """Return the task with the given id, or None."""
        return self._find(self.store.load(), task_id)

    def update_task(self, task_id: str, updates: TaskUpdate | dict) -> Task | None:
        """Merge a partial update into a task.

        Completion is never allowed through this path; the only status change
        accepted is cancellation.

        Args:
            task_id: Task to update.
            updates: Partial fields (camelCase or snake_case keys).

        Returns:
            The updated task, or None if no task has that id.

        Raises:
            TaskValidationError: On status COMPLETED or invalid field values.
            StateTransitionError: On any status change other than cancel.
        """
        update = _coerce(TaskUpdate, updates)
        if update.status == TaskStatus.COMPLETED:
            raise TaskValidationError(
                "status cannot be set to completed by update; use complete_task"
            )

        fields = update.model_dump(exclude_unset=True)
        if "title" in fields:
            _check_text(fields["title"], "title")
        if "description" in fields:
            _check_text(fields["description"], "description")
        if "priority" in fields:
            _check_priority(fields["priority"])
        if "tags" in fields and fields["tags"] is None:
            fields["tags"] = []

        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return None

        now = self.clock()
        new_status = fields.pop("status", None)
        if new_status is not None and new_status != task.status:
            if new_status != TaskStatus.CANCELLED:
                raise StateTransitionError(task.status, new_status, TransitionTrigger.CANCEL)
            result = self.state_machine.cancel(task, now)
            logger.info(
                f"Task {task_id} {result.from_state.value} -> {result.to_state.value} "
                f"({result.trigger.value})"
            )

        for key, value in fields.items():
            setattr(task, key, value)
        task.updated_at = now

        self.store.save(tasks)
        logger.info(f"Updated task {task_id}")
        self._emit("task_updated", {"task_id": task_id})
        return task

    def delete_task(self, task_id: str) -> bool:
        """Remove a task. Returns False if no task has that id."""
        tasks = self.store.load()
        remaining = [task for task in tasks if task.id != task_id]
        if len(remaining) == len(tasks):
            return False

        self.store.save(remaining)
        logger.info(f"Deleted task {task_id}")
        self._emit("task_deleted", {"task_id": task_id})
        return True

    # =========================================================================
    # Status changes
    # =========================================================================

    def start_task(self, task_id: str) -> Task | None:
        """Move a PENDING task to IN_PROGRESS and stamp its start time.

        Raises:
            StateTransitionError: If the task is not PENDING.
        """
        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return None

        now = self.clock()
        result = self.state_machine.start(task, now)
        task.updated_at = now

        self.store.save(tasks)
        logger.info(f"Started task {task_id} ({result.from_state.value} -> {result.to_state.value})")
        self._emit("task_started", {"task_id": task_id})
        return task

    def complete_task(self, task_id: str, completion_date: datetime | None = None) -> Task | None:
        """Mark a task COMPLETED.

        Completing an already-completed task refreshes its completion time.

        Args:
            task_id: Task to complete.
            completion_date: Completion time to record; defaults to now.

        Returns:
            The completed task, or None if no task has that id.

        Raises:
            StateTransitionError: If the task was cancelled.
        """
        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return None

        now = self.clock()
        result = self.state_machine.complete(task, to_local_naive(completion_date) or now)
        task.updated_at = now

        self.store.save(tasks)
        logger.info(
            f"Completed task {task_id} ({result.from_state.value} -> {result.to_state.value}) "
            f"at {result.timestamp}"
        )
        self._emit("task_completed", {"task_id": task_id})
        return task

    def quick_complete_task(self, task_id: str) -> CompletionResult:
        """Complete a task and tick off any steps still open."""
        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return CompletionResult(success=False, message=f"Task {task_id} not found")

        now = self.clock()
        try:
            result = self.state_machine.complete(task, now)
        except StateTransitionError as e:
            return CompletionResult(
                success=False, message=f"Could not complete task: {e}", task=task
            )
        task.updated_at = now

        open_steps = task.incomplete_steps()
        for step in open_steps:
            step.completed = True

        self.store.save(tasks)
        self._emit("task_completed", {"task_id": task_id})

        if result.from_state == TaskStatus.COMPLETED:
            message = f"Task '{task.title}' was already completed; completion time refreshed"
        elif open_steps:
            message = f"Completed task '{task.title}' and marked all steps as done"
        else:
            message = f"Completed task '{task.title}'"
        logger.info(message)
        return CompletionResult(success=True, message=message, task=task)

    # =========================================================================
    # Steps
    # =========================================================================

    def add_task_step(
        self,
        task_id: str,
        description: str,
        order: int | None = None,
        estimated_time: float | None = None,
    ) -> Task | None:
        """Append a step, defaulting its order to one past the current count.

        Steps are re-sorted by order afterwards; existing orders are not
        renumbered.

        Raises:
            TaskValidationError: On empty description or non-positive estimate.
        """
        _check_text(description, "step description")
        _check_estimate(estimated_time)

        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return None

        task.steps.append(
            TaskStep(
                id=self.id_factory(),
                description=description,
                completed=False,
                order=order if order is not None else len(task.steps) + 1,
                estimated_time=estimated_time,
            )
        )
        task.steps.sort(key=lambda step: step.order)
        task.updated_at = self.clock()

        self.store.save(tasks)
        logger.info(f"Added step to task {task_id} ({len(task.steps)} steps)")
        self._emit("task_updated", {"task_id": task_id})
        return task

    def update_task_step(
        self, task_id: str, step_id: str, updates: StepUpdate | dict
    ) -> Task | None:
        """Merge changes into one step.

        Never changes the task's status. When the last open step is ticked
        off, an all_steps_completed notice is logged and emitted instead.

        Returns:
            The updated task, or None if the task or step is unknown.
        """
        update = _coerce(StepUpdate, updates)
        fields = update.model_dump(exclude_unset=True)
        if "description" in fields:
            _check_text(fields["description"], "step description")
        if "estimated_time" in fields:
            _check_estimate(fields["estimated_time"])
        if fields.get("completed") is None:
            fields.pop("completed", None)
        if fields.get("order") is None:
            fields.pop("order", None)

        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return None
        step = next((s for s in task.steps if s.id == step_id), None)
        if step is None:
            return None

        for key, value in fields.items():
            setattr(step, key, value)
        task.updated_at = self.clock()

        self.store.save(tasks)
        logger.info(f"Updated step {step_id} of task {task_id}")
        self._emit("task_updated", {"task_id": task_id})
        self._notify_if_all_steps_done(task)
        return task

    def delete_task_step(self, task_id: str, step_id: str) -> Task | None:
        """Remove a step and renumber the rest 1..N in their current order.

        Returns:
            The updated task, or None if the task or step is unknown.
        """
        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return None

        remaining = [step for step in task.steps if step.id != step_id]
        if len(remaining) == len(task.steps):
            return None

        for index, step in enumerate(remaining, start=1):
            step.order = index
        task.steps = remaining
        task.updated_at = self.clock()

        self.store.save(tasks)
        logger.info(f"Deleted step {step_id} from task {task_id}")
        self._emit("task_updated", {"task_id": task_id})
        return task

    def set_all_steps_status(self, task_id: str, completed: bool) -> Task | None:
        """Set every step's completed flag.

        Resetting the steps of a COMPLETED task reopens it as IN_PROGRESS and
        clears its completion date. Ticking every step never completes the
        task; an advisory notice is emitted instead.
        """
        tasks = self.store.load()
        task = self._find(tasks, task_id)
        if task is None:
            return None

        for step in task.steps:
            step.completed = completed

        now = self.clock()
        if not completed and task.status == TaskStatus.COMPLETED:
            result = self.state_machine.reopen(task, now)
            logger.info(
                f"Reopened task {task_id} after resetting its steps "
                f"({result.from_state.value} -> {result.to_state.value})"
            )
        task.updated_at = now

        self.store.save(tasks)
        logger.info(f"Set all steps of task {task_id} to completed={completed}")
        self._emit("task_updated", {"task_id": task_id})
        if completed:
            self._notify_if_all_steps_done(task)
        return task

    # =========================================================================
    # Search
    # =========================================================================

    def search_tasks(self, task_filter: TaskFilter | dict | None = None) -> list[Task]:
        """Return tasks matching every criterion set in the filter.

        Range criteria on due date and planned start only exclude tasks that
        carry that date; tasks without one pass.
        """
        criteria = _coerce(TaskFilter, task_filter)
        return [task for task in self.store.load() if self.matches(task, criteria)]

    @staticmethod
    def matches(task: Task, criteria: TaskFilter) -> bool:
        """Check a single task against a filter."""
        if criteria.status is not None and task.status != criteria.status:
            return False
        if criteria.tags and not all(tag in task.tags for tag in criteria.tags):
            return False
        if criteria.priority is not None and task.priority != criteria.priority:
            return False
        if task.due_date is not None and not _in_range(
            task.due_date, criteria.due_date_from, criteria.due_date_to
        ):
            return False
        if task.planned_start_date is not None and not _in_range(
            task.planned_start_date,
            criteria.planned_start_date_from,
            criteria.planned_start_date_to,
        ):
            return False
        if not _in_range(task.created_at, criteria.created_from, criteria.created_to):
            return False
        if criteria.search_text:
            needle = criteria.search_text.lower()
            haystacks = [task.title, task.description, *(s.description for s in task.steps)]
            if not any(needle in text.lower() for text in haystacks):
                return False
        return True

    # =========================================================================
    # Event System
    # =========================================================================

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Subscribe to an event type.

        Args:
            event_type: The event type to subscribe to, or "*" for all.
            callback: Function to call with the event payload.
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type] = [
                cb for cb in self._listeners[event_type] if cb != callback
            ]

    def _emit(self, event_type: str, data: dict) -> None:
        """Emit an event to all subscribers."""
        data["event_type"] = event_type
        data["timestamp"] = self.clock().isoformat()

        for callback in self._listeners.get(event_type, []):
            with contextlib.suppress(Exception):
                callback(data)

        for callback in self._listeners.get("*", []):
            with contextlib.suppress(Exception):
                callback(data)

    def _notify_if_all_steps_done(self, task: Task) -> None:
        notice = completion_notice(task)
        if notice:
            logger.info(notice)
            self._emit("all_steps_completed", {"task_id": task.id, "message": notice})

    @staticmethod
    def _find(tasks: list[Task], task_id: str) -> Task | None:
        return next((task for task in tasks if task.id == task_id), None)
