"""Task routes for the task tracker.

Provides REST API endpoints for the task lifecycle:
- GET /api/tasks - List all tasks
- POST /api/tasks - Create a task
- POST /api/tasks/search - Filter tasks
- GET /api/tasks/<id> - Get one task
- PATCH /api/tasks/<id> - Update task fields
- DELETE /api/tasks/<id> - Delete a task
- POST /api/tasks/<id>/start - Start a pending task
- POST /api/tasks/<id>/complete - Complete a task
- POST /api/tasks/<id>/quick-complete - Complete a task and all its steps
"""

import logging
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from pydantic import Field

from task_tracker.models.filter import TaskFilter
from task_tracker.models.task import CamelModel
from task_tracker.services.task_manager import StepInput, TaskManager

tasks_bp = Blueprint("tasks", __name__)

logger = logging.getLogger(__name__)


class CreateTaskRequest(CamelModel):
    """Body of POST /api/tasks."""

    title: str = ""
    description: str = ""
    steps: list[StepInput] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    due_date: datetime | None = None
    planned_start_date: datetime | None = None
    priority: int = 3


class CompleteTaskRequest(CamelModel):
    """Body of POST /api/tasks/<id>/complete."""

    completion_date: datetime | None = None


def _get_manager() -> TaskManager:
    """Get the task manager from app extensions."""
    return current_app.extensions["task_manager"]


def task_not_found(task_id: str):
    """Standard 404 payload for an unknown task."""
    return jsonify({"success": False, "error": f"Task {task_id} not found"}), 404


@tasks_bp.route("/tasks", methods=["GET"])
def list_tasks():
    """List every task in storage order.

    Returns:
        JSON with tasks array and count.
    """
    tasks = _get_manager().get_all_tasks()
    return jsonify(
        {"success": True, "tasks": [task.to_dict() for task in tasks], "count": len(tasks)}
    )


@tasks_bp.route("/tasks", methods=["POST"])
def create_task():
    """Create a task.

    Request body:
        {
            "title": "Write docs",
            "description": "User guide",
            "steps": [{"description": "Outline", "estimatedTime": 30}],
            "tags": ["docs"],
            "dueDate": "2024-02-01T17:00:00",
            "priority": 2
        }

    Returns:
        JSON with the created task (201).
    """
    body = CreateTaskRequest.model_validate(request.get_json(silent=True) or {})
    task = _get_manager().create_task(
        title=body.title,
        description=body.description,
        steps=body.steps,
        tags=body.tags,
        due_date=body.due_date,
        planned_start_date=body.planned_start_date,
        priority=body.priority,
    )
    return jsonify({"success": True, "task": task.to_dict()}), 201


@tasks_bp.route("/tasks/search", methods=["POST"])
def search_tasks():
    """Filter tasks with conjunctive criteria.

    Request body is a TaskFilter, e.g. {"status": "pending", "tags": ["docs"]}.
    """
    task_filter = TaskFilter.model_validate(request.get_json(silent=True) or {})
    tasks = _get_manager().search_tasks(task_filter)
    return jsonify(
        {"success": True, "tasks": [task.to_dict() for task in tasks], "count": len(tasks)}
    )


@tasks_bp.route("/tasks/<task_id>", methods=["GET"])
def get_task(task_id: str):
    """Get a single task by id."""
    task = _get_manager().get_task_by_id(task_id)
    if task is None:
        return task_not_found(task_id)
    return jsonify({"success": True, "task": task.to_dict()})


@tasks_bp.route("/tasks/<task_id>", methods=["PATCH"])
def update_task(task_id: str):
    """Merge a partial update into a task.

    Setting status to "completed" is rejected; use the complete endpoint.
    """
    updates = request.get_json(silent=True) or {}
    task = _get_manager().update_task(task_id, updates)
    if task is None:
        return task_not_found(task_id)
    return jsonify({"success": True, "task": task.to_dict()})


@tasks_bp.route("/tasks/<task_id>", methods=["DELETE"])
def delete_task(task_id: str):
    """Delete a task."""
    if not _get_manager().delete_task(task_id):
        return task_not_found(task_id)
    return jsonify({"success": True, "task_id": task_id})


@tasks_bp.route("/tasks/<task_id>/start", methods=["POST"])
def start_task(task_id: str):
    """Start a pending task, stamping its actual start date."""
    task = _get_manager().start_task(task_id)
    if task is None:
        return task_not_found(task_id)
    return jsonify({"success": True, "task": task.to_dict()})


@tasks_bp.route("/tasks/<task_id>/complete", methods=["POST"])
def complete_task(task_id: str):
    """Complete a task.

    Request body (optional):
        {"completionDate": "2024-01-15T12:00:00"}
    """
    body = CompleteTaskRequest.model_validate(request.get_json(silent=True) or {})
    task = _get_manager().complete_task(task_id, body.completion_date)
    if task is None:
        return task_not_found(task_id)
    return jsonify({"success": True, "task": task.to_dict()})


@tasks_bp.route("/tasks/<task_id>/quick-complete", methods=["POST"])
def quick_complete_task(task_id: str):
    """Complete a task and mark any open steps as done."""
    result = _get_manager().quick_complete_task(task_id)
    payload = {"success": result.success, "message": result.message}
    if result.task is not None:
        payload["task"] = result.task.to_dict()
    if not result.success:
        payload["error"] = result.message
        return jsonify(payload), 404 if result.task is None else 409
    return jsonify(payload)
