"""Step routes for the task tracker.

- POST /api/tasks/<id>/steps - Add a step
- PATCH /api/tasks/<id>/steps/<step_id> - Update a step
- DELETE /api/tasks/<id>/steps/<step_id> - Delete a step
- PUT /api/tasks/<id>/steps/status - Set every step's completed flag
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from task_tracker.models.task import CamelModel
from task_tracker.routes.tasks import task_not_found
from task_tracker.services.task_manager import TaskManager, completion_notice

steps_bp = Blueprint("steps", __name__)

logger = logging.getLogger(__name__)


class AddStepRequest(CamelModel):
    """Body of POST /api/tasks/<id>/steps."""

    description: str = ""
    order: int | None = None
    estimated_time: float | None = None


class StepsStatusRequest(CamelModel):
    """Body of PUT /api/tasks/<id>/steps/status."""

    completed: bool


def _get_manager() -> TaskManager:
    """Get the task manager from app extensions."""
    return current_app.extensions["task_manager"]


def _task_payload(task) -> dict:
    payload = {"success": True, "task": task.to_dict()}
    notice = completion_notice(task)
    if notice:
        payload["notice"] = notice
    return payload


@steps_bp.route("/tasks/<task_id>/steps", methods=["POST"])
def add_step(task_id: str):
    """Add a step to a task.

    Request body:
        {"description": "Review", "order": 2, "estimatedTime": 15}

    Without "order" the step goes after the existing ones.
    """
    body = AddStepRequest.model_validate(request.get_json(silent=True) or {})
    task = _get_manager().add_task_step(
        task_id, body.description, order=body.order, estimated_time=body.estimated_time
    )
    if task is None:
        return task_not_found(task_id)
    return jsonify(_task_payload(task)), 201


@steps_bp.route("/tasks/<task_id>/steps/<step_id>", methods=["PATCH"])
def update_step(task_id: str, step_id: str):
    """Update a step's description, completed flag, order or estimate."""
    updates = request.get_json(silent=True) or {}
    task = _get_manager().update_task_step(task_id, step_id, updates)
    if task is None:
        return jsonify(
            {"success": False, "error": f"Task {task_id} or step {step_id} not found"}
        ), 404
    return jsonify(_task_payload(task))


@steps_bp.route("/tasks/<task_id>/steps/<step_id>", methods=["DELETE"])
def delete_step(task_id: str, step_id: str):
    """Delete a step; remaining steps are renumbered from 1."""
    task = _get_manager().delete_task_step(task_id, step_id)
    if task is None:
        return jsonify(
            {"success": False, "error": f"Task {task_id} or step {step_id} not found"}
        ), 404
    return jsonify({"success": True, "task": task.to_dict()})


@steps_bp.route("/tasks/<task_id>/steps/status", methods=["PUT"])
def set_steps_status(task_id: str):
    """Mark every step done or not done.

    Request body:
        {"completed": false}

    Resetting the steps of a completed task reopens it.
    """
    body = StepsStatusRequest.model_validate(request.get_json(silent=True) or {})
    task = _get_manager().set_all_steps_status(task_id, body.completed)
    if task is None:
        return task_not_found(task_id)
    return jsonify(_task_payload(task))
