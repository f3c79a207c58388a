"""Analysis routes for the task tracker.

- POST /api/analysis - Aggregate statistics, optionally over a filtered set
- GET /api/tasks/<id>/time-info - Time metrics for one task
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from task_tracker.models.filter import TaskFilter
from task_tracker.routes.tasks import task_not_found
from task_tracker.services import time_analytics
from task_tracker.services.task_analyzer import TaskAnalyzer, accuracy_summary, variance_trend
from task_tracker.services.task_manager import TaskManager

analysis_bp = Blueprint("analysis", __name__)

logger = logging.getLogger(__name__)


def _get_manager() -> TaskManager:
    """Get the task manager from app extensions."""
    return current_app.extensions["task_manager"]


def _get_analyzer() -> TaskAnalyzer:
    """Get the task analyzer from app extensions."""
    return current_app.extensions["task_analyzer"]


@analysis_bp.route("/analysis", methods=["POST"])
def analyze_tasks():
    """Summarize tasks by status, tags, overdue state and timing accuracy.

    Request body (optional) is a TaskFilter restricting the tasks analysed.

    Returns:
        JSON with the analysis, accuracy buckets and estimation trend.
    """
    data = request.get_json(silent=True)
    manager = _get_manager()
    if data:
        tasks = manager.search_tasks(TaskFilter.model_validate(data))
    else:
        tasks = manager.get_all_tasks()

    analysis = _get_analyzer().analyze(tasks)
    accuracy = accuracy_summary(analysis.task_time_differences)
    trend = variance_trend(analysis.task_time_differences)

    return jsonify(
        {
            "success": True,
            "analysis": analysis.model_dump(mode="json", by_alias=True),
            "accuracy": accuracy.model_dump(mode="json", by_alias=True),
            "trend": trend.model_dump(mode="json", by_alias=True) if trend else None,
        }
    )


@analysis_bp.route("/tasks/<task_id>/time-info", methods=["GET"])
def task_time_info(task_id: str):
    """Time metrics for one task: start, completion, estimate and variance."""
    task = _get_manager().get_task_by_id(task_id)
    if task is None:
        return task_not_found(task_id)
    info = time_analytics.get_task_time_info(task)
    return jsonify({"success": True, "timeInfo": info.model_dump(mode="json", by_alias=True)})
