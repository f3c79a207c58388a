"""Flask routes for the task tracker."""

import logging

from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from task_tracker.routes.analysis import analysis_bp
from task_tracker.routes.config import config_bp
from task_tracker.routes.guidance import guidance_bp
from task_tracker.routes.reports import reports_bp
from task_tracker.routes.steps import steps_bp
from task_tracker.routes.tasks import tasks_bp
from task_tracker.services.task_manager import TaskValidationError
from task_tracker.services.task_state_machine import StateTransitionError
from task_tracker.services.task_store import StorageError

logger = logging.getLogger(__name__)

__all__ = [
    "analysis_bp",
    "config_bp",
    "guidance_bp",
    "reports_bp",
    "steps_bp",
    "tasks_bp",
]


def register_blueprints(app):
    """Register all blueprints with the Flask app.

    Args:
        app: The Flask application instance.
    """
    app.register_blueprint(tasks_bp, url_prefix="/api")
    app.register_blueprint(steps_bp, url_prefix="/api")
    app.register_blueprint(analysis_bp, url_prefix="/api")
    app.register_blueprint(reports_bp, url_prefix="/api")
    app.register_blueprint(guidance_bp, url_prefix="/api")
    app.register_blueprint(config_bp, url_prefix="/api")


def register_error_handlers(app):
    """Translate service exceptions into JSON failure responses.

    Args:
        app: The Flask application instance.
    """

    def failure(message: str, status: int):
        return jsonify({"success": False, "error": message}), status

    @app.errorhandler(TaskValidationError)
    def handle_task_validation(e):
        return failure(str(e), 400)

    @app.errorhandler(ValidationError)
    def handle_request_validation(e):
        return failure(f"Invalid request: {e}", 400)

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        return failure(str(e), 400)

    @app.errorhandler(StateTransitionError)
    def handle_state_transition(e):
        return failure(str(e), 409)

    @app.errorhandler(StorageError)
    def handle_storage(e):
        logger.error(f"Storage failure: {e}")
        return failure(str(e), 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return failure(e.description, e.code)
        logger.exception(f"Unhandled error: {e}")
        return failure(f"Internal error: {e}", 500)
