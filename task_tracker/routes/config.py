"""Config routes for the task tracker.

Provides REST API endpoints for configuration management:
- GET /api/config - Get current configuration
- POST /api/config - Update configuration
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from task_tracker.models.config import AppConfig
from task_tracker.services.config_service import ConfigService

config_bp = Blueprint("config", __name__)

logger = logging.getLogger(__name__)


def _get_config_service() -> ConfigService:
    """Get the config service from app extensions."""
    return current_app.extensions.get("config_service")


def _get_config() -> AppConfig:
    """Get the current config from app extensions."""
    return current_app.extensions.get("config")


@config_bp.route("/config", methods=["GET"])
def get_config():
    """Get the current configuration.

    Returns:
        JSON object with all configuration values.
    """
    config = _get_config()
    if not config:
        return jsonify({"success": False, "error": "Config not loaded"}), 500

    return jsonify(config.model_dump(mode="json"))


@config_bp.route("/config", methods=["POST"])
def update_config():
    """Update the configuration.

    Only provided top-level sections are replaced; others remain unchanged.
    Path changes take effect on the next start.

    Request body:
        {
            "storage": {"tasks_file": "task/tasks.json"},
            "logging": {"level": "DEBUG"},
            "port": 5050
        }

    Returns:
        JSON object with the updated configuration.
    """
    config_service = _get_config_service()
    if not config_service:
        return jsonify({"success": False, "error": "Config service not available"}), 500

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Request body must be a JSON object"}), 400

    updated_data = config_service.get_config().model_dump(mode="json")
    for key, value in data.items():
        if key not in updated_data:
            continue
        if isinstance(updated_data[key], dict) and isinstance(value, dict):
            updated_data[key] = {**updated_data[key], **value}
        else:
            updated_data[key] = value

    try:
        new_config = AppConfig(**updated_data)
    except ValidationError as e:
        logger.warning(f"Config validation error: {e}")
        return jsonify({"success": False, "error": f"Invalid configuration: {e}"}), 400

    if not config_service.save(new_config):
        return jsonify({"success": False, "error": "Failed to save configuration"}), 500

    config_service.set_config(new_config)
    current_app.extensions["config"] = new_config

    logger.info(f"Configuration updated: {sorted(data)}")

    return jsonify(new_config.model_dump(mode="json"))
