"""Guidance routes for the task tracker.

- GET /api/guidance - Read the guidance note
- PUT /api/guidance - Replace the guidance note
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from task_tracker.services.guidance_store import GuidanceStore

guidance_bp = Blueprint("guidance", __name__)

logger = logging.getLogger(__name__)


def _get_store() -> GuidanceStore:
    """Get the guidance store from app extensions."""
    return current_app.extensions["guidance_store"]


@guidance_bp.route("/guidance", methods=["GET"])
def read_guidance():
    """Return the current guidance note (empty when none exists)."""
    return jsonify({"success": True, "content": _get_store().read()})


@guidance_bp.route("/guidance", methods=["PUT"])
def write_guidance():
    """Replace the guidance note.

    Request body:
        {"content": "Keep steps under an hour."}
    """
    data = request.get_json(silent=True) or {}
    content = data.get("content") if isinstance(data, dict) else None
    if not isinstance(content, str):
        return jsonify({"success": False, "error": "content must be a string"}), 400

    _get_store().write(content)
    return jsonify({"success": True, "content": content})
