"""Report routes for the task tracker.

- POST /api/reports - Generate the Markdown progress report
"""

import logging
from datetime import date

from flask import Blueprint, current_app, jsonify, request

from task_tracker.models.task import CamelModel
from task_tracker.services.report_generator import ReportGenerator

reports_bp = Blueprint("reports", __name__)

logger = logging.getLogger(__name__)


class GenerateReportRequest(CamelModel):
    """Body of POST /api/reports. Every field is optional."""

    output_path: str | None = None
    start_date: date | None = None
    end_date: date | None = None


def _get_generator() -> ReportGenerator:
    """Get the report generator from app extensions."""
    return current_app.extensions["report_generator"]


@reports_bp.route("/reports", methods=["POST"])
def generate_report():
    """Generate the progress report and write it to disk.

    ``outputPath`` is resolved against the directory of the configured
    report path and may not leave it.

    Request body:
        {
            "outputPath": "January.md",
            "startDate": "2024-01-01",
            "endDate": "2024-01-31"
        }

    Returns:
        JSON with the report text and the path it was written to.
    """
    body = GenerateReportRequest.model_validate(request.get_json(silent=True) or {})
    generator = _get_generator()
    output_path = generator.resolve_output_path(body.output_path)
    report = generator.generate_report_with_date_range(
        output_path, body.start_date, body.end_date
    )
    return jsonify(
        {
            "success": True,
            "outputPath": str(output_path),
            "report": report,
        }
    )
