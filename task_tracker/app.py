"""Flask application factory for the task tracker.

This module creates and configures the Flask application, wiring together
the services:

- ConfigService: Configuration loading and migration
- TaskStore: JSON persistence of the task collection
- TaskManager: Task lifecycle, steps and search
- TaskAnalyzer: Aggregate statistics
- ReportGenerator: Markdown progress reports
- GuidanceStore: Free-text guidance note

Usage:
    from task_tracker.app import create_app
    app = create_app()
    app.run(port=5050)
"""

import logging
import os
from collections.abc import Callable
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask, jsonify

from task_tracker.models import AppConfig
from task_tracker.routes import register_blueprints, register_error_handlers
from task_tracker.services import (
    GuidanceStore,
    ReportGenerator,
    TaskAnalyzer,
    TaskManager,
    TaskStore,
    get_config_service,
)
from task_tracker.services.task_manager import new_id

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _load_dotenv() -> None:
    """Load environment variables from .env file if it exists."""
    env_file = Path(".env")
    if env_file.exists():
        with open(env_file) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")
                    if key and key not in os.environ:
                        os.environ[key] = value


# Load environment variables from .env file
_load_dotenv()


def default_config_path() -> str:
    """Config path from TASK_TRACKER_CONFIG, falling back to config.yaml."""
    return os.environ.get("TASK_TRACKER_CONFIG", "config.yaml")


def create_app(
    config_path: str | None = None,
    clock: Callable[[], datetime] = datetime.now,
    id_factory: Callable[[], str] = new_id,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Path to the configuration file.
        clock: Current-time source shared by every service.
        id_factory: Generator for task and step identifiers.

    Returns:
        Configured Flask application.
    """
    config_service = get_config_service(config_path or default_config_path())
    config = config_service.get_config()

    app = Flask(__name__)
    app.config["TESTING"] = False

    # Store services on app for access in routes
    app.extensions["config"] = config
    app.extensions["config_service"] = config_service

    _init_services(app, config, clock, id_factory)

    register_blueprints(app)
    register_error_handlers(app)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


def _init_services(
    app: Flask,
    config: AppConfig,
    clock: Callable[[], datetime],
    id_factory: Callable[[], str],
) -> None:
    """Initialize all services and wire them together.

    Args:
        app: Flask application.
        config: Application configuration.
        clock: Current-time source.
        id_factory: Identifier generator.
    """
    task_store = TaskStore(config.storage.tasks_file)
    app.extensions["task_store"] = task_store

    task_manager = TaskManager(task_store, clock=clock, id_factory=id_factory)
    app.extensions["task_manager"] = task_manager

    task_analyzer = TaskAnalyzer(clock=clock)
    app.extensions["task_analyzer"] = task_analyzer

    app.extensions["report_generator"] = ReportGenerator(
        task_manager,
        task_analyzer,
        default_output_path=config.reports.output_path,
    )
    app.extensions["guidance_store"] = GuidanceStore(config.guidance.file)

    logger.info(f"Services initialized (tasks file: {task_store.tasks_file})")


def configure_logging(config: AppConfig) -> None:
    """Configure root logging from the logging section of the config.

    Args:
        config: Application configuration.
    """
    logging.basicConfig(level=config.logging.level, format=LOG_FORMAT)

    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=config.logging.max_log_size_mb * 1024 * 1024,
            backupCount=config.logging.max_log_files,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)


def main():
    """Run the Flask application."""
    config = get_config_service(default_config_path()).get_config()
    configure_logging(config)

    app = create_app()

    logger.info(f"Starting task tracker on port {config.port}")
    app.run(host="127.0.0.1", port=config.port, debug=config.debug)


if __name__ == "__main__":
    main()
