"""Application configuration models with Pydantic validation."""


from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Where the task collection is persisted."""

    tasks_file: str = Field(
        default="task/tasks.json",
        description="Path to the JSON task document",
    )


class ReportConfig(BaseModel):
    """Progress report output configuration."""

    output_path: str = Field(
        default="task/TaskProgressReport.md",
        description="Default Markdown report path",
    )


class GuidanceConfig(BaseModel):
    """Task guidance note configuration."""

    file: str = Field(
        default="task/ai_task_guidance.txt",
        description="Path to the free-text guidance note",
    )


class LoggingConfig(BaseModel):
    """Application logging configuration.

    When `file` is set, logs are also written to a size-rotated file.
    """

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root log level",
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path",
    )
    max_log_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Rotate log when file exceeds this size (MB)",
    )
    max_log_files: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of rotated log files to keep",
    )


class AppConfig(BaseModel):
    """Root application configuration.

    Loaded from config.yaml and validated with Pydantic.
    """

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Task storage settings",
    )
    reports: ReportConfig = Field(
        default_factory=ReportConfig,
        description="Report output settings",
    )
    guidance: GuidanceConfig = Field(
        default_factory=GuidanceConfig,
        description="Guidance note settings",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings",
    )
    port: int = Field(
        default=5050,
        ge=1024,
        le=65535,
        description="Port for the Flask server",
    )
    debug: bool = Field(
        default=False,
        description="Enable Flask debug mode",
    )
