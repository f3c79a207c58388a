"""Configuration loading and migration service.

Handles loading config.yaml and migrating legacy flat keys to the nested schema.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from task_tracker.models.config import AppConfig

logger = logging.getLogger(__name__)

# Legacy flat key -> (section, field)
LEGACY_KEYS: dict[str, tuple[str, str]] = {
    "tasks_file": ("storage", "tasks_file"),
    "report_path": ("reports", "output_path"),
    "guidance_file": ("guidance", "file"),
    "log_level": ("logging", "level"),
    "log_file": ("logging", "file"),
}


class ConfigService:
    """Service for loading and managing application configuration.

    Handles:
    - Loading config from config.yaml
    - Validating against Pydantic schema
    - Migrating legacy flat keys
    - Saving updated config
    """

    def __init__(self, config_path: str | Path = "config.yaml"):
        """Initialize the config service.

        Args:
            config_path: Path to the config file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load and validate configuration.

        Missing, unreadable or invalid files fall back to defaults.

        Returns:
            Validated AppConfig instance.
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            self._config = AppConfig()
            return self._config

        try:
            with open(self.config_path) as f:
                raw_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error reading config file: {e}, using defaults")
            self._config = AppConfig()
            return self._config

        if not isinstance(raw_config, dict):
            logger.warning("Config file is not a mapping, using defaults")
            self._config = AppConfig()
            return self._config

        migrated = self._migrate_config(raw_config)

        try:
            self._config = AppConfig(**migrated)
        except ValidationError as e:
            logger.warning(f"Config validation error: {e}, using defaults")
            self._config = AppConfig()

        return self._config

    def get_config(self) -> AppConfig:
        """Get the current configuration.

        Loads from disk if not already loaded.
        """
        if self._config is None:
            return self.load()
        return self._config

    def set_config(self, config: AppConfig) -> None:
        """Replace the cached configuration without touching disk."""
        self._config = config

    def reload(self) -> AppConfig:
        """Force reload configuration from disk."""
        self._config = None
        return self.load()

    def save(self, config: AppConfig | None = None) -> bool:
        """Save configuration to disk.

        Args:
            config: Config to save. Uses current config if not provided.

        Returns:
            True if save succeeded.
        """
        config = config or self._config
        if config is None:
            return False

        try:
            config_dict = config.model_dump(mode="json")
            with open(self.config_path, "w") as f:
                yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False

    def _migrate_config(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Migrate legacy flat keys into their nested sections.

        Nested values win over legacy keys when both are present.

        Args:
            raw: Raw config dictionary from YAML.

        Returns:
            Migrated config dictionary.
        """
        migrated: dict[str, Any] = {
            key: value for key, value in raw.items() if key not in LEGACY_KEYS
        }

        for legacy_key, (section, field) in LEGACY_KEYS.items():
            if legacy_key not in raw:
                continue
            target = migrated.setdefault(section, {})
            if not isinstance(target, dict):
                continue
            if field not in target:
                target[field] = raw[legacy_key]
                logger.info(f"Migrated legacy config key {legacy_key} -> {section}.{field}")

        return migrated


# Module-level singleton
_config_service: ConfigService | None = None


def get_config_service(config_path: str | Path = "config.yaml") -> ConfigService:
    """Get the global config service instance.

    Args:
        config_path: Path to config file (only used on first call).

    Returns:
        ConfigService singleton.
    """
    global _config_service
    if _config_service is None:
        _config_service = ConfigService(config_path)
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (for testing)."""
    global _config_service
    _config_service = None
