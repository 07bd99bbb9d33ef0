"""Configuration management for Data Labeler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class AppConfig:
    """
    Application configuration settings.

    Stores user preferences and application state.
    """

    default_project: str = ""
    endpoint_url: str = ""  # Remote detection endpoint (empty to disable)
    endpoint_timeout: float = 30.0  # Seconds
    yolo_model_path: str = ""  # Local model used when no endpoint is set
    confidence_threshold: float = 0.25
    line_thickness: int = 2
    font_size: int = 10
    show_filled: bool = True  # Fill boxes instead of drawing outlines only
    async_loading: bool = True  # Load images on a worker thread
    max_recent_projects: int = 10  # 0 disables the recent list
    recent_projects: list[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "defaultProject": self.default_project,
            "endpointUrl": self.endpoint_url,
            "endpointTimeout": self.endpoint_timeout,
            "yoloModelPath": self.yolo_model_path,
            "confidenceThreshold": self.confidence_threshold,
            "lineThickness": self.line_thickness,
            "fontSize": self.font_size,
            "showFilled": self.show_filled,
            "asyncLoading": self.async_loading,
            "maxRecentProjects": self.max_recent_projects,
            "recentProjects": self.recent_projects,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create config from dictionary."""
        return cls(
            default_project=data.get("defaultProject", ""),
            endpoint_url=data.get("endpointUrl", ""),
            endpoint_timeout=data.get("endpointTimeout", 30.0),
            yolo_model_path=data.get("yoloModelPath", ""),
            confidence_threshold=data.get("confidenceThreshold", 0.25),
            line_thickness=data.get("lineThickness", 2),
            font_size=data.get("fontSize", 10),
            show_filled=data.get("showFilled", True),
            async_loading=data.get("asyncLoading", True),
            max_recent_projects=data.get("maxRecentProjects", 10),
            recent_projects=data.get("recentProjects", []),
        )

    def add_recent_project(self, path: str) -> None:
        """Move a project to the front of the recent list."""
        if self.max_recent_projects <= 0:
            self.recent_projects = []
            return

        recent = [p for p in self.recent_projects if p != path]
        recent.insert(0, path)
        self.recent_projects = recent[:self.max_recent_projects]


class ConfigManager:
    """
    Manager for loading and saving application configuration.

    Handles YAML serialization and provides a clean interface
    for configuration access.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = config_path
        self._config: Optional[AppConfig] = None

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> AppConfig:
        """
        Load configuration from file.

        Returns:
            AppConfig instance with loaded or default values
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
            return AppConfig.from_dict(data)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return AppConfig()
        except Exception as e:
            logger.error(f"Error loading config: {e}")
            return AppConfig()

    def save(self, config: Optional[AppConfig] = None) -> bool:
        """
        Save configuration to file.

        Args:
            config: Configuration to save, or use current config

        Returns:
            True if save was successful
        """
        if config is not None:
            self._config = config

        if self._config is None:
            logger.warning("No configuration to save")
            return False

        try:
            with open(self.config_path, "w") as f:
                yaml.dump(self._config.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except Exception as e:
            logger.error(f"Error saving config: {e}")
            return False

    def update(self, **kwargs: Any) -> None:
        """
        Update configuration with new values.

        Args:
            **kwargs: Key-value pairs to update
        """
        config = self.config
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")
        self.save()
