"""
Workflow Configuration Infrastructure
=====================================

YAML-backed workflow configuration (SLA targets and the status
transition map) with hot-reload through watchdog.
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from helpdesk.core import ConfigurationException
from helpdesk.tickets.application import IWorkflowConfigProvider
from helpdesk.tickets.domain import WorkflowConfig
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for workflow config file changes."""

    def __init__(self, config_manager: "WorkflowConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("Workflow config file changed", extra={"path": event.src_path})
            self.config_manager.reload()


class WorkflowConfigManager(IWorkflowConfigProvider):
    """
    Thread-safe workflow configuration manager with hot-reload support.

    Uses watchdog to monitor file changes and reload configuration
    without restarting the service. A missing file means built-in
    defaults; a broken file on reload keeps the last good configuration.
    """

    def __init__(self):
        self._config: Optional[WorkflowConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> WorkflowConfig:
        """
        Initial configuration load.

        Raises:
            ConfigurationException: the file exists but is not valid
        """
        self._path = Path(path)
        try:
            config = self._load_from_file(self._path)
        except (yaml.YAMLError, ValidationError, ValueError) as e:
            raise ConfigurationException(
                f"Invalid workflow configuration: {e}", {"path": str(self._path)}
            ) from e

        with self._lock:
            self._config = config
        return config

    def _load_from_file(self, path: Path) -> WorkflowConfig:
        """Load and parse YAML config file."""
        if not path.exists():
            logger.warning(
                "Workflow config file not found, using defaults",
                extra={"path": str(path)}
            )
            return WorkflowConfig()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return WorkflowConfig.from_mapping(data)

    def reload(self) -> bool:
        """Reload configuration from file."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
            logger.error(
                "Failed to reload workflow config, keeping previous",
                extra={"error": str(e), "path": str(self._path)}
            )
            return False

        with self._lock:
            self._config = new_config
        logger.info("Workflow configuration reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching configuration file for changes.

        Skips watching if the file doesn't exist or the platform has no
        working file notification (e.g. some container runtimes).
        """
        if self._path is None:
            raise ConfigurationException("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(
                "Workflow config file doesn't exist, skipping file watch",
                extra={"path": str(self._path)}
            )
            return

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.resolve().parent),
                recursive=False
            )
            self._observer.start()
            logger.info("Started watching workflow config", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning(
                "File watching not available, using static config",
                extra={"error": str(e)}
            )
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching configuration file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def get_config(self) -> WorkflowConfig:
        """Get current configuration."""
        with self._lock:
            if self._config is None:
                raise ConfigurationException("Workflow configuration not loaded")
            return self._config

    @property
    def config(self) -> WorkflowConfig:
        return self.get_config()


__all__ = ["WorkflowConfigManager", "ConfigFileHandler"]
