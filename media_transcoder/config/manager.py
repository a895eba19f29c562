"""
YAML-backed configuration storage.

A configuration file holds only the keys a user changed; ConfigManager
resolves them onto the defaults of ResolvedConfig.
"""

from pathlib import Path
from typing import Any, Optional

import yaml

from media_transcoder.config.models import ResolvedConfig
from media_transcoder.utils import ConfigurationError, get_logger

logger = get_logger(__name__)


class ConfigManager:
    """Finds, reads and writes configuration override files."""

    # Searched in order when no explicit path is given
    DEFAULT_CONFIG_LOCATIONS = [
        Path.home() / ".media-transcoder.yaml",
        Path.home() / ".config" / "media-transcoder" / "config.yaml",
        Path.cwd() / ".media-transcoder.yaml",
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Explicit configuration file; skips the search
        """
        self.config_path = config_path
        self._config: Optional[ResolvedConfig] = None

    @property
    def config(self) -> ResolvedConfig:
        """Resolved configuration, read on first access and cached."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self, config_path: Optional[Path] = None) -> ResolvedConfig:
        """
        Resolve the configuration.

        An explicit path must exist. Without one, the first existing default
        location is used, and with none of them present the defaults apply.

        Raises:
            ConfigurationError: If the explicit file is missing or unreadable
        """
        path = config_path or self.config_path
        if path and not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        source = path or self._find_default_file()
        if source is None:
            logger.info("No configuration file found, using defaults")
            return ResolvedConfig()

        logger.info(f"Loading configuration from {source}")
        return ResolvedConfig.from_overrides(self._read_overrides(source))

    def _find_default_file(self) -> Optional[Path]:
        for candidate in self.DEFAULT_CONFIG_LOCATIONS:
            if candidate.exists():
                return candidate
        return None

    def _read_overrides(self, path: Path) -> dict[str, Any]:
        """Parse the override mapping; an empty file has no overrides."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

        logger.debug(f"{path} overrides: {', '.join(map(str, data)) or 'none'}")
        return data

    def save(self, path: Optional[Path] = None, config: Optional[ResolvedConfig] = None) -> Path:
        """
        Write a configuration as YAML.

        Args:
            path: Destination (explicit path, else the first default location)
            config: Configuration to write (the current one if None)

        Returns:
            The file written

        Raises:
            ConfigurationError: If the file cannot be written
        """
        data = (config or self.config).model_dump(mode="json")
        destination = path or self.config_path or self.DEFAULT_CONFIG_LOCATIONS[0]

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with open(destination, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigurationError(f"Cannot write {destination}: {e}") from e

        logger.info(f"Configuration saved to {destination}")
        return destination

    def init_default_config(self, path: Optional[Path] = None, force: bool = False) -> Path:
        """
        Write the defaults to a new configuration file.

        Raises:
            ConfigurationError: If the file exists and force is not set
        """
        destination = path or self.DEFAULT_CONFIG_LOCATIONS[0]
        if destination.exists() and not force:
            raise ConfigurationError(
                f"Configuration file already exists: {destination}. Use --force to overwrite."
            )
        return self.save(destination, ResolvedConfig())

    def reload(self) -> ResolvedConfig:
        """Discard the cached configuration and read it again."""
        self._config = None
        return self.config


_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Process-wide ConfigManager.

    config_path only takes effect on the first call.
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)

    return _config_manager


def get_config(config_path: Optional[Path] = None) -> ResolvedConfig:
    """Resolved configuration of the process-wide manager."""
    return get_config_manager(config_path).config
