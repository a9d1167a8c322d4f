"""Configuration management with lazy validation."""

from functools import cached_property
from pathlib import Path

from blockpad.models.config import Config, EditorConfig, StorageConfig
from blockpad.utils.logging import get_logger


logger = get_logger(__name__)


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "blockpad" / "config.yaml"


class ConfigManager:
    """
    Configuration manager with lazy access to each section.

    Example:
        >>> config_mgr = ConfigManager.load_default()
        >>> config_mgr.editor.save_debounce_seconds
        5.0
    """

    def __init__(self, config: Config):
        self._config = config

    @classmethod
    def load_default(cls) -> "ConfigManager":
        """
        Load configuration from ~/.config/blockpad/config.yaml.

        A missing file is not an error: every setting has a default.

        Raises:
            ValueError: If the file exists but is invalid
        """
        if not DEFAULT_CONFIG_PATH.exists():
            logger.info("config_default_used", path=str(DEFAULT_CONFIG_PATH))
            return cls(Config())
        return cls.load_from_path(DEFAULT_CONFIG_PATH)

    @classmethod
    def load_from_path(cls, path: Path) -> "ConfigManager":
        """
        Load configuration from specific path.

        Args:
            path: Path to config.yaml file

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        logger.info("config_loading", path=str(path))

        try:
            config = Config.load(path)
            logger.info("config_loaded", path=str(path))
            return cls(config)

        except FileNotFoundError as e:
            logger.error("config_not_found", path=str(path), error=str(e))
            raise

        except Exception as e:
            logger.error("config_validation_error", path=str(path), error=str(e))
            raise ValueError(f"Configuration validation failed: {e}") from e

    @property
    def config(self) -> Config:
        return self._config

    @cached_property
    def editor(self) -> EditorConfig:
        return self._config.editor

    @cached_property
    def storage(self) -> StorageConfig:
        return self._config.storage

    @property
    def notes_path(self) -> Path:
        return Path(self.storage.notes_path)
