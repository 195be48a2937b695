"""Configuration management using XDG Base Directory Specification.

This module provides centralized configuration for the channel, the poller
timings, artwork downloads, persisted preferences and panel geometry.
"""

import configparser
import math
import os
from pathlib import Path
from typing import Optional

from core.exceptions import ConfigurationError

APP_VERSION = "0.3.0"

DEFAULTS = {
    'spotify': {
        'app_name': 'Spotify',
        'osascript_path': '/usr/bin/osascript',
        'script_timeout': '5.0',
    },
    'poller': {
        'poll_interval': '1.0',
        'position_interval': '0.5',
        'resync_delay': '0.2',
    },
    'artwork': {
        'timeout': '10.0',
        'user_agent': f'spotisland/{APP_VERSION}',
    },
    'preferences': {
        'appTheme': 'System',
        'appLanguage': 'English',
    },
    'ui': {
        'collapsed_width': '120',
        'expanded_width': '420',
        'height': '120',
    },
}


class Config:
    """
    Configuration manager using XDG Base Directory Specification.

    Follows Linux standards:
    - Config: ~/.config/spotisland/ (or XDG_CONFIG_HOME)
    - Cache: ~/.cache/spotisland/ (or XDG_CACHE_HOME)
    - Data: ~/.local/share/spotisland/ (or XDG_DATA_HOME)
    """

    _instance: Optional['Config'] = None

    def __init__(self) -> None:
        """Set up XDG paths and load or create the configuration file."""
        self.config_home = Path(os.getenv('XDG_CONFIG_HOME', Path.home() / '.config'))
        self.cache_home = Path(os.getenv('XDG_CACHE_HOME', Path.home() / '.cache'))
        self.data_home = Path(os.getenv('XDG_DATA_HOME', Path.home() / '.local' / 'share'))

        self.app_name = 'spotisland'
        self.config_dir = self.config_home / self.app_name
        self.cache_dir = self.cache_home / self.app_name
        self.data_dir = self.data_home / self.app_name

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / 'config.ini'
        # Keep key case: preference keys are camelCase
        self.config = configparser.ConfigParser()
        self.config.optionxform = str

        self._load_config()

    @classmethod
    def get_instance(cls) -> 'Config':
        """Get the singleton config instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton so the next access re-reads the environment."""
        cls._instance = None

    def _load_config(self) -> None:
        """Load configuration from file, filling in any missing defaults."""
        self.config.read_dict(DEFAULTS)
        if self.config_file.exists():
            try:
                self.config.read(self.config_file, encoding='utf-8')
            except configparser.Error as e:
                # Unreadable file: keep the defaults loaded above
                from core.logging import get_logger
                get_logger(__name__).warning("Ignoring invalid config file %s: %s", self.config_file, e)
        else:
            self.save()

    def save(self) -> None:
        """Write current configuration state to the config file."""
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                self.config.write(f)
        except OSError as e:
            from core.logging import get_logger
            logger = get_logger(__name__)
            logger.error("Failed to save config: %s", e, exc_info=True)

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """Get a configuration value."""
        return self.config.get(section, key, fallback=fallback)

    def set(self, section: str, key: str, value: str) -> None:
        """
        Set a configuration value and persist it.

        Args:
            section: Configuration section name
            key: Configuration key name
            value: Value to set
        """
        if section not in self.config:
            self.config.add_section(section)
        self.config.set(section, key, value)
        self.save()

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get an integer configuration value."""
        try:
            return self.config.getint(section, key, fallback=fallback)
        except ValueError:
            return fallback

    def get_float(self, section: str, key: str, fallback: float = 0.0) -> float:
        """Get a float configuration value."""
        try:
            return self.config.getfloat(section, key, fallback=fallback)
        except ValueError:
            return fallback

    def get_path(self, section: str, key: str, fallback: Optional[Path] = None) -> Optional[Path]:
        """Get a path configuration value."""
        value = self.get(section, key)
        if value:
            return Path(value)
        return fallback

    # Convenience properties
    @property
    def player_app_name(self) -> str:
        return self.get('spotify', 'app_name', 'Spotify')

    @property
    def osascript_path(self) -> Path:
        return self.get_path('spotify', 'osascript_path', Path('/usr/bin/osascript'))

    @property
    def script_timeout(self) -> float:
        """Seconds before a control script is abandoned."""
        return self.get_float('spotify', 'script_timeout', 5.0)

    def get_interval(self, key: str, fallback: float) -> float:
        """
        Get a poller timing in seconds.

        Raises:
            ConfigurationError: if the configured value is not a positive finite number
        """
        value = self.get_float('poller', key, fallback)
        if not math.isfinite(value) or value <= 0:
            raise ConfigurationError(f"[poller] {key} must be positive, got {value}")
        return value

    @property
    def poll_interval(self) -> float:
        """Seconds between full snapshot polls."""
        return self.get_interval('poll_interval', 1.0)

    @property
    def position_interval(self) -> float:
        """Seconds between position-only polls."""
        return self.get_interval('position_interval', 0.5)

    @property
    def resync_delay(self) -> float:
        """Seconds to wait after a shuffle/repeat toggle before re-reading it."""
        return self.get_interval('resync_delay', 0.2)

    @property
    def artwork_timeout(self) -> float:
        return self.get_float('artwork', 'timeout', 10.0)

    @property
    def artwork_user_agent(self) -> str:
        return self.get('artwork', 'user_agent', f'spotisland/{APP_VERSION}')

    @property
    def log_dir(self) -> Path:
        """Get log directory."""
        log_dir = self.data_dir / 'logs'
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir


# Convenience function
def get_config() -> Config:
    """Get the configuration instance."""
    return Config.get_instance()
