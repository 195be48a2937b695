"""Persisted theme and language preferences."""

from enum import Enum
from typing import Optional, Type, TypeVar

from core.config import Config, get_config
from core.events import EventBus
from core.logging import get_logger

logger = get_logger(__name__)

SECTION = "preferences"
THEME_KEY = "appTheme"
LANGUAGE_KEY = "appLanguage"

E = TypeVar("E", bound=Enum)


class AppTheme(Enum):
    SYSTEM = "System"
    LIGHT = "Light"
    DARK = "Dark"


class AppLanguage(Enum):
    ENGLISH = "English"
    TURKISH = "Turkish"

    @property
    def locale(self) -> str:
        return "tr" if self is AppLanguage.TURKISH else "en"


def _parse_enum(enum_type: Type[E], raw: Optional[str], default: E) -> E:
    if raw is None:
        return default
    try:
        return enum_type(raw)
    except ValueError:
        logger.debug("Ignoring invalid %s value %r", enum_type.__name__, raw)
        return default


class Preferences:
    """
    Theme and language, loaded at startup and written on every change.

    Missing or unknown stored values fall back to System / English without
    complaint.
    """

    def __init__(self, event_bus: EventBus, config: Optional[Config] = None):
        self._events = event_bus
        self._config = config or get_config()
        self._theme = _parse_enum(AppTheme, self._config.get(SECTION, THEME_KEY), AppTheme.SYSTEM)
        self._language = _parse_enum(
            AppLanguage, self._config.get(SECTION, LANGUAGE_KEY), AppLanguage.ENGLISH
        )

    @property
    def theme(self) -> AppTheme:
        return self._theme

    @property
    def language(self) -> AppLanguage:
        return self._language

    def set_theme(self, theme: AppTheme) -> None:
        self._config.set(SECTION, THEME_KEY, theme.value)
        if theme is not self._theme:
            self._theme = theme
            self._events.publish(EventBus.THEME_CHANGED, {"theme": theme})

    def set_language(self, language: AppLanguage) -> None:
        self._config.set(SECTION, LANGUAGE_KEY, language.value)
        if language is not self._language:
            self._language = language
            self._events.publish(EventBus.LANGUAGE_CHANGED, {"language": language})
