"""English and Turkish display strings."""

from enum import Enum
from typing import Dict

from core.playback_state import PlayerAvailability
from core.preferences import AppLanguage


class LocalizationKey(Enum):
    SHOW_HIDE = "showHide"
    MINIMIZE = "minimize"
    QUIT = "quit"
    THEME = "theme"
    LANGUAGE = "language"
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"
    ENGLISH = "english"
    TURKISH = "turkish"
    NOT_RUNNING = "notRunning"
    NO_TRACK = "noTrack"
    NO_ARTIST = "noArtist"
    OPEN_SPOTIFY = "openSpotify"


_ENGLISH: Dict[LocalizationKey, str] = {
    LocalizationKey.SHOW_HIDE: "Show/Hide",
    LocalizationKey.MINIMIZE: "Minimize",
    LocalizationKey.QUIT: "Quit",
    LocalizationKey.THEME: "Theme",
    LocalizationKey.LANGUAGE: "Language",
    LocalizationKey.SYSTEM: "System",
    LocalizationKey.LIGHT: "Light",
    LocalizationKey.DARK: "Dark",
    LocalizationKey.ENGLISH: "English",
    LocalizationKey.TURKISH: "Turkish",
    LocalizationKey.NOT_RUNNING: "Spotify is not running",
    LocalizationKey.NO_TRACK: "No track found",
    LocalizationKey.NO_ARTIST: "No artist found",
    LocalizationKey.OPEN_SPOTIFY: "Open Spotify",
}

_TURKISH: Dict[LocalizationKey, str] = {
    LocalizationKey.SHOW_HIDE: "Göster/Gizle",
    LocalizationKey.MINIMIZE: "Simge Durumuna Küçült",
    LocalizationKey.QUIT: "Çıkış",
    LocalizationKey.THEME: "Tema",
    LocalizationKey.LANGUAGE: "Dil",
    LocalizationKey.SYSTEM: "Sistem",
    LocalizationKey.LIGHT: "Açık",
    LocalizationKey.DARK: "Koyu",
    LocalizationKey.ENGLISH: "English",
    LocalizationKey.TURKISH: "Türkçe",
    LocalizationKey.NOT_RUNNING: "Spotify çalışmıyor",
    LocalizationKey.NO_TRACK: "Parça bulunamadı",
    LocalizationKey.NO_ARTIST: "Sanatçı bulunamadı",
    LocalizationKey.OPEN_SPOTIFY: "Spotify'ı Aç",
}

_TABLES: Dict[AppLanguage, Dict[LocalizationKey, str]] = {
    AppLanguage.ENGLISH: _ENGLISH,
    AppLanguage.TURKISH: _TURKISH,
}


def localized(key: LocalizationKey, language: AppLanguage) -> str:
    """Look up ``key`` for ``language``, falling back to English, then the raw key."""
    table = _TABLES.get(language, _ENGLISH)
    return table.get(key) or _ENGLISH.get(key) or key.value


def status_text(availability: PlayerAvailability, language: AppLanguage) -> str:
    """Placeholder title for a non-available player, or "" when a track is showing."""
    if availability is PlayerAvailability.NOT_RUNNING:
        return localized(LocalizationKey.NOT_RUNNING, language)
    if availability is PlayerAvailability.NO_TRACK:
        return localized(LocalizationKey.NO_TRACK, language)
    return ""
