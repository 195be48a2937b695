"""Wires the polling core to the island window and application actions."""

import gi
gi.require_version('Gtk', '4.0')
gi.require_version('GLib', '2.0')
from gi.repository import Gio, GLib, Gtk

from core.artwork import ArtworkFetcher
from core.events import EventBus
from core.logging import get_logger
from core.playback_state import PlaybackStore
from core.poller import SpotifyPoller
from core.preferences import AppLanguage, AppTheme, Preferences
from core.spotify_channel import SpotifyChannel
from ui.island_window import IslandWindow, build_menu

logger = get_logger(__name__)

try:
    gi.require_version('Adw', '1')
    from gi.repository import Adw
    USE_ADW = True
except (ValueError, ImportError):
    USE_ADW = False


def apply_theme(theme: AppTheme) -> None:
    """Map the theme preference onto the toolkit's color scheme."""
    if USE_ADW:
        schemes = {
            AppTheme.SYSTEM: Adw.ColorScheme.DEFAULT,
            AppTheme.LIGHT: Adw.ColorScheme.FORCE_LIGHT,
            AppTheme.DARK: Adw.ColorScheme.FORCE_DARK,
        }
        Adw.StyleManager.get_default().set_color_scheme(schemes[theme])
        return
    settings = Gtk.Settings.get_default()
    if settings is not None:
        settings.set_property('gtk-application-prefer-dark-theme', theme is AppTheme.DARK)


class SpotislandApplication:
    """Owns the core components for the lifetime of the process."""

    def __init__(self, app: Gtk.Application):
        self.app = app
        self.event_bus = EventBus()
        self.preferences = Preferences(self.event_bus)
        self.store = PlaybackStore(self.event_bus)

        self.channel = SpotifyChannel()
        if not self.channel.is_available():
            logger.warning("osascript not found; the player cannot be reached")
        self.artwork = ArtworkFetcher(self.store)
        self.poller = SpotifyPoller(self.channel, self.store, self.artwork, self.event_bus)

        apply_theme(self.preferences.theme)
        self._install_actions()

        self.window = IslandWindow(app, self.event_bus, self.store, self.preferences)
        self.window.set_menu_model(build_menu(self.preferences.language))

        self.event_bus.subscribe(EventBus.THEME_CHANGED, lambda data: apply_theme(data["theme"]))
        self.event_bus.subscribe(EventBus.LANGUAGE_CHANGED, self._on_language_changed)

        self.poller.start()
        self.window.present()

    def _install_actions(self):
        simple = {
            "toggle-visibility": lambda *args: self.window.toggle_visibility(),
            "minimize": lambda *args: self.window.minimize(),
            "open-player": lambda *args: self.event_bus.publish(EventBus.ACTION_OPEN_PLAYER),
            "quit": lambda *args: self.app.quit(),
        }
        for name, callback in simple.items():
            action = Gio.SimpleAction.new(name, None)
            action.connect('activate', callback)
            self.app.add_action(action)

        theme_action = Gio.SimpleAction.new_stateful(
            "theme", GLib.VariantType.new("s"), GLib.Variant.new_string(self.preferences.theme.value)
        )
        theme_action.connect('activate', self._on_theme_action)
        self.app.add_action(theme_action)

        language_action = Gio.SimpleAction.new_stateful(
            "language", GLib.VariantType.new("s"), GLib.Variant.new_string(self.preferences.language.value)
        )
        language_action.connect('activate', self._on_language_action)
        self.app.add_action(language_action)

    def _on_theme_action(self, action, parameter):
        action.set_state(parameter)
        self.preferences.set_theme(AppTheme(parameter.get_string()))

    def _on_language_action(self, action, parameter):
        action.set_state(parameter)
        self.preferences.set_language(AppLanguage(parameter.get_string()))

    def _on_language_changed(self, data):
        self.window.set_menu_model(build_menu(data["language"]))

    def shutdown(self):
        self.poller.stop()
        self.artwork.shutdown()
