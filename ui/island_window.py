"""The floating island panel.

Collapsed it shows only the artwork; on hover it expands to show titles,
controls and the menu. All state arrives through EventBus notifications
from the PlaybackStore and Preferences.
"""

from typing import Any, Dict, Optional

import gi
gi.require_version('Gtk', '4.0')
gi.require_version('Gio', '2.0')
from gi.repository import Gio, Gtk

from core.config import get_config
from core.events import EventBus
from core.localization import LocalizationKey, localized
from core.logging import get_logger
from core.playback_state import PlaybackStore, PlayerAvailability
from core.preferences import AppLanguage, AppTheme, Preferences
from ui.components.now_playing import NowPlayingView
from ui.components.player_controls import PlayerControls

logger = get_logger(__name__)


class IslandWindow(Gtk.ApplicationWindow):
    """Undecorated now-playing panel."""

    def __init__(self, app: Gtk.Application, event_bus: EventBus,
                 store: PlaybackStore, preferences: Preferences):
        super().__init__(application=app)
        config = get_config()
        self._events = event_bus
        self._store = store
        self._preferences = preferences
        self._collapsed_width = config.get_int('ui', 'collapsed_width', 120)
        self._expanded_width = config.get_int('ui', 'expanded_width', 420)
        self._height = config.get_int('ui', 'height', 120)
        self._expanded = False
        self.user_hidden = False

        self.set_title("Spotisland")
        self.set_decorated(False)
        self.set_resizable(False)
        self.add_css_class("island")
        self.set_default_size(self._collapsed_width, self._height)

        root = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        root.set_margin_top(12)
        root.set_margin_bottom(12)
        root.set_margin_start(16)
        root.set_margin_end(16)

        header = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=6)
        self.now_playing = NowPlayingView()
        self.now_playing.set_hexpand(True)
        header.append(self.now_playing)

        self.menu_button = Gtk.MenuButton()
        self.menu_button.set_icon_name("open-menu-symbolic")
        self.menu_button.set_valign(Gtk.Align.START)
        header.append(self.menu_button)
        root.append(header)

        self.controls = PlayerControls(event_bus)
        root.append(self.controls)
        self.set_child(root)

        # Hover drives expand/collapse
        motion = Gtk.EventControllerMotion()
        motion.connect('enter', lambda ctrl, x, y: self.set_expanded(True))
        motion.connect('leave', lambda ctrl: self.set_expanded(False))
        self.add_controller(motion)

        # Clicking the collapsed island brings the player forward
        click = Gtk.GestureClick()
        click.connect('released', self._on_clicked)
        self.now_playing.add_controller(click)

        self._events.subscribe(EventBus.TRACK_CHANGED, self._on_state_changed)
        self._events.subscribe(EventBus.AVAILABILITY_CHANGED, self._on_availability_changed)
        self._events.subscribe(EventBus.PLAYBACK_STATE_CHANGED, self._on_playback_state_changed)
        self._events.subscribe(EventBus.PLAYBACK_PROGRESS, self._on_progress)
        self._events.subscribe(EventBus.SHUFFLE_CHANGED, self._on_shuffle_changed)
        self._events.subscribe(EventBus.REPEAT_CHANGED, self._on_repeat_changed)
        self._events.subscribe(EventBus.ARTWORK_CHANGED, self._on_artwork_changed)
        self._events.subscribe(EventBus.LANGUAGE_CHANGED, self._on_state_changed)

        self.set_expanded(False)
        self._refresh_all()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def set_expanded(self, expanded: bool):
        if expanded == self._expanded:
            return
        self._expanded = expanded
        width = self._expanded_width if expanded else self._collapsed_width
        self.set_default_size(width, self._height)
        self.now_playing.set_expanded(expanded)
        self.controls.set_visible(expanded)
        self.menu_button.set_visible(expanded)

    def set_menu_model(self, menu: Gio.MenuModel):
        self.menu_button.set_menu_model(menu)

    def toggle_visibility(self):
        self.user_hidden = self.get_visible()
        self.set_visible(not self.user_hidden)

    def _on_clicked(self, gesture, n_press, x, y):
        if not self._expanded and self._store.availability is PlayerAvailability.NOT_RUNNING:
            self._events.publish(EventBus.ACTION_OPEN_PLAYER)

    # ------------------------------------------------------------------
    # Store notifications
    # ------------------------------------------------------------------
    def _refresh_all(self):
        state = self._store.now_playing()
        self.now_playing.set_state(state, self._preferences.language)
        self.now_playing.set_artwork(state.artwork)
        self.controls.set_playing(state.is_playing)
        self.controls.update_progress(state.position, state.duration)
        self.controls.set_shuffle(state.shuffle_enabled)
        self.controls.set_repeat(state.repeat_mode)

    def _on_state_changed(self, data: Optional[Dict[str, Any]]):
        self.now_playing.set_state(self._store.now_playing(), self._preferences.language)

    def _on_availability_changed(self, data: Dict[str, Any]):
        self._on_state_changed(data)
        # The panel only shows while the player is running
        running = data["availability"] is not PlayerAvailability.NOT_RUNNING
        if not self.user_hidden:
            self.set_visible(running)

    def _on_playback_state_changed(self, data: Dict[str, Any]):
        self.controls.set_playing(data["playing"])

    def _on_progress(self, data: Dict[str, Any]):
        self.controls.update_progress(data["position"], data["duration"])

    def _on_shuffle_changed(self, data: Dict[str, Any]):
        self.controls.set_shuffle(data["enabled"])

    def _on_repeat_changed(self, data: Dict[str, Any]):
        self.controls.set_repeat(data["mode"])

    def _on_artwork_changed(self, data: Dict[str, Any]):
        self.now_playing.set_artwork(data["artwork"])


def build_menu(language: AppLanguage) -> Gio.Menu:
    """Menu model wired to the application's actions."""
    menu = Gio.Menu()

    window_section = Gio.Menu()
    window_section.append(localized(LocalizationKey.SHOW_HIDE, language), "app.toggle-visibility")
    window_section.append(localized(LocalizationKey.MINIMIZE, language), "app.minimize")
    window_section.append(localized(LocalizationKey.OPEN_SPOTIFY, language), "app.open-player")
    menu.append_section(None, window_section)

    theme_menu = Gio.Menu()
    theme_labels = {
        AppTheme.SYSTEM: LocalizationKey.SYSTEM,
        AppTheme.LIGHT: LocalizationKey.LIGHT,
        AppTheme.DARK: LocalizationKey.DARK,
    }
    for theme, key in theme_labels.items():
        theme_menu.append(localized(key, language), f"app.theme::{theme.value}")

    language_menu = Gio.Menu()
    language_labels = {
        AppLanguage.ENGLISH: LocalizationKey.ENGLISH,
        AppLanguage.TURKISH: LocalizationKey.TURKISH,
    }
    for lang, key in language_labels.items():
        language_menu.append(localized(key, language), f"app.language::{lang.value}")

    prefs_section = Gio.Menu()
    prefs_section.append_submenu(localized(LocalizationKey.THEME, language), theme_menu)
    prefs_section.append_submenu(localized(LocalizationKey.LANGUAGE, language), language_menu)
    menu.append_section(None, prefs_section)

    quit_section = Gio.Menu()
    quit_section.append(localized(LocalizationKey.QUIT, language), "app.quit")
    menu.append_section(None, quit_section)
    return menu
