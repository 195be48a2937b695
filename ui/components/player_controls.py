"""Player controls component - shuffle/previous/play-pause/next/repeat and progress."""

import gi
gi.require_version('Gtk', '4.0')
from gi.repository import Gtk

from core.events import EventBus
from core.playback_state import RepeatMode


class PlayerControls(Gtk.Box):
    """Transport buttons and seek bar. Buttons publish ACTION_* events; nothing is applied locally."""

    def __init__(self, event_bus: EventBus):
        super().__init__(orientation=Gtk.Orientation.VERTICAL, spacing=4)
        self._events = event_bus

        # Progress bar and time labels
        progress_box = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=6)

        self.time_label = Gtk.Label(label="0:00")
        self.time_label.add_css_class("caption")
        progress_box.append(self.time_label)

        self.progress_scale = Gtk.Scale.new_with_range(
            Gtk.Orientation.HORIZONTAL, 0.0, 100.0, 1.0
        )
        self.progress_scale.set_draw_value(False)
        self.progress_scale.set_hexpand(True)

        gesture_press = Gtk.GestureClick()
        gesture_press.connect('pressed', self._on_progress_press)
        self.progress_scale.add_controller(gesture_press)

        gesture_release = Gtk.GestureClick()
        gesture_release.connect('released', self._on_progress_release)
        self.progress_scale.add_controller(gesture_release)
        progress_box.append(self.progress_scale)

        self.duration_label = Gtk.Label(label="0:00")
        self.duration_label.add_css_class("caption")
        progress_box.append(self.duration_label)

        self.append(progress_box)

        # Control buttons
        controls_box = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=10)
        controls_box.set_halign(Gtk.Align.CENTER)

        self.shuffle_button = Gtk.ToggleButton()
        self.shuffle_button.set_icon_name("media-playlist-shuffle-symbolic")
        self._shuffle_handler = self.shuffle_button.connect(
            'toggled', lambda btn: self._events.publish(EventBus.ACTION_TOGGLE_SHUFFLE)
        )
        controls_box.append(self.shuffle_button)

        self.prev_button = Gtk.Button.new_from_icon_name("media-skip-backward-symbolic")
        self.prev_button.connect('clicked', lambda btn: self._events.publish(EventBus.ACTION_PREV))
        controls_box.append(self.prev_button)

        self.play_button = Gtk.Button.new_from_icon_name("media-playback-start-symbolic")
        self.play_button.add_css_class("circular")
        self.play_button.connect('clicked', lambda btn: self._events.publish(EventBus.ACTION_PLAY_PAUSE))
        controls_box.append(self.play_button)

        self.next_button = Gtk.Button.new_from_icon_name("media-skip-forward-symbolic")
        self.next_button.connect('clicked', lambda btn: self._events.publish(EventBus.ACTION_NEXT))
        controls_box.append(self.next_button)

        self.repeat_button = Gtk.ToggleButton()
        self.repeat_button.set_icon_name("media-playlist-repeat-symbolic")
        self._repeat_handler = self.repeat_button.connect(
            'toggled', lambda btn: self._events.publish(EventBus.ACTION_TOGGLE_REPEAT)
        )
        controls_box.append(self.repeat_button)

        self.append(controls_box)

        self._seeking = False
        self._duration = 0.0

    def set_playing(self, playing: bool):
        icon = "media-playback-pause-symbolic" if playing else "media-playback-start-symbolic"
        self.play_button.set_icon_name(icon)

    def set_shuffle(self, enabled: bool):
        # Reflect player state without echoing a toggle back to it
        with self.shuffle_button.handler_block(self._shuffle_handler):
            self.shuffle_button.set_active(enabled)

    def set_repeat(self, mode: RepeatMode):
        with self.repeat_button.handler_block(self._repeat_handler):
            self.repeat_button.set_active(mode is not RepeatMode.OFF)

    def update_progress(self, position: float, duration: float):
        """Update progress bar and time labels."""
        self._duration = duration
        if not self._seeking:
            progress = (position / duration) * 100.0 if duration > 0 else 0.0
            self.progress_scale.set_value(min(100.0, max(0.0, progress)))

        self.time_label.set_text(format_time(position))
        self.duration_label.set_text(format_time(duration))

    def _on_progress_press(self, gesture, n_press, x, y):
        self._seeking = True

    def _on_progress_release(self, gesture, n_press, x, y):
        self._seeking = False
        if self._duration > 0:
            position = (self.progress_scale.get_value() / 100.0) * self._duration
            self._events.publish(EventBus.ACTION_SEEK, {"position": position})


def format_time(seconds: float) -> str:
    """Format seconds as M:SS."""
    if seconds < 0:
        seconds = 0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
