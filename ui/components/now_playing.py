"""Now-playing component - artwork, track title and artist."""

import gi
gi.require_version('Gtk', '4.0')
gi.require_version('Gdk', '4.0')
gi.require_version('Pango', '1.0')
from gi.repository import Gdk, Gtk, Pango

from core.localization import status_text
from core.logging import get_logger
from core.playback_state import NowPlaying, PlayerAvailability
from core.preferences import AppLanguage

logger = get_logger(__name__)

COMPACT_ART_SIZE = 48
EXPANDED_ART_SIZE = 60


class NowPlayingView(Gtk.Box):
    """Artwork plus title/artist labels."""

    def __init__(self):
        super().__init__(orientation=Gtk.Orientation.HORIZONTAL, spacing=12)

        self.art_image = Gtk.Picture()
        self.art_image.set_content_fit(Gtk.ContentFit.COVER)
        self.art_image.set_size_request(COMPACT_ART_SIZE, COMPACT_ART_SIZE)
        self.art_image.add_css_class("album-art")
        self.append(self.art_image)

        self.info_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=2)
        self.info_box.set_valign(Gtk.Align.CENTER)

        self.title_label = Gtk.Label(label="")
        self.title_label.add_css_class("heading")
        self.title_label.set_ellipsize(Pango.EllipsizeMode.END)
        self.title_label.set_halign(Gtk.Align.START)
        self.info_box.append(self.title_label)

        self.artist_label = Gtk.Label(label="")
        self.artist_label.add_css_class("dim-label")
        self.artist_label.set_ellipsize(Pango.EllipsizeMode.END)
        self.artist_label.set_halign(Gtk.Align.START)
        self.info_box.append(self.artist_label)

        self.append(self.info_box)

    def set_expanded(self, expanded: bool):
        size = EXPANDED_ART_SIZE if expanded else COMPACT_ART_SIZE
        self.art_image.set_size_request(size, size)
        self.info_box.set_visible(expanded)

    def set_state(self, state: NowPlaying, language: AppLanguage):
        """Render titles; placeholders are localized from the canonical status."""
        if state.availability is PlayerAvailability.AVAILABLE:
            self.title_label.set_text(state.track_name)
            self.artist_label.set_text(state.artist_name)
        else:
            self.title_label.set_text(status_text(state.availability, language))
            self.artist_label.set_text("")

    def set_artwork(self, pixbuf):
        if pixbuf is None:
            self.art_image.set_paintable(None)
            return
        try:
            self.art_image.set_paintable(Gdk.Texture.new_for_pixbuf(pixbuf))
        except Exception as e:
            logger.error("Error showing artwork: %s", e, exc_info=True)
            self.art_image.set_paintable(None)
