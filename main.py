#!/usr/bin/env python3
"""Spotisland - Main entry point."""

import sys
import gi
gi.require_version('Gtk', '4.0')
from gi.repository import Gtk

from core.config import get_config
from core.exceptions import ConfigurationError
from core.logging import AppLogger, get_logger
from ui.application import USE_ADW, SpotislandApplication

if USE_ADW:
    from gi.repository import Adw

logger = get_logger(__name__)


class SpotislandApp(Adw.Application if USE_ADW else Gtk.Application):
    """Main application class."""

    def __init__(self):
        super().__init__(
            application_id='io.github.spotisland',
            flags=0
        )
        self.connect('activate', self._on_activate)
        self.connect('shutdown', self._on_shutdown)
        self.controller = None

    def _on_activate(self, app):
        """Handle application activation."""
        if self.controller is None:
            # Keep running while the panel is hidden
            self.hold()
            try:
                self.controller = SpotislandApplication(app)
            except ConfigurationError as e:
                logger.critical("Invalid configuration: %s", e)
                self.release()
                self.quit()
                return
        self.controller.window.present()

    def _on_shutdown(self, app):
        if self.controller is not None:
            self.controller.shutdown()


def main():
    """Main entry point."""
    # Initialize config (creates directories, loads settings)
    config = get_config()

    # Initialize logging (uses config for log directory)
    AppLogger(log_dir=config.log_dir)

    app = SpotislandApp()
    return app.run(sys.argv)


if __name__ == '__main__':
    sys.exit(main())
