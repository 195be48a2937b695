"""Pytest configuration and fixtures."""

import pytest
import tempfile
import shutil
from concurrent.futures import Executor, Future
from pathlib import Path
from unittest.mock import MagicMock, patch

# Mock GTK/GLib before imports
import sys

sys.modules['gi'] = MagicMock()
sys.modules['gi.repository'] = MagicMock()
for _name in ('GLib', 'Gio', 'Gtk', 'Gdk', 'GdkPixbuf', 'Pango', 'Adw'):
    sys.modules[f'gi.repository.{_name}'] = MagicMock()


class FakeMainLoop:
    """Stands in for GLib's scheduling calls: timeouts are fired by hand, idles queue up."""

    def __init__(self):
        self.timeouts = {}
        self.idles = []
        self.removed = []
        self._next_id = 1

    def timeout_add(self, interval, callback, *args):
        source_id = self._next_id
        self._next_id += 1
        self.timeouts[source_id] = (interval, callback, args)
        return source_id

    def source_remove(self, source_id):
        self.removed.append(source_id)
        self.timeouts.pop(source_id, None)
        return True

    def idle_add(self, callback, *args):
        self.idles.append((callback, args))
        return 0

    def run_idle(self):
        """Run queued idle callbacks (including ones queued while running)."""
        while self.idles:
            callback, args = self.idles.pop(0)
            callback(*args)

    def timers_with_interval(self, interval):
        return [sid for sid, (ms, _, _) in self.timeouts.items() if ms == interval]

    def fire(self, source_id):
        """Fire a timeout; drop it if the callback returns False, like GLib."""
        interval, callback, args = self.timeouts[source_id]
        keep = callback(*args)
        if not keep:
            self.timeouts.pop(source_id, None)
        self.run_idle()
        return keep


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self):
        self.submitted = []
        self._shutdown = False

    def submit(self, fn, *args, **kwargs):
        if self._shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted.append((fn, args))
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait=True, **kwargs):
        self._shutdown = True


class ManualExecutor(Executor):
    """Holds submitted work until the test completes it, in any order."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args))
        return future

    def complete(self, index):
        future, fn, args = self.pending.pop(index)
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)

    def shutdown(self, wait=True, **kwargs):
        pass


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def mock_config(monkeypatch, temp_dir):
    """Point the config singleton at temporary XDG directories."""
    from core.config import Config

    monkeypatch.setenv('XDG_CONFIG_HOME', str(temp_dir / 'config'))
    monkeypatch.setenv('XDG_CACHE_HOME', str(temp_dir / 'cache'))
    monkeypatch.setenv('XDG_DATA_HOME', str(temp_dir / 'data'))
    Config.reset_instance()
    yield Config.get_instance()
    Config.reset_instance()


@pytest.fixture
def main_loop():
    """Patch GLib scheduling in the core with a hand-driven fake."""
    loop = FakeMainLoop()
    with patch('core.poller.GLib', loop), patch('core.workflow_utils.GLib', loop):
        yield loop


@pytest.fixture
def event_bus():
    from core.events import EventBus
    return EventBus()


@pytest.fixture
def store(event_bus):
    from core.playback_state import PlaybackStore
    return PlaybackStore(event_bus)


@pytest.fixture
def recorded_events(event_bus):
    """Record every store notification as (event, data)."""
    from core.events import EventBus

    events = []
    for name in (
        EventBus.TRACK_CHANGED,
        EventBus.PLAYBACK_STATE_CHANGED,
        EventBus.PLAYBACK_PROGRESS,
        EventBus.SHUFFLE_CHANGED,
        EventBus.REPEAT_CHANGED,
        EventBus.ARTWORK_CHANGED,
        EventBus.AVAILABILITY_CHANGED,
    ):
        event_bus.subscribe(name, lambda data, name=name: events.append((name, data)))
    return events
