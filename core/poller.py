"""Poller - keeps the PlaybackStore in sync with Spotify and forwards commands.

Three kinds of GLib timer run on the main loop:
- the primary poll (full snapshot, then shuffle/repeat flags),
- the position poll (position only, failures ignored),
- one-shot resync timers after a shuffle/repeat toggle.

Channel calls are blocking, so they run on a single worker thread (keeping
commands and queries in submission order). Their results come back to the
main loop before they touch the store.
"""

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

import gi
gi.require_version("GLib", "2.0")
from gi.repository import GLib

from core.artwork import ArtworkFetcher
from core.config import get_config
from core.events import EventBus
from core.exceptions import ChannelInvocationError, MalformedSnapshotError, PlayerUnavailableError
from core.logging import get_logger
from core.playback_state import PlaybackStore, RepeatMode
from core.snapshot import TrackSnapshot, ensure_available, parse, parse_flag, parse_position
from core.spotify_channel import SpotifyChannel
from core.workflow_utils import run_in_background

logger = get_logger(__name__)

# Query kinds, used to avoid stacking identical queries behind a slow one
QUERY_SNAPSHOT = "snapshot"
QUERY_POSITION = "position"
QUERY_SHUFFLE = "shuffle"
QUERY_REPEAT = "repeat"


def _to_millis(seconds: float) -> int:
    return max(1, int(round(seconds * 1000)))


class SpotifyPoller:
    """Drives the channel on fixed schedules and reconciles results into the store."""

    def __init__(
        self,
        channel: SpotifyChannel,
        store: PlaybackStore,
        artwork: ArtworkFetcher,
        event_bus: EventBus,
        executor: Optional[Executor] = None,
        poll_interval: Optional[float] = None,
        position_interval: Optional[float] = None,
        resync_delay: Optional[float] = None,
    ):
        config = get_config()
        self._channel = channel
        self._store = store
        self._artwork = artwork
        self._events = event_bus
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="spotify")

        self._poll_interval = poll_interval if poll_interval is not None else config.poll_interval
        self._position_interval = (
            position_interval if position_interval is not None else config.position_interval
        )
        self._resync_delay = resync_delay if resync_delay is not None else config.resync_delay

        self._timer_ids: List[int] = []
        self._in_flight: Dict[str, int] = {}
        self._running = False

        self._events.subscribe(EventBus.ACTION_PLAY_PAUSE, self._on_action_play_pause)
        self._events.subscribe(EventBus.ACTION_NEXT, self._on_action_next)
        self._events.subscribe(EventBus.ACTION_PREV, self._on_action_previous)
        self._events.subscribe(EventBus.ACTION_SEEK, self._on_action_seek)
        self._events.subscribe(EventBus.ACTION_TOGGLE_SHUFFLE, self._on_action_toggle_shuffle)
        self._events.subscribe(EventBus.ACTION_TOGGLE_REPEAT, self._on_action_toggle_repeat)
        self._events.subscribe(EventBus.ACTION_OPEN_PLAYER, self._on_action_open_player)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Poll once immediately, then install the periodic timers."""
        if self._running:
            return
        self._running = True
        logger.info(
            "Polling %s every %.2fs (position every %.2fs)",
            self._channel.app_name, self._poll_interval, self._position_interval,
        )
        self._poll_snapshot()
        self._poll_flags()
        self._timer_ids.append(
            GLib.timeout_add(_to_millis(self._poll_interval), self._on_primary_tick)
        )
        self._timer_ids.append(
            GLib.timeout_add(_to_millis(self._position_interval), self._on_position_tick)
        )

    def stop(self) -> None:
        """Remove every timer and stop the worker; pending resyncs become no-ops."""
        self._running = False
        for timer_id in self._timer_ids:
            GLib.source_remove(timer_id)
        self._timer_ids.clear()
        self._executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Timer callbacks (main loop)
    # ------------------------------------------------------------------
    def _on_primary_tick(self) -> bool:
        if not self._running:
            return False
        self._poll_snapshot()
        self._poll_flags()
        return True  # Continue polling

    def _on_position_tick(self) -> bool:
        if not self._running:
            return False
        self._query(QUERY_POSITION, self._channel.get_position, self._handle_position)
        return True  # Continue polling

    def _poll_snapshot(self) -> None:
        self._query(QUERY_SNAPSHOT, self._channel.get_snapshot, self._handle_snapshot)

    def _poll_flags(self) -> None:
        self._query(QUERY_SHUFFLE, self._channel.get_shuffle, self._handle_shuffle)
        self._query(QUERY_REPEAT, self._channel.get_repeat, self._handle_repeat)

    def resync_shuffle(self) -> bool:
        """Re-read the shuffle flag after a toggle. Returns False (one-shot timer)."""
        if self._running:
            self._query(QUERY_SHUFFLE, self._channel.get_shuffle, self._handle_shuffle, coalesce=False)
        return False

    def resync_repeat(self) -> bool:
        """Re-read the repeat flag after a toggle. Returns False (one-shot timer)."""
        if self._running:
            self._query(QUERY_REPEAT, self._channel.get_repeat, self._handle_repeat, coalesce=False)
        return False

    def _query(
        self,
        kind: str,
        func: Callable[[], str],
        handler: Callable[[str], None],
        coalesce: bool = True,
    ) -> None:
        """
        Run a channel query off the main loop.

        With ``coalesce`` the query is skipped while one of the same kind is
        still pending; resyncs pass False because a pending query may predate
        the toggle.
        """
        if coalesce and self._in_flight.get(kind, 0):
            logger.debug("Skipping %s query; previous one still running", kind)
            return
        self._in_flight[kind] = self._in_flight.get(kind, 0) + 1

        def on_done(raw: Optional[str], error: Optional[BaseException]) -> None:
            self._finish(kind)
            if not self._running:
                return
            if error is not None:
                self._handle_query_error(kind, error)
                return
            handler(raw)

        if run_in_background(self._executor, func, on_done) is None:
            self._finish(kind)

    def _finish(self, kind: str) -> None:
        remaining = self._in_flight.get(kind, 0) - 1
        if remaining > 0:
            self._in_flight[kind] = remaining
        else:
            self._in_flight.pop(kind, None)

    # ------------------------------------------------------------------
    # Reconciliation (main loop)
    # ------------------------------------------------------------------
    def _handle_snapshot(self, raw: str) -> None:
        try:
            snapshot = parse(raw)
        except MalformedSnapshotError as e:
            logger.debug("Malformed snapshot (%d fields): %r", e.field_count, raw)
            self._set_no_track()
            return
        self.reconcile(snapshot)

    def reconcile(self, snapshot: TrackSnapshot) -> None:
        """Merge one snapshot into the store, then request its artwork."""
        try:
            ensure_available(snapshot)
        except PlayerUnavailableError as e:
            logger.debug("%s", e)
            if e.not_running:
                self._set_unavailable()
            else:
                self._set_no_track()
            return
        self._store.apply_snapshot(snapshot)
        # Merge first so the fetcher's gate sees this tick's reference
        self._artwork.request(snapshot.artwork_url)

    def _set_unavailable(self) -> None:
        self._store.set_player_unavailable()
        # Re-fetch the same artwork once the player is back
        self._artwork.reset()

    def _set_no_track(self) -> None:
        self._store.set_no_track()
        # The store dropped the artwork; let the same URL be fetched again
        self._artwork.reset()

    def _handle_position(self, raw: str) -> None:
        try:
            position = parse_position(raw)
        except ValueError:
            return
        self._store.set_position(position)

    def _handle_shuffle(self, raw: str) -> None:
        self._store.set_shuffle_enabled(parse_flag(raw))

    def _handle_repeat(self, raw: str) -> None:
        self._store.set_repeat_mode(RepeatMode.from_flag(parse_flag(raw)))

    def _handle_query_error(self, kind: str, error: BaseException) -> None:
        if not isinstance(error, ChannelInvocationError):
            logger.error("Unexpected error in %s query: %s", kind, error, exc_info=error)
            return
        logger.debug("%s query failed: %s", kind, error)
        # Only the snapshot query degrades the store; flag/position failures are silent
        if kind == QUERY_SNAPSHOT:
            self._set_unavailable()

    # ------------------------------------------------------------------
    # Commands (fire-and-forget)
    # ------------------------------------------------------------------
    def _command(self, func: Callable[..., None], *args: Any) -> None:
        run_in_background(self._executor, func, None, *args)

    def play_pause(self) -> None:
        self._command(self._channel.play_pause)

    def next_track(self) -> None:
        self._command(self._channel.next_track)

    def previous_track(self) -> None:
        self._command(self._channel.previous_track)

    def seek(self, position: float) -> None:
        """Seek to ``position`` seconds; the store catches up on the next poll."""
        self._command(self._channel.set_position, position)

    def toggle_shuffle(self) -> None:
        self._command(self._channel.toggle_shuffle)
        GLib.timeout_add(_to_millis(self._resync_delay), self.resync_shuffle)

    def toggle_repeat(self) -> None:
        self._command(self._channel.toggle_repeat)
        GLib.timeout_add(_to_millis(self._resync_delay), self.resync_repeat)

    def open_player(self) -> None:
        self._command(self._channel.open_player)

    # ------------------------------------------------------------------
    # Action events
    # ------------------------------------------------------------------
    def _on_action_play_pause(self, data: Optional[Dict[str, Any]]) -> None:
        self.play_pause()

    def _on_action_next(self, data: Optional[Dict[str, Any]]) -> None:
        self.next_track()

    def _on_action_previous(self, data: Optional[Dict[str, Any]]) -> None:
        self.previous_track()

    def _on_action_seek(self, data: Optional[Dict[str, Any]]) -> None:
        if not data or "position" not in data:
            logger.warning("Seek action without a position: %r", data)
            return
        self.seek(float(data["position"]))

    def _on_action_toggle_shuffle(self, data: Optional[Dict[str, Any]]) -> None:
        self.toggle_shuffle()

    def _on_action_toggle_repeat(self, data: Optional[Dict[str, Any]]) -> None:
        self.toggle_repeat()

    def _on_action_open_player(self, data: Optional[Dict[str, Any]]) -> None:
        self.open_player()
