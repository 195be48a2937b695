"""Observable playback state mirrored from the player.

The store is mutated only on the GLib main loop (by the poller's
reconciliation and the artwork completion handler). Every setter publishes
on the event bus only when the value actually changes, so feeding the same
snapshot twice is silent.
"""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

# ============================================================================
# Third-Party Imports (alphabetical, with version requirements)
# ============================================================================
# None

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
from core.events import EventBus
from core.logging import get_logger
from core.snapshot import TrackSnapshot

logger = get_logger(__name__)

NO_TRACK_TEXT = "No track found"
NO_ARTIST_TEXT = "No artist found"
NOT_RUNNING_TEXT = "Spotify is not running"


class RepeatMode(Enum):
    """Repeat setting. The player only reports on/off, which maps to CONTEXT/OFF."""

    OFF = "off"
    TRACK = "track"
    CONTEXT = "context"

    @classmethod
    def from_flag(cls, enabled: bool) -> "RepeatMode":
        return cls.CONTEXT if enabled else cls.OFF


class PlayerAvailability(Enum):
    """Canonical status; the presentation layer turns it into localized text."""

    AVAILABLE = "available"
    NO_TRACK = "no_track"
    NOT_RUNNING = "not_running"


@dataclass(frozen=True)
class NowPlaying:
    """Immutable copy of the store, safe to hand to any thread."""

    track_name: str
    artist_name: str
    album_name: str
    track_id: str
    is_playing: bool
    duration: float
    position: float
    shuffle_enabled: bool
    repeat_mode: RepeatMode
    artwork: Any
    artwork_url: str
    availability: PlayerAvailability


class PlaybackStore:
    """Process-lifetime model of what the player is doing."""

    def __init__(self, event_bus: EventBus):
        self._event_bus = event_bus

        self._track_name: str = NO_TRACK_TEXT
        self._artist_name: str = NO_ARTIST_TEXT
        self._album_name: str = ""
        self._track_id: str = ""
        self._is_playing: bool = False
        self._duration: float = 0.0
        self._position: float = 0.0
        self._shuffle_enabled: bool = False
        self._repeat_mode: RepeatMode = RepeatMode.OFF
        self._artwork: Any = None
        self._artwork_url: str = ""
        self._availability: PlayerAvailability = PlayerAvailability.NO_TRACK

    # ============================================================================
    # Read access
    # ============================================================================

    @property
    def track_name(self) -> str:
        return self._track_name

    @property
    def artist_name(self) -> str:
        return self._artist_name

    @property
    def album_name(self) -> str:
        return self._album_name

    @property
    def track_id(self) -> str:
        return self._track_id

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def duration(self) -> float:
        """Track duration in seconds."""
        return self._duration

    @property
    def position(self) -> float:
        """Playback position in seconds."""
        return self._position

    @property
    def shuffle_enabled(self) -> bool:
        return self._shuffle_enabled

    @property
    def repeat_mode(self) -> RepeatMode:
        return self._repeat_mode

    @property
    def artwork(self) -> Any:
        """Decoded artwork image, or None."""
        return self._artwork

    @property
    def artwork_url(self) -> str:
        """Last artwork reference handed to the fetcher (informational)."""
        return self._artwork_url

    @property
    def availability(self) -> PlayerAvailability:
        return self._availability

    def now_playing(self) -> NowPlaying:
        """Return an immutable copy of the current state."""
        return NowPlaying(
            track_name=self._track_name,
            artist_name=self._artist_name,
            album_name=self._album_name,
            track_id=self._track_id,
            is_playing=self._is_playing,
            duration=self._duration,
            position=self._position,
            shuffle_enabled=self._shuffle_enabled,
            repeat_mode=self._repeat_mode,
            artwork=self._artwork,
            artwork_url=self._artwork_url,
            availability=self._availability,
        )

    # ============================================================================
    # Reconciliation
    # ============================================================================

    def apply_snapshot(self, snapshot: TrackSnapshot) -> bool:
        """
        Merge a parsed snapshot, touching only fields whose value differs.

        Args:
            snapshot: Snapshot from one successful query

        Returns:
            True if anything observable changed
        """
        track_changed = self._set_track_info(
            snapshot.track_name,
            snapshot.artist_name,
            snapshot.album_name,
            snapshot.track_id,
        )
        playing_changed = self._set_playing(snapshot.is_playing)
        progress_changed = self._set_progress(snapshot.position, snapshot.duration)
        availability_changed = self._set_availability(PlayerAvailability.AVAILABLE)
        return track_changed or playing_changed or progress_changed or availability_changed

    def set_no_track(self) -> None:
        """Reset to the "no track" placeholder, zeroing duration and position."""
        self._set_track_info(NO_TRACK_TEXT, "", "", "")
        self._set_playing(False)
        self._set_progress(0.0, 0.0)
        self.set_artwork(None)
        self._set_availability(PlayerAvailability.NO_TRACK)

    def set_player_unavailable(self) -> None:
        """Show the "not running" placeholder; duration and position are left as they were."""
        self._set_track_info(NOT_RUNNING_TEXT, "", "", "")
        self._set_playing(False)
        self.set_artwork(None)
        self._set_availability(PlayerAvailability.NOT_RUNNING)

    def set_position(self, position: float) -> None:
        """Overwrite the position reported by the position poll."""
        self._set_progress(position, self._duration)

    def set_shuffle_enabled(self, enabled: bool) -> None:
        if self._shuffle_enabled != enabled:
            self._shuffle_enabled = enabled
            self._event_bus.publish(EventBus.SHUFFLE_CHANGED, {"enabled": enabled})

    def set_repeat_mode(self, mode: RepeatMode) -> None:
        if self._repeat_mode != mode:
            self._repeat_mode = mode
            self._event_bus.publish(EventBus.REPEAT_CHANGED, {"mode": mode})

    def set_artwork_url(self, url: str) -> None:
        self._artwork_url = url

    def set_artwork(self, artwork: Any) -> None:
        """Replace the decoded artwork (None clears it)."""
        if artwork is self._artwork:
            return
        self._artwork = artwork
        self._event_bus.publish(EventBus.ARTWORK_CHANGED, {"artwork": artwork})

    # ============================================================================
    # Internal setters
    # ============================================================================

    def _set_track_info(self, track_name: str, artist_name: str, album_name: str, track_id: str) -> bool:
        new_values = (track_name, artist_name, album_name, track_id)
        old_values = (self._track_name, self._artist_name, self._album_name, self._track_id)
        if new_values == old_values:
            return False
        self._track_name, self._artist_name, self._album_name, self._track_id = new_values
        logger.debug("Track changed: %s - %s", artist_name, track_name)
        self._event_bus.publish(
            EventBus.TRACK_CHANGED,
            {
                "track_name": track_name,
                "artist_name": artist_name,
                "album_name": album_name,
                "track_id": track_id,
            },
        )
        return True

    def _set_playing(self, playing: bool) -> bool:
        if self._is_playing == playing:
            return False
        self._is_playing = playing
        self._event_bus.publish(EventBus.PLAYBACK_STATE_CHANGED, {"playing": playing})
        return True

    def _set_progress(self, position: float, duration: float) -> bool:
        # No clamping: position may transiently exceed duration
        if self._position == position and self._duration == duration:
            return False
        self._position = position
        self._duration = duration
        self._event_bus.publish(
            EventBus.PLAYBACK_PROGRESS,
            {"position": position, "duration": duration},
        )
        return True

    def _set_availability(self, availability: PlayerAvailability) -> bool:
        if self._availability == availability:
            return False
        self._availability = availability
        self._event_bus.publish(EventBus.AVAILABILITY_CHANGED, {"availability": availability})
        return True
