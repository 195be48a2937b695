"""Parsing of the raw text payloads returned by the Spotify control scripts."""

from dataclasses import dataclass
from enum import Enum

from core.exceptions import MalformedSnapshotError, PlayerUnavailableError

FIELD_SEPARATOR = "||"
SNAPSHOT_FIELD_COUNT = 8
PLAYING_STATE = "playing"

NOT_RUNNING_TOKEN = "NOT_RUNNING"
ERROR_TOKEN = "ERROR"
NOT_RUNNING_SENTINEL = "NOT_RUNNING||NOT_RUNNING||NOT_RUNNING||stopped||0||0||||"
ERROR_SENTINEL = "ERROR||ERROR||ERROR||stopped||0||0||||"


class PlaybackStatus(Enum):
    """Player state as reported by Spotify."""

    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"

    @classmethod
    def from_raw(cls, raw: str) -> "PlaybackStatus":
        # Case-sensitive on purpose; only the exact "playing" token counts
        if raw == PLAYING_STATE:
            return cls.PLAYING
        if raw == "paused":
            return cls.PAUSED
        return cls.STOPPED


@dataclass(frozen=True)
class TrackSnapshot:
    """One parsed reading of the player's current track."""

    track_name: str
    artist_name: str
    album_name: str
    status: PlaybackStatus
    duration_millis: float
    position: float
    track_id: str
    artwork_url: str

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def duration(self) -> float:
        """Track duration in seconds."""
        return self.duration_millis / 1000.0

    def _matches_sentinel(self, token: str) -> bool:
        # Sentinels carry no track id or artwork; real tracks always have an id
        return (
            self.track_name == token
            and self.artist_name == token
            and not self.track_id
            and not self.artwork_url
        )

    @property
    def is_not_running_sentinel(self) -> bool:
        return self._matches_sentinel(NOT_RUNNING_TOKEN)

    @property
    def is_error_sentinel(self) -> bool:
        return self._matches_sentinel(ERROR_TOKEN)


def _lenient_float(value: str) -> float:
    """Parse a number, falling back to 0.0 for anything unparseable."""
    try:
        return float(value)
    except ValueError:
        return 0.0


def parse(raw: str) -> TrackSnapshot:
    """
    Parse a full snapshot payload.

    Args:
        raw: ``track||artist||album||state||durationMillis||positionSeconds||trackId||artworkURL``

    Returns:
        The parsed TrackSnapshot. Fields beyond the eighth are ignored.

    Raises:
        MalformedSnapshotError: if the payload has fewer than 8 fields
    """
    fields = raw.split(FIELD_SEPARATOR)
    if len(fields) < SNAPSHOT_FIELD_COUNT:
        raise MalformedSnapshotError(raw, len(fields))

    track, artist, album, state, duration, position, track_id, artwork_url = fields[:SNAPSHOT_FIELD_COUNT]
    return TrackSnapshot(
        track_name=track,
        artist_name=artist,
        album_name=album,
        status=PlaybackStatus.from_raw(state),
        duration_millis=_lenient_float(duration),
        position=_lenient_float(position),
        track_id=track_id,
        artwork_url=artwork_url,
    )


def parse_position(raw: str) -> float:
    """Parse a position-only payload. Raises ValueError on garbage."""
    return float(raw.strip())


def parse_flag(raw: str) -> bool:
    """Parse a shuffle/repeat payload; only "true" (any case) is on."""
    return raw.strip().lower() == "true"


def ensure_available(snapshot: TrackSnapshot) -> TrackSnapshot:
    """
    Return ``snapshot`` unless it is one of the sentinel payloads.

    Raises:
        PlayerUnavailableError: for the not-running or script-error sentinel
    """
    if snapshot.is_not_running_sentinel:
        raise PlayerUnavailableError("Player is not running", not_running=True)
    if snapshot.is_error_sentinel:
        raise PlayerUnavailableError("Player reported a script error")
    return snapshot
