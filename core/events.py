"""Centralized event bus for decoupled component communication."""

from typing import Any, Callable, Dict, List
from core.logging import get_logger

logger = get_logger(__name__)


class EventBus:
    """Publish-subscribe event system. Components publish/subscribe without knowing each other.

    Event Flow Architecture:
    - UI components (IslandWindow, PlayerControls, the app menu) publish ACTION_* events (requests)
    - Core (PlaybackStore, Preferences) publishes *_CHANGED events (notifications)
    - The Poller turns ACTION_* events into player commands; it never talks to the UI directly
    """

    # =========================================================================
    # Core -> UI: State Change Notifications
    # =========================================================================

    # Published by PlaybackStore
    # {"track_name": str, "artist_name": str, "album_name": str, "track_id": str}
    TRACK_CHANGED = "track.changed"
    # {"playing": bool}
    PLAYBACK_STATE_CHANGED = "playback.state_changed"
    # {"position": float, "duration": float}
    PLAYBACK_PROGRESS = "playback.progress"
    # {"enabled": bool}
    SHUFFLE_CHANGED = "playback.shuffle_changed"
    # {"mode": RepeatMode}
    REPEAT_CHANGED = "playback.repeat_changed"
    # {"artwork": Pixbuf | None}
    ARTWORK_CHANGED = "artwork.changed"
    # {"availability": PlayerAvailability}
    AVAILABILITY_CHANGED = "player.availability_changed"

    # Published by Preferences
    THEME_CHANGED = "preferences.theme_changed"
    LANGUAGE_CHANGED = "preferences.language_changed"

    # =========================================================================
    # UI -> Core: Action Requests (handled by SpotifyPoller)
    # =========================================================================

    ACTION_PLAY_PAUSE = "action.play_pause"
    ACTION_NEXT = "action.next"
    ACTION_PREV = "action.previous"
    # {"position": float}
    ACTION_SEEK = "action.seek"
    ACTION_TOGGLE_SHUFFLE = "action.toggle_shuffle"
    ACTION_TOGGLE_REPEAT = "action.toggle_repeat"
    ACTION_OPEN_PLAYER = "action.open_player"

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Any], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[Any], None]) -> None:
        if event not in self._subscribers:
            self._subscribers[event] = []
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[[Any], None]) -> None:
        if event in self._subscribers:
            try:
                self._subscribers[event].remove(callback)
            except ValueError:
                pass

    def publish(self, event: str, data: Any = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(data)
            except Exception as e:
                logger.error(
                    "Error in event callback for %s: %s", event, e, exc_info=True
                )
