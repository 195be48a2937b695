"""Integration with the Spotify desktop app via AppleScript (`osascript`).

This module lets us:
- Query the current track snapshot, position, shuffle and repeat state
- Control playback (play/pause/next/previous/seek)
- Toggle shuffle and repeat
- Launch the player

Every call is a blocking subprocess; callers run them off the main loop.
"""

from __future__ import annotations

import shutil
import subprocess
from typing import Optional

from core.config import get_config
from core.exceptions import ChannelInvocationError
from core.logging import get_logger
from core.snapshot import ERROR_SENTINEL, FIELD_SEPARATOR, NOT_RUNNING_SENTINEL

logger = get_logger(__name__)


def applescript_escape(value: str) -> str:
    """Escape a value for use inside an AppleScript string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return escaped.replace("\n", " ").replace("\r", " ")


class SpotifyChannel:
    """Thin wrapper around `osascript` for querying and commanding Spotify."""

    def __init__(
        self,
        app_name: Optional[str] = None,
        osascript_path: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        config = get_config()
        self._player_name = app_name or config.player_app_name
        self._app_name = applescript_escape(self._player_name)
        configured = osascript_path or str(config.osascript_path)
        self._osascript_path: Optional[str] = shutil.which(configured) or shutil.which("osascript")
        self._timeout = timeout if timeout is not None else config.script_timeout

    # ------------------------------------------------------------------
    # Availability / helpers
    # ------------------------------------------------------------------
    @property
    def app_name(self) -> str:
        return self._player_name

    def is_available(self) -> bool:
        """Return True if `osascript` could be found."""
        return self._osascript_path is not None

    def _run(self, script: str) -> str:
        """
        Run an AppleScript snippet and return its stdout without the trailing newline.

        Raises:
            ChannelInvocationError: if the script could not be run or exited non-zero
        """
        if not self._osascript_path:
            raise ChannelInvocationError("osascript not found")

        cmd = [self._osascript_path, "-e", script]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ChannelInvocationError(f"Script timed out after {self._timeout}s") from e
        except OSError as e:
            raise ChannelInvocationError(str(e)) from e

        if result.returncode != 0:
            logger.debug("osascript exited with %d: %s", result.returncode, (result.stderr or "").strip())
            raise ChannelInvocationError(
                (result.stderr or "").strip() or f"osascript exited with {result.returncode}"
            )
        return (result.stdout or "").rstrip("\r\n")

    def _tell(self, body: str) -> str:
        return f'tell application "{self._app_name}"\n{body}\nend tell'

    def _guarded_query(self, expression: str, fallback: str) -> str:
        """Build a query that returns ``fallback`` when the app is not running or errors."""
        return self._tell(
            "if it is running then\n"
            "    try\n"
            f"        return {expression}\n"
            "    on error\n"
            f'        return "{fallback}"\n'
            "    end try\n"
            "else\n"
            f'    return "{fallback}"\n'
            "end if"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_snapshot(self) -> str:
        """
        Return the raw ``||``-joined snapshot of the current track.

        Yields the not-running or error sentinel when Spotify is closed or
        has no current track.
        """
        sep = FIELD_SEPARATOR
        body = (
            "if it is running then\n"
            "    try\n"
            "        set currentTrack to name of current track\n"
            "        set currentArtist to artist of current track\n"
            "        set currentAlbum to album of current track\n"
            "        set playerState to player state as string\n"
            "        set trackDuration to duration of current track\n"
            "        set playerPosition to player position\n"
            "        set trackId to id of current track\n"
            "        set artworkURL to artwork url of current track\n"
            f'        set resultString to currentTrack & "{sep}" & currentArtist & "{sep}" & currentAlbum'
            f' & "{sep}" & playerState & "{sep}" & (trackDuration as string) & "{sep}" & (playerPosition as string)\n'
            f'        set resultString to resultString & "{sep}" & trackId & "{sep}" & artworkURL\n'
            "        return resultString\n"
            "    on error\n"
            f'        return "{ERROR_SENTINEL}"\n'
            "    end try\n"
            "else\n"
            f'    return "{NOT_RUNNING_SENTINEL}"\n'
            "end if"
        )
        return self._run(self._tell(body))

    def get_position(self) -> str:
        """Return the player position in seconds as text ("0" when unavailable)."""
        return self._run(self._guarded_query("player position as string", "0"))

    def get_shuffle(self) -> str:
        """Return "true"/"false" for the shuffle flag."""
        return self._run(self._guarded_query("shuffling as string", "false"))

    def get_repeat(self) -> str:
        """Return "true"/"false" for the repeat flag."""
        return self._run(self._guarded_query("repeating as string", "false"))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def play_pause(self) -> None:
        self._run(self._tell("playpause"))

    def next_track(self) -> None:
        self._run(self._tell("next track"))

    def previous_track(self) -> None:
        self._run(self._tell("previous track"))

    def set_position(self, seconds: float) -> None:
        """Seek to an absolute position; the player takes whole seconds."""
        self._run(self._tell(f"set player position to {int(seconds)}"))

    def toggle_shuffle(self) -> None:
        self._run(self._tell("set shuffling to not shuffling"))

    def toggle_repeat(self) -> None:
        self._run(self._tell("set repeating to not repeating"))

    def open_player(self) -> None:
        """Launch (or focus) the player application."""
        opener = shutil.which("open")
        if opener is None:
            raise ChannelInvocationError("`open` not found")
        try:
            subprocess.run(
                [opener, "-a", self._player_name],
                capture_output=True,
                check=True,
                timeout=self._timeout,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise ChannelInvocationError(f"Could not open {self._player_name}: {e}") from e
