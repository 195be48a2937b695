"""Custom exception hierarchy for Spotisland.

Every failure in the polling core is recoverable; these types let the
poller tell the failure classes apart before degrading the store.
"""


class SpotislandError(Exception):
    """Base exception for all Spotisland errors."""

    pass


class ChannelInvocationError(SpotislandError):
    """The control script could not be run at all (osascript missing, timeout, non-zero exit)."""

    pass


class PlayerUnavailableError(SpotislandError):
    """The player reported that it is not running or hit a runtime error."""

    def __init__(self, message: str, not_running: bool = False):
        super().__init__(message)
        self.not_running = not_running



class MalformedSnapshotError(SpotislandError):
    """A snapshot payload did not contain the expected number of fields."""

    def __init__(self, raw: str, field_count: int):
        super().__init__(f"Expected 8 fields in snapshot, got {field_count}")
        self.raw = raw
        self.field_count = field_count


class ArtworkFetchError(SpotislandError):
    """Artwork could not be downloaded or decoded."""

    pass


class ConfigurationError(SpotislandError):
    """Errors related to configuration."""

    pass
