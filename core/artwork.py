"""Album artwork download and decoding.

Downloads happen on a worker thread with requests; decoding uses
GdkPixbuf. Completions are delivered on the GLib main loop, where they
update the playback store.
"""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from functools import partial
from typing import Any, Optional

import gi
gi.require_version("GdkPixbuf", "2.0")
gi.require_version("GLib", "2.0")
from gi.repository import GdkPixbuf, GLib
import requests

from core.config import get_config
from core.exceptions import ArtworkFetchError
from core.logging import get_logger
from core.playback_state import PlaybackStore
from core.workflow_utils import run_in_background

logger = get_logger(__name__)


def decode_image(data: bytes) -> GdkPixbuf.Pixbuf:
    """
    Decode raw image bytes into a Pixbuf.

    Raises:
        ArtworkFetchError: if the data is empty or not a still image GdkPixbuf understands
    """
    if not data:
        raise ArtworkFetchError("Empty artwork response")
    loader = GdkPixbuf.PixbufLoader()
    try:
        loader.write(data)
        loader.close()
    except GLib.Error as e:
        raise ArtworkFetchError(f"Could not decode artwork: {e.message}") from e
    pixbuf = loader.get_pixbuf()
    if pixbuf is None:
        raise ArtworkFetchError("Artwork decoded to nothing")
    return pixbuf


class ArtworkFetcher:
    """
    De-duplicating artwork fetcher.

    A request is skipped when the URL is empty or equals the last URL
    dispatched, whether or not that fetch has finished. Failed fetches clear
    the artwork instead of leaving the previous image on screen. Each
    dispatch bumps a generation counter, and completions from older
    generations are dropped so a slow stale download cannot replace newer
    artwork.
    """

    def __init__(
        self,
        store: PlaybackStore,
        executor: Optional[Executor] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        config = get_config()
        self._store = store
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="artwork")
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": config.artwork_user_agent})
        self._timeout = timeout if timeout is not None else config.artwork_timeout
        self._last_url: str = ""
        self._generation: int = 0

    @property
    def last_url(self) -> str:
        return self._last_url

    def request(self, url: str) -> bool:
        """
        Fetch artwork for ``url`` unless it is empty or already dispatched.

        Returns:
            True if a download was dispatched
        """
        if not url or url == self._last_url:
            return False

        self._last_url = url
        self._generation += 1
        self._store.set_artwork_url(url)
        logger.debug("Fetching artwork %s (generation %d)", url, self._generation)
        run_in_background(
            self._executor,
            self._download,
            partial(self._on_fetched, self._generation, url),
            url,
        )
        return True

    def reset(self) -> None:
        """Forget the last URL and drop any in-flight completion."""
        self._last_url = ""
        self._generation += 1

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
        self._session.close()

    def _download(self, url: str) -> GdkPixbuf.Pixbuf:
        """Runs on the worker thread."""
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ArtworkFetchError(f"Could not download artwork: {e}") from e
        return decode_image(response.content)

    def _on_fetched(self, generation: int, url: str, image: Any, error: Optional[BaseException]) -> None:
        """Runs on the main loop."""
        if generation != self._generation:
            logger.debug("Discarding stale artwork for %s", url)
            return
        if error is not None:
            logger.debug("Artwork unavailable for %s: %s", url, error)
            self._store.set_artwork(None)
            return
        self._store.set_artwork(image)
