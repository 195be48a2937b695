"""Helpers for running blocking work off the GLib main loop.

Channel calls and artwork downloads block; they run on an executor and
their outcome is handed back to the main loop with ``GLib.idle_add`` so
that every store mutation happens on the main loop.
"""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional

# ============================================================================
# Third-Party Imports (alphabetical, with version requirements)
# ============================================================================
import gi
gi.require_version("GLib", "2.0")
from gi.repository import GLib

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
from core.logging import get_logger

logger = get_logger(__name__)

# on_done(result, error): exactly one of the two is meaningful
Completion = Callable[[Any, Optional[BaseException]], None]


def run_in_background(
    executor: Executor,
    func: Callable[..., Any],
    on_done: Optional[Completion] = None,
    *args: Any,
) -> Optional[Future]:
    """Run ``func(*args)`` on ``executor`` and deliver the outcome on the main loop.

    Args:
        executor: Worker pool to run the blocking call on.
        func: The blocking callable.
        on_done: Called on the main loop as ``on_done(result, None)`` or
            ``on_done(None, error)``. Omit for fire-and-forget work.

    Returns:
        The submitted future, or None if the executor has been shut down.
    """
    try:
        future = executor.submit(func, *args)
    except RuntimeError:
        # Executor already shut down (application is quitting)
        logger.debug("Dropping background call to %s after shutdown", getattr(func, "__name__", func))
        return None

    def _deliver(done: Future) -> None:
        error = done.exception()
        result = None if error is not None else done.result()
        if on_done is None:
            if error is not None:
                logger.debug("Background call failed: %s", error)
            return
        GLib.idle_add(_invoke_once, on_done, result, error)

    future.add_done_callback(_deliver)
    return future


def _invoke_once(on_done: Completion, result: Any, error: Optional[BaseException]) -> bool:
    on_done(result, error)
    return False  # One-shot idle source
