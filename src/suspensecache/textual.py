"""Textual integration for suspensecache. Opt-in — requires textual.

Bridges QuerySubscription.listen() to widgets: results are dropped while
the app is not running or is paused for widget replacement, NoMatches
from widget queries is swallowed, and calls from other threads are
marshaled through app.call_from_thread.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("suspensecache.textual")

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Drop query updates during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def listen(app, subscription, callback):
    """subscription.listen() that safely delivers results to Textual widgets.

    Returns the unsubscribe function.
    """
    _main = threading.get_ident()

    def _guarded(result):
        if not is_safe(app):
            logger.debug("Dropped update for %r: app not safe", subscription)
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, result)
        else:
            _safe(result)

    def _safe(result):
        try:
            callback(result)
        except NoMatches:
            pass

    return subscription.listen(_guarded)
