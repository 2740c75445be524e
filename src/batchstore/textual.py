"""Textual integration for batchstore. Opt-in — requires textual.

bind() subscribes a widget-updating callback to a container. Running-state
guard, NoMatches handling and thread marshalling live here, not at each
call site. Textual runs on asyncio, so the default checkpoint scheduler
works inside an app without further setup.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Keyed by id(app) so multiple apps work in tests. An id is present exactly
# while inside a pause() block for that app.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, readable, effect):
    """Subscribe effect to readable, safely bridged to Textual widgets.

    Calls are skipped while the app is paused or not running, NoMatches
    from widget queries is dropped, and notifications arriving on another
    thread are marshalled with call_from_thread. Returns the unsubscribe
    function.

    Usage:
        counter = store(0).actions(...)
        unbind = bind(app, counter, lambda n: app.query_one("#count").update(str(n)))
    """
    _main = threading.get_ident()

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            effect(value)
        except NoMatches:
            pass

    return readable.subscribe(_guarded)
