"""Textual integration for partx. Opt-in — requires textual.

Binds parts to a Textual app: `watch_part` subscribes to one part and pushes
its value into widgets whenever it changes, `bind_update` turns any
updateable part into a plain callable for event handlers.

Effects are guarded: they are skipped while the app is not running or is
paused for widget replacement, NoMatches raised by widget queries is
swallowed, and calls from other threads are marshaled through
`app.call_from_thread`.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from partx.utils import is_

logger = logging.getLogger("partx.textual")

# Paused apps by id(app); the app object itself is never touched.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend watched effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def watch_part(app, store, part, effect_fn, *, fire_immediately=False):
    """Call effect_fn(value) whenever the value of `part` changes.

    The value is read with `store.get_state(part)` after each notification
    for the part and compared to the last delivered one, so notifications
    that leave the value unchanged do not reach the effect.

    Returns the unsubscribe function.
    """
    _main = threading.get_ident()
    last = [store.get_state(part)]

    def _guarded():
        value = store.get_state(part)
        if is_(value, last[0]):
            return
        if not is_safe(app):
            logger.debug("Skipped update of %r: app not safe", part)
            return
        last[0] = value
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            effect_fn(value)
        except NoMatches:
            pass

    if fire_immediately and is_safe(app):
        _safe(last[0])

    return store.subscribe_to_part(part, _guarded)


def bind_update(store, part):
    """Return a callable that updates `part` through `store`.

    Usage:
        rename = stx.bind_update(store, title_part)
        rename("New title")
    """

    def update(*args):
        return store.set(part, *args)

    return update
