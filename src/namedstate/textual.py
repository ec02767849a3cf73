"""Textual integration for namedstate. Opt-in — requires textual.

// [LAW:single-enforcer] Guard + NoMatches + thread-marshal enforced here, not at callsites.
// [LAW:locality-or-seam] Textual coupling isolated in this module — the registry stays agnostic.
// [LAW:no-shared-mutable-globals] _paused_apps has single owner (this module), explicit API
//   (pause/is_safe), documented invariant (id present ↔ inside pause context).
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded watchers during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, registry, *, fps: float = 60.0):
    """Make app the owner of registry.

    Call from the app thread (e.g. in on_mount). Off-thread writes are
    marshaled with call_from_thread, and queued writes flush once per
    frame on an app interval timer. Returns the timer.
    """
    registry.set_scheduler(app.call_from_thread)
    return app.set_interval(1 / fps, registry.flush)


def subscribe(app, registry, name, effect_fn, *, once=False):
    """registry.subscribe() that safely bridges to Textual widgets.

    Guards against firing during pause/not-running, catches NoMatches
    from widget queries, and marshals watcher tasks onto the app thread.

    With once=True the next change consumes the watcher even when it is
    skipped because the app is paused or not running; effect_fn then
    never runs. Subscribe again after pause() if that change matters.
    """
    _main = threading.get_ident()

    def _guarded(new, old):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, new, old)
        else:
            _safe(new, old)

    def _safe(new, old):
        try:
            effect_fn(new, old)
        except NoMatches:
            pass

    if once:
        return registry.subscribe_once(name, _guarded)
    return registry.subscribe(name, _guarded)
