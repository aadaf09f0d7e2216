"""Store — a plain reducer-driven state container.

Holds one state tree, applies dispatched actions through a reducer and tells
listeners when the tree was replaced. Callable actions are thunks and are
called with `(dispatch, get_state)`.

Enhancers wrap store creation: `create_store(reducer, enhancer=e)` calls
`e(create_store)(reducer, preloaded_state)`. See `partx.enhancer`.
"""

from __future__ import annotations

from typing import Any, Callable

from partx.constants import INIT
from partx.errors import InvalidListenerError

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]
Reducer = Callable[[Any, Any], Any]


def check_listener(listener: object) -> None:
    if not callable(listener):
        raise InvalidListenerError(
            f"Expected the listener to be a function. Instead, received: {type(listener).__name__!r}"
        )


class Store:
    """Reducer-driven state container with store-level subscriptions."""

    def __init__(self, reducer: Reducer, preloaded_state: Any = None) -> None:
        if not callable(reducer):
            raise TypeError(f"Expected the reducer to be a function, got {reducer!r}")
        self._reducer = reducer
        self._state = preloaded_state
        # Copy-on-write: a notification iterates the tuple it started with.
        self._listeners: tuple[Listener, ...] = ()
        self.dispatch({"type": INIT})

    def get_state(self) -> Any:
        return self._state

    def dispatch(self, action: Any) -> Any:
        if callable(action):
            return action(self.dispatch, self.get_state)
        self._state = self._reducer(self._state, action)
        for listener in self._listeners:
            listener()
        return action

    def subscribe(self, listener: Listener) -> Unsubscribe:
        check_listener(listener)
        self._listeners = (*self._listeners, listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            self._listeners = _without(self._listeners, listener)

        return unsubscribe

    def replace_reducer(self, reducer: Reducer) -> None:
        self._reducer = reducer
        self.dispatch({"type": INIT})


def _without(listeners: tuple, listener: Listener) -> tuple:
    """Drop the first occurrence of `listener`."""
    for index, candidate in enumerate(listeners):
        if candidate is listener:
            return listeners[:index] + listeners[index + 1 :]
    return listeners


def create_store(
    reducer: Reducer,
    preloaded_state: Any = None,
    enhancer: Callable[[Callable[..., Any]], Callable[..., Any]] | None = None,
) -> Any:
    if enhancer is not None:
        return enhancer(create_store)(reducer, preloaded_state)
    return Store(reducer, preloaded_state)
