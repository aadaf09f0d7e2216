"""Store enhancer — per-part subscriptions and batched notification.

`create_enhancer(part_map, notifier)` returns an enhancer for `create_store`.
The enhanced store wraps the base store's dispatch and get_state:

    dispatch(action)
      -> part action: collect the ids it touches (the part, its dependents,
         and for a composed part every descendant and their dependents)
      -> base dispatch
      -> root identity changed? bump the version, mark the ids dirty and hand
         `notify` to the notifier (which may defer or coalesce it)

    notify()
      -> store listeners, in registration order
      -> listeners of each dirty part id, once per id per pass

Listener collections are copy-on-write, so subscribing or unsubscribing
during a notification never changes the pass in progress.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from partx.constants import PART_ID
from partx.errors import PartError, UnknownPartError
from partx.graph import PartGraph, default_graph
from partx.parts import Part, StatefulPart
from partx.selection import Selection
from partx.store import Listener, Reducer, Unsubscribe, _without, check_listener
from partx.utils import unique
from partx.validate import (
    is_composed_part,
    is_part,
    is_part_action,
    is_select_part,
    is_stateful_part,
    is_update_part,
    is_updateable_part,
)

logger = logging.getLogger("partx.enhancer")

Notify = Callable[[], None]
Notifier = Callable[[Notify], None]


def immediate(notify: Notify) -> None:
    """Default notifier: notify synchronously, at the end of each dispatch."""
    notify()


class PartStore:
    """A base store extended with part-aware reads and subscriptions."""

    def __init__(
        self,
        store: Any,
        part_map: Mapping[int, StatefulPart],
        notifier: Notifier | None = None,
        graph: PartGraph | None = None,
    ) -> None:
        self._store = store
        self._part_map = part_map
        self._graph = default_graph if graph is None else graph
        self._notifier = immediate if notifier is None else notifier
        self._version = 0
        self._selections: dict[int, Selection] = {}
        # Dirty part ids awaiting a notify pass; a dict keeps insertion order.
        self._dirty: dict[int, None] = {}
        self._always: dict[int, None] = {}
        self._listeners: tuple[Listener, ...] = ()
        self._part_listeners: dict[int, tuple[Listener, ...]] = {}

    @property
    def version(self) -> int:
        """Incremented on every dispatch that replaces the state tree."""
        return self._version

    def get_version(self) -> int:
        return self._version

    # --- Reads ---

    def get_state(self, part: Part | None = None) -> Any:
        if part is None:
            return self._store.get_state()
        if not is_part(part):
            raise PartError(f"Expected a part, got {part!r}")

        if is_stateful_part(part):
            state = self._store.get_state()
            for key in part.path:
                if state is None:
                    return None
                state = state.get(key)
            return state

        if is_select_part(part):
            self._check_graph(part)
            selection = self._selections.get(part.id)
            if selection is None:
                selection = self._selections[part.id] = Selection(part)
            return selection.read(self.get_state, self._version)

        if is_update_part(part):
            raise PartError(f"{part!r} is write-only and has no readable value")
        raise PartError(f"{part!r} has no readable value")

    # --- Writes ---

    def dispatch(self, action: Any) -> Any:
        if callable(action):
            return action(self.dispatch, self.get_state)

        touched = self._touched_ids(action) if is_part_action(action) else ()

        prev = self._store.get_state()
        result = self._store.dispatch(action)
        next_state = self._store.get_state()

        if prev is not next_state:
            self._changed(touched)

        return result

    def set(self, part: Part, *args: Any) -> Any:
        """Update `part` through its setter, bound to this store."""
        if not is_updateable_part(part):
            raise PartError(f"{part!r} cannot be updated")
        return part.set(self.dispatch, self.get_state, *args)

    def replace_reducer(self, reducer: Reducer) -> None:
        """Swap the root reducer. Every subscribed part is treated as changed."""
        prev = self._store.get_state()
        self._store.replace_reducer(reducer)
        if prev is not self._store.get_state():
            self._changed(self._part_listeners)

    def _changed(self, part_ids) -> None:
        self._version += 1
        self._dirty.update(dict.fromkeys(part_ids))
        self._dirty.update(self._always)
        self._notifier(self._notify)

    def _touched_ids(self, action: dict) -> list[int]:
        part_id = action[PART_ID]
        part = self._part_map.get(part_id)
        if part is None:
            logger.debug("Dispatch for unknown part id %s", part_id)
            raise UnknownPartError(
                f"Part with id {part_id} not found. Is it part of this store?"
            )

        graph = part.graph
        touched = [part, *graph.dependents(part)]
        if is_composed_part(part):
            for descendant in part.descendants:
                touched.append(descendant)
                touched.extend(graph.dependents(descendant))
        return [touched_part.id for touched_part in unique(touched)]

    # --- Subscriptions ---

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

    def subscribe_to_part(self, part: Part, listener: Listener) -> Unsubscribe:
        check_listener(listener)
        self._check_graph(part)
        part_id = part.id
        if part.graph.is_always(part):
            self._always[part_id] = None
        self._update_part_listeners(
            part_id, (*self._part_listeners.get(part_id, ()), listener)
        )
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            self._update_part_listeners(
                part_id, _without(self._part_listeners.get(part_id, ()), listener)
            )

        return unsubscribe

    def _check_graph(self, part: Part) -> None:
        if part.graph is not self._graph:
            raise PartError(f"{part!r} belongs to another part graph than this store")

    def _update_part_listeners(self, part_id: int, listeners: tuple) -> None:
        part_listeners = dict(self._part_listeners)
        if listeners:
            part_listeners[part_id] = listeners
        else:
            part_listeners.pop(part_id, None)
            self._always.pop(part_id, None)
        self._part_listeners = part_listeners

    # --- Notification ---

    def _notify(self) -> None:
        listeners = self._listeners
        part_listeners = self._part_listeners
        dirty, self._dirty = self._dirty, {}
        logger.debug("Notify pass: %d dirty parts", len(dirty))

        for listener in listeners:
            listener()

        for part_id in dirty:
            for listener in part_listeners.get(part_id, ()):
                listener()

    def __getattr__(self, name: str) -> Any:
        # Anything not overridden here is served by the base store.
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._store, name)

    def __repr__(self) -> str:
        return f"PartStore(parts={len(self._part_map)}, version={self._version})"


def create_enhancer(
    part_map: Mapping[int, StatefulPart],
    notifier: Notifier | None = None,
    graph: PartGraph | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., PartStore]]:
    def enhancer(create_store: Callable[..., Any]) -> Callable[..., PartStore]:
        def enhanced_create_store(reducer: Reducer, preloaded_state: Any = None) -> PartStore:
            return PartStore(
                create_store(reducer, preloaded_state), part_map, notifier, graph
            )

        return enhanced_create_store

    return enhancer
