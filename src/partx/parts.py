"""Parts — the cells of the dependency graph.

Five kinds share one base class and are told apart by their `kind` tag:

- PrimitivePart: a leaf slice of state.
- ComposedPart: a named group of stateful parts; its slice is a dict keyed by
  the children's names.
- SelectPart: a read-only derivation over other parts (or the whole state).
- ProxyPart: a select part with a setter that may dispatch anything.
- UpdatePart: a write-only operation with no readable value.

Every part is wired into its `PartGraph` in its constructor. Composing a
stateful part rewrites the path, owner, action type and reducer of the part
and of everything beneath it, so a part can be composed into one owner only.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence

from partx.constants import (
    ALL_DEPENDENCIES,
    PART_ID,
    PartKind,
    SELECTABLE_KINDS,
    STATEFUL_KINDS,
)
from partx.errors import CompositionError, PartConfigError, PartError
from partx.graph import PartGraph, default_graph
from partx.utils import get_prefixed_type, identity, is_, to_screaming_snake_case

Dispatch = Callable[[Any], Any]
GetState = Callable[..., Any]
Reducer = Callable[[Any, dict], Any]


class Part:
    """Base for every part: identity, kind tag and graph membership."""

    __slots__ = ("id", "kind", "graph")

    KIND: PartKind

    def __init__(self, graph: PartGraph | None = None) -> None:
        self.graph = default_graph if graph is None else graph
        self.id = self.graph.new_id()
        self.kind = self.KIND
        self.graph.add(self)

    @property
    def dependents(self) -> tuple[Part, ...]:
        """Parts that must be considered changed whenever this one changes."""
        return self.graph.dependents(self)

    @property
    def dependencies(self):
        return ()

    def set(self, dispatch: Dispatch, get_state: GetState, *args: Any) -> Any:
        raise PartError(f"{self!r} cannot be updated")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id})"


# ─── Stateful parts ──────────────────────────────────────────────────────────


def _compose_reducer(name: str, reducer: Reducer) -> Reducer:
    """Lift a reducer of `state[name]` to a reducer of the enclosing slice."""

    def reduce(state: dict, action: dict) -> dict:
        prev = state.get(name)
        next_state = reducer(prev, action)
        return state if is_(prev, next_state) else {**state, name: next_state}

    return reduce


class StatefulPart(Part):
    """A part that owns a slice of the state tree."""

    __slots__ = (
        "name",
        "owner",
        "path",
        "initial_state",
        "reducer",
        "action_type",
        "parent",
    )

    def __init__(self, name: str, initial_state: Any, graph: PartGraph | None = None) -> None:
        if not isinstance(name, str) or not name:
            raise PartConfigError(f"Part name must be a non-empty string, got {name!r}")
        super().__init__(graph)
        self.name = name
        self.owner = name
        self.path: tuple[str, ...] = (name,)
        self.initial_state = initial_state
        self.reducer: Reducer = self._reduce
        self.action_type = f"UPDATE_{to_screaming_snake_case(name)}"
        self.parent: ComposedPart | None = None

    def _reduce(self, state: Any, action: dict) -> Any:
        raise NotImplementedError

    def __call__(self, value: Any) -> dict:
        """Build the action that sets this part's slice to `value`."""
        return {PART_ID: self.id, "type": self.action_type, "value": value}

    def set(self, dispatch: Dispatch, get_state: GetState, update: Any) -> Any:
        """Dispatch a new value, or a function of the current value."""
        value = update(get_state(self)) if callable(update) else update
        return dispatch(self(value))

    def update(
        self, action_type: str, get_value: Callable[..., Any] = identity
    ) -> UpdatePart:
        """Create a named update for this part.

        `get_value(*args)` computes the next value from the dispatch arguments;
        returning a callable makes it a functional update of the current value.
        The action is stamped with `action_type`, prefixed by the part's owners.
        """
        part = self

        def set_value(dispatch: Dispatch, get_state: GetState, *args: Any) -> Any:
            value = get_value(*args)
            if callable(value):
                value = value(get_state(part))
            action = part(value)
            action["type"] = get_prefixed_type(part.path, action_type)
            return dispatch(action)

        return UpdatePart(set_value, graph=self.graph)

    def __str__(self) -> str:
        return self.action_type

    def __repr__(self) -> str:
        return f"{type(self).__name__}({'.'.join(self.path)!r}, id={self.id})"


class PrimitivePart(StatefulPart):
    __slots__ = ()

    KIND = PartKind.PRIMITIVE

    def _reduce(self, state: Any, action: dict) -> Any:
        if action.get(PART_ID) == self.id and not is_(state, action["value"]):
            return action["value"]
        return state


class ComposedPart(StatefulPart):
    """A namespaced group of stateful parts."""

    __slots__ = ("children", "descendants")

    KIND = PartKind.COMPOSED

    def __init__(
        self, name: str, children: Sequence[StatefulPart], graph: PartGraph | None = None
    ) -> None:
        children = tuple(children)
        _check_children(name, children)
        super().__init__(
            name, {child.name: child.initial_state for child in children}, graph
        )
        self.children = children
        self.descendants = _collect_descendants(children)

        for child in children:
            child.parent = self

        for descendant in self.descendants:
            descendant.path = (name, *descendant.path)
            descendant.action_type = get_prefixed_type(
                descendant.path, descendant.action_type
            )
            descendant.reducer = _compose_reducer(descendant.owner, descendant.reducer)
            descendant.owner = name

        self.graph.connect(self, children)

    @property
    def dependencies(self) -> tuple[StatefulPart, ...]:
        return self.children

    def _reduce(self, state: Any, action: dict) -> Any:
        if action.get(PART_ID) == self.id and not is_(state, action["value"]):
            return {**state, **action["value"]}
        return state


def _check_children(name: str, children: tuple) -> None:
    if not children:
        raise PartConfigError(f"Composed part {name!r} needs at least one child")
    names: set[str] = set()
    for child in children:
        if not isinstance(child, Part) or child.kind not in STATEFUL_KINDS:
            raise PartConfigError(
                f"Composed part {name!r} can only contain stateful parts, got {child!r}"
            )
        if child.parent is not None:
            raise CompositionError(
                f"{child!r} is already composed into {child.parent!r}; "
                f"it cannot also be composed into {name!r}"
            )
        if child.name in names:
            raise PartConfigError(f"Composed part {name!r} has two children named {child.name!r}")
        names.add(child.name)


def _collect_descendants(children: tuple) -> tuple[StatefulPart, ...]:
    descendants: list[StatefulPart] = []
    for child in children:
        descendants.append(child)
        if child.kind is PartKind.COMPOSED:
            descendants.extend(child.descendants)
    return tuple(descendants)


# ─── Derived parts ───────────────────────────────────────────────────────────


class SelectPart(Part):
    """A read-only value derived from other parts or from the whole state.

    Bound selects call `get(*source_values)`. Unbound selects (no sources)
    call `get(get_state)` and are treated as changed on every state change.
    Memoization is done by the store reading the part, see `partx.selection`.
    """

    __slots__ = ("sources", "get", "is_equal")

    KIND = PartKind.SELECT

    def __init__(
        self,
        get: Callable[..., Any],
        sources: Sequence[Part] | None = None,
        is_equal: Callable[[Any, Any], bool] | None = None,
        graph: PartGraph | None = None,
    ) -> None:
        if not callable(get) or isinstance(get, Part):
            raise PartConfigError(f"Select get must be a plain callable, got {get!r}")
        if sources is not None:
            sources = tuple(sources)
            if not sources:
                raise PartConfigError("Select sources must not be empty; omit them for an unbound select")
            for source in sources:
                if not isinstance(source, Part) or source.kind not in SELECTABLE_KINDS:
                    raise PartConfigError(f"Cannot select from {source!r}")
        super().__init__(graph)
        self.sources: tuple[Part, ...] | None = sources
        self.get = get
        self.is_equal = is_ if is_equal is None else is_equal

        if sources is None:
            self.graph.mark_always(self)
        else:
            self.graph.connect(self, sources)

    @property
    def bound(self) -> bool:
        return self.sources is not None

    @property
    def dependencies(self):
        return ALL_DEPENDENCIES if self.sources is None else self.sources

    def select(self, get_state: GetState) -> Any:
        """Derive the value without memoization."""
        if self.sources is None:
            return self.get(get_state)
        return self.get(*(get_state(source) for source in self.sources))


class ProxyPart(SelectPart):
    """A select part whose setter may dispatch arbitrary actions."""

    __slots__ = ("_set",)

    KIND = PartKind.PROXY

    def __init__(
        self,
        get: Callable[..., Any],
        set: Callable[..., Any],
        sources: Sequence[Part] | None = None,
        is_equal: Callable[[Any, Any], bool] | None = None,
        graph: PartGraph | None = None,
    ) -> None:
        if not callable(set) or isinstance(set, Part):
            raise PartConfigError(f"Proxy set must be a plain callable, got {set!r}")
        super().__init__(get, sources, is_equal, graph)
        self._set = set

    def set(self, dispatch: Dispatch, get_state: GetState, *args: Any) -> Any:
        return self._set(dispatch, get_state, *args)

    def __call__(self, *args: Any) -> Callable[[Dispatch, GetState], Any]:
        """Bind arguments into a thunk the store can dispatch."""
        return lambda dispatch, get_state: self._set(dispatch, get_state, *args)


# ─── Update parts ────────────────────────────────────────────────────────────


class UpdatePart(Part):
    """A write-only operation. Calling it returns a dispatchable thunk."""

    __slots__ = ("_set",)

    KIND = PartKind.UPDATE

    def __init__(self, set: Callable[..., Any], graph: PartGraph | None = None) -> None:
        if not callable(set) or isinstance(set, Part):
            raise PartConfigError(f"Update set must be a plain callable, got {set!r}")
        super().__init__(graph)
        self._set = set
        self.graph.mark_always(self)

    @property
    def dependencies(self):
        return ALL_DEPENDENCIES

    def set(self, dispatch: Dispatch, get_state: GetState, *args: Any) -> Any:
        return self._set(dispatch, get_state, *args)

    def __call__(self, *args: Any) -> Callable[[Dispatch, GetState], Any]:
        return lambda dispatch, get_state: self._set(dispatch, get_state, *args)
