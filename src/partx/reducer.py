"""Reducer composition.

The parts reducer routes a part action to the one top-level slice that owns
the targeted part and runs that part's reducer, which composition has already
lifted to take the whole owner slice. Only the objects along the changed
path get a new identity.

Non-part actions can be handled by an "other" reducer, either a function of
the whole state or a mapping of key -> reducer. Its result is merged over the
state.

Reducers receive `None` as the state when they should build their initial
state. A reducer must never return `None`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from partx.constants import PART_ID
from partx.errors import PartConfigError, UnknownPartError
from partx.parts import StatefulPart
from partx.utils import is_
from partx.validate import is_composed_part, is_part_action

logger = logging.getLogger("partx.reducer")

Reducer = Callable[[Any, dict], Any]
PartMap = Mapping[int, StatefulPart]


def get_initial_state(parts: Sequence[StatefulPart]) -> dict:
    return {part.name: part.initial_state for part in parts}


def get_part_map(parts: Sequence[StatefulPart]) -> dict[int, StatefulPart]:
    """Every stateful part reachable from `parts`, keyed by id."""
    part_map: dict[int, StatefulPart] = {}
    for part in parts:
        part_map[part.id] = part
        if is_composed_part(part):
            for descendant in part.descendants:
                part_map[descendant.id] = descendant
    return part_map


def combine_reducers(reducers: Mapping[str, Reducer | None]) -> Reducer:
    """Build one reducer from a mapping of state key -> reducer.

    Returns the previous state object when no key changed.
    """
    final_reducers: dict[str, Reducer] = {}
    for key, reducer in reducers.items():
        if reducer is None:
            logger.warning('No reducer provided for key "%s"', key)
        elif callable(reducer):
            final_reducers[key] = reducer
        else:
            raise PartConfigError(f"Reducer for key {key!r} must be callable, got {reducer!r}")

    def reducer(state: dict | None, action: dict) -> dict:
        state = {} if state is None else state
        next_state: dict = {}
        has_changed = False

        for key, reduce in final_reducers.items():
            prev = state.get(key)
            next_value = reduce(prev, action)
            if next_value is None:
                action_type = action.get("type") if isinstance(action, dict) else None
                described = f'"{action_type}"' if action_type else "(unknown type)"
                raise PartConfigError(
                    f"When called with an action of type {described}, the reducer "
                    f'for key "{key}" returned None. To ignore an action, you must '
                    f"explicitly return the previous state."
                )
            next_state[key] = next_value
            has_changed = has_changed or key not in state or not is_(prev, next_value)

        return next_state if has_changed else state

    return reducer


def create_parts_reducer(parts: Sequence[StatefulPart], part_map: PartMap) -> Reducer:
    def parts_reducer(state: dict | None, action: dict) -> dict:
        if state is None:
            state = get_initial_state(parts)

        part = part_map.get(action[PART_ID])
        if part is None:
            raise UnknownPartError(
                f"Part with id {action[PART_ID]} was not provided to the partitioner "
                "for inclusion in state. Add it to the parts passed to create_partitioner."
            )

        owner = part.owner
        prev = state[owner]
        next_value = part.reducer(prev, action)
        return state if is_(prev, next_value) else {**state, owner: next_value}

    return parts_reducer


def create_reducer(
    parts: Sequence[StatefulPart],
    part_map: PartMap,
    other_reducer: Reducer | Mapping[str, Reducer] | None = None,
) -> Reducer:
    """The root reducer: parts reducer plus an optional other reducer."""
    parts_reducer = create_parts_reducer(parts, part_map)

    if other_reducer is None:

        def reducer(state: dict | None, action: dict) -> dict:
            if state is None:
                state = get_initial_state(parts)
            return parts_reducer(state, action) if is_part_action(action) else state

        return reducer

    if isinstance(other_reducer, Mapping):
        other_reducer = combine_reducers(other_reducer)
    elif not callable(other_reducer):
        raise PartConfigError(
            f"other_reducer must be a function or a mapping of reducers, got {type(other_reducer).__name__}"
        )

    other = other_reducer

    def reduce_other(state: dict | None, action: dict) -> dict:
        next_other = other(state, action)
        if next_other is None:
            raise PartConfigError("other_reducer returned None; return the previous state to ignore an action")
        return next_other

    def reducer(state: dict | None, action: dict) -> dict:
        if state is None:
            state = {**reduce_other(None, action), **get_initial_state(parts)}
        if is_part_action(action):
            return parts_reducer(state, action)
        next_other = reduce_other(state, action)
        return state if is_(state, next_other) else {**state, **next_other}

    return reducer
