"""Partitioner — the reducer and enhancer for a list of top-level parts.

    partitioner = create_partitioner([todos, user], other_reducer={"legacy": legacy})
    store = create_store(partitioner.reducer, enhancer=partitioner.enhancer)

The state tree's top-level keys are exactly the names of the parts passed in,
plus whatever the other reducer contributes.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, NamedTuple, Sequence

from partx.enhancer import Notifier, PartStore, create_enhancer
from partx.errors import PartConfigError
from partx.graph import PartGraph
from partx.parts import StatefulPart
from partx.reducer import Reducer, create_reducer, get_part_map
from partx.store import create_store
from partx.validate import is_stateful_part

logger = logging.getLogger("partx.partitioner")


class Partitioner(NamedTuple):
    reducer: Reducer
    enhancer: Any


def _check_parts(parts: Sequence[StatefulPart]) -> PartGraph | None:
    names: set[str] = set()
    graph = None
    for part in parts:
        if not is_stateful_part(part):
            raise PartConfigError(f"Only stateful parts can be partitioned, got {part!r}")
        if part.parent is not None:
            raise PartConfigError(
                f"{part!r} is composed into {part.parent!r}; pass the top-level part instead"
            )
        if part.name in names:
            raise PartConfigError(f"Two top-level parts are named {part.name!r}")
        if graph is not None and part.graph is not graph:
            raise PartConfigError("All parts of a partitioner must belong to the same part graph")
        names.add(part.name)
        graph = part.graph
    return graph


def create_partitioner(
    parts: Sequence[StatefulPart],
    *,
    other_reducer: Reducer | Mapping[str, Reducer] | None = None,
    notifier: Notifier | None = None,
) -> Partitioner:
    """Create the reducer governing `parts` and the enhancer that serves them.

    `notifier(notify)` decides when subscribers hear about a change; the
    default calls `notify()` right away. `other_reducer` handles non-part
    actions and may be a reducer or a mapping of key -> reducer.
    """
    parts = tuple(parts)
    graph = _check_parts(parts)
    part_map = get_part_map(parts)
    reducer = create_reducer(parts, part_map, other_reducer)
    enhancer = create_enhancer(part_map, notifier, graph)
    logger.info(
        "Partitioner created: %d top-level parts, %d stateful parts",
        len(parts),
        len(part_map),
    )
    return Partitioner(reducer, enhancer)


def create_part_store(
    parts: Sequence[StatefulPart],
    *,
    other_reducer: Reducer | Mapping[str, Reducer] | None = None,
    notifier: Notifier | None = None,
    preloaded_state: Any = None,
) -> PartStore:
    """Shortcut: partition `parts` and create a store with the result."""
    reducer, enhancer = create_partitioner(
        parts, other_reducer=other_reducer, notifier=notifier
    )
    return create_store(reducer, preloaded_state, enhancer)
