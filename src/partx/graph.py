"""Dependency graph — the adjacency list every part is wired into.

Wiring happens once, when a part is constructed: a new consumer (a composed
part, a select or a proxy) is registered as a dependent of each of its inputs
and of everything upstream of those inputs. Because consumers are always
built after their inputs, the stored dependents of a leaf are already its
full transitive closure, and the store answers "who changed?" with plain
lookups instead of walking the tree.

The graph also owns the id counter, so independent graphs never share id
space. Parts use `default_graph` unless another graph is injected.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from partx.parts import Part


class PartGraph:
    """Explicit dependency graph keyed by part id."""

    __slots__ = ("_ids", "_nodes", "_dependents", "_upstream", "_always")

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._nodes: dict[int, Part] = {}
        # part id -> {dependent id: dependent}, insertion ordered
        self._dependents: dict[int, dict[int, Part]] = {}
        # part id -> {upstream id: upstream part}, everything whose change
        # implies a change of this part
        self._upstream: dict[int, dict[int, Part]] = {}
        # ids of parts that must be treated as changed on any state change
        self._always: set[int] = set()

    def new_id(self) -> int:
        return next(self._ids)

    def add(self, part: Part) -> None:
        """Register a node. Called once per part, from its constructor."""
        self._nodes[part.id] = part
        self._dependents.setdefault(part.id, {})
        self._upstream.setdefault(part.id, {})

    def connect(self, consumer: Part, inputs: Iterable[Part]) -> None:
        """Make `consumer` a dependent of each input and of their upstream."""
        upstream = self._upstream[consumer.id]
        for source in inputs:
            upstream[source.id] = source
            upstream.update(self._upstream[source.id])
            if source.id in self._always:
                self._always.add(consumer.id)

        for source_id in upstream:
            dependents = self._dependents[source_id]
            if consumer.id not in dependents:
                dependents[consumer.id] = consumer

    def mark_always(self, part: Part) -> None:
        self._always.add(part.id)

    def is_always(self, part: Part) -> bool:
        return part.id in self._always

    def dependents(self, part: Part) -> tuple[Part, ...]:
        return tuple(self._dependents.get(part.id, {}).values())

    def upstream(self, part: Part) -> tuple[Part, ...]:
        return tuple(self._upstream.get(part.id, {}).values())

    def __contains__(self, part: object) -> bool:
        return self._nodes.get(getattr(part, "id", None)) is part

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        edges = sum(len(d) for d in self._dependents.values())
        return f"PartGraph(parts={len(self._nodes)}, edges={edges})"


default_graph = PartGraph()
