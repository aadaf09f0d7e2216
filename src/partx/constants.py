"""Shared constants — action keys, sentinel dependency sets, part kinds."""

from __future__ import annotations

from enum import Enum

# Key under which a part action carries the id of the part it targets.
PART_ID = "$$part"

# Dispatched once by the base store so reducers can build initial state.
INIT = "@@partx/INIT"


class PartKind(Enum):
    """Closed tag set for every part. Never reassigned after construction."""

    PRIMITIVE = "primitive"
    COMPOSED = "composed"
    SELECT = "select"
    PROXY = "proxy"
    UPDATE = "update"


STATEFUL_KINDS = frozenset({PartKind.PRIMITIVE, PartKind.COMPOSED})
SELECT_KINDS = frozenset({PartKind.SELECT, PartKind.PROXY})
SELECTABLE_KINDS = STATEFUL_KINDS | SELECT_KINDS
UPDATEABLE_KINDS = STATEFUL_KINDS | {PartKind.PROXY, PartKind.UPDATE}


class _AllDependencies:
    """Sentinel: the part may change whenever any state changes."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ALL_DEPENDENCIES"


ALL_DEPENDENCIES = _AllDependencies()
