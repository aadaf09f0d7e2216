"""Predicates over parts, actions and factory arguments.

Part predicates route on the `kind` tag rather than on an object's shape.
"""

from __future__ import annotations

import inspect

from partx.constants import (
    PART_ID,
    PartKind,
    SELECTABLE_KINDS,
    SELECT_KINDS,
    STATEFUL_KINDS,
    UPDATEABLE_KINDS,
)
from partx.parts import Part


def is_part(value: object) -> bool:
    return isinstance(value, Part)


def is_stateful_part(value: object) -> bool:
    return isinstance(value, Part) and value.kind in STATEFUL_KINDS


def is_composed_part(value: object) -> bool:
    return isinstance(value, Part) and value.kind is PartKind.COMPOSED


def is_select_part(value: object) -> bool:
    """Select or proxy — anything read through a memoized derivation."""
    return isinstance(value, Part) and value.kind in SELECT_KINDS


def is_selectable_part(value: object) -> bool:
    return isinstance(value, Part) and value.kind in SELECTABLE_KINDS


def is_updateable_part(value: object) -> bool:
    return isinstance(value, Part) and value.kind in UPDATEABLE_KINDS


def is_update_part(value: object) -> bool:
    return isinstance(value, Part) and value.kind is PartKind.UPDATE


def is_part_action(value: object) -> bool:
    if not isinstance(value, dict):
        return False
    part_id = value.get(PART_ID)
    return isinstance(part_id, int) and not isinstance(part_id, bool)


def is_awaitable(value: object) -> bool:
    return inspect.isawaitable(value)


def _is_parts_list(value: object, predicate) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) > 0
        and all(predicate(item) for item in value)
    )


def is_stateful_parts_list(value: object) -> bool:
    return _is_parts_list(value, is_stateful_part)


def is_selectable_parts_list(value: object) -> bool:
    return _is_parts_list(value, is_selectable_part)


def is_selector(value: object) -> bool:
    """A plain callable usable as a derive function (parts are excluded)."""
    return callable(value) and not isinstance(value, Part)


# Same shape as a selector; kept separate so call sites read by intent.
is_updater = is_selector
