"""part() — one factory for every kind of part.

Positional forms:

    part("title", "Todos")                       # PrimitivePart
    part("user", [id_part, name_part])           # ComposedPart
    part([first, last], lambda f, l: f"{f} {l}") # SelectPart
    part([first, last], get_fn, set_fn)          # ProxyPart
    part(lambda get_state: ...)                  # unbound SelectPart
    part(get_fn, set_fn)                         # unbound ProxyPart
    part(None, set_fn)                           # UpdatePart

Keyword forms mirror them: `part(name=, initial_state=)`, `part(name=, parts=)`,
`part(parts=, get=, set=)`, `part(get=, set=)`, `part(set=)`. Every form
accepts `graph=` and derived forms accept `is_equal=`.
"""

from __future__ import annotations

from typing import Any, Callable

from partx.errors import PartConfigError
from partx.graph import PartGraph
from partx.parts import (
    ComposedPart,
    Part,
    PrimitivePart,
    ProxyPart,
    SelectPart,
    UpdatePart,
)
from partx.validate import (
    is_selectable_parts_list,
    is_selector,
    is_stateful_parts_list,
    is_updater,
)

_MISSING = object()


def part(
    first: Any = _MISSING,
    second: Any = _MISSING,
    third: Any = _MISSING,
    *,
    name: str | None = None,
    initial_state: Any = _MISSING,
    parts: Any = None,
    get: Callable[..., Any] | None = None,
    set: Callable[..., Any] | None = None,
    is_equal: Callable[[Any, Any], bool] | None = None,
    graph: PartGraph | None = None,
) -> Part:
    """Create a part from positional shorthand or keyword configuration."""
    has_keywords = (
        name is not None
        or initial_state is not _MISSING
        or parts is not None
        or get is not None
        or set is not None
    )

    if first is _MISSING:
        if not has_keywords:
            raise PartConfigError("part() needs a name, a list of parts or a get function")
        return _from_keywords(name, initial_state, parts, get, set, is_equal, graph)

    if has_keywords:
        raise PartConfigError("part() takes either positional shorthand or keywords, not both")

    if first is None:
        if is_updater(second) and third is _MISSING:
            return UpdatePart(second, graph=graph)
        raise PartConfigError("Invalid update options provided")

    if isinstance(first, str):
        if second is _MISSING or third is not _MISSING:
            raise PartConfigError(f"part({first!r}, ...) needs exactly one initial state or list of parts")
        if is_stateful_parts_list(second):
            return ComposedPart(first, second, graph=graph)
        return PrimitivePart(first, second, graph=graph)

    if isinstance(first, (list, tuple)):
        if not is_selectable_parts_list(first) or not is_selector(second):
            raise PartConfigError("Invalid select options provided")
        if third is _MISSING:
            return SelectPart(second, first, is_equal, graph)
        if not is_updater(third):
            raise PartConfigError("Invalid proxy options provided")
        return ProxyPart(second, third, first, is_equal, graph)

    if is_selector(first):
        if third is not _MISSING:
            raise PartConfigError("Invalid select options provided")
        if second is _MISSING:
            return SelectPart(first, None, is_equal, graph)
        if not is_updater(second):
            raise PartConfigError("Invalid proxy options provided")
        return ProxyPart(first, second, None, is_equal, graph)

    raise PartConfigError(f"Invalid config provided: {first!r}")


def _from_keywords(name, initial_state, parts, get, set, is_equal, graph) -> Part:
    if name is not None:
        if get is not None or set is not None:
            raise PartConfigError("Stateful parts take no get or set function")
        if parts is not None:
            if initial_state is not _MISSING:
                raise PartConfigError("A composed part derives its initial state from its parts")
            if not is_stateful_parts_list(parts):
                raise PartConfigError(f"Composed part {name!r} needs a list of stateful parts")
            return ComposedPart(name, parts, graph=graph)
        if initial_state is _MISSING:
            raise PartConfigError(f"Primitive part {name!r} needs an initial_state")
        return PrimitivePart(name, initial_state, graph=graph)

    if initial_state is not _MISSING:
        raise PartConfigError("initial_state requires a name")

    if get is None:
        if parts is not None or set is None:
            raise PartConfigError("Invalid update options provided")
        return UpdatePart(set, graph=graph)

    if parts is not None and not is_selectable_parts_list(parts):
        raise PartConfigError("Invalid select options provided")
    if set is None:
        return SelectPart(get, parts, is_equal, graph)
    return ProxyPart(get, set, parts, is_equal, graph)
