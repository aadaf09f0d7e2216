"""Small helpers shared by every other module."""

from __future__ import annotations

import math
import re
from typing import Iterable, TypeVar

T = TypeVar("T")

# Values of these types compare by value; everything else compares by identity.
_SCALARS = (str, bytes, int, float, complex, bool, type(None))

_NON_WORD = re.compile(r"\W+")
_WORD_BOUNDARY = re.compile(r" |\B(?=[A-Z])")


def is_(a: object, b: object) -> bool:
    """Strict equality with NaN awareness.

    Immutable scalars of the same type compare by value, containers and other
    objects by identity. NaN equals NaN, while 0.0 and -0.0 differ.
    """
    if a is b:
        return True
    if type(a) is not type(b) or not isinstance(a, _SCALARS):
        return False
    if isinstance(a, float):
        if a != a:
            return b != b
        if a == 0.0 and b == 0.0:
            return math.copysign(1.0, a) == math.copysign(1.0, b)
    return a == b


def identity(value: T) -> T:
    return value


def to_screaming_snake_case(string: str) -> str:
    """Convert a part name to an action type word: fullName -> FULL_NAME."""
    words = _WORD_BOUNDARY.split(_NON_WORD.sub(" ", string))
    return "_".join(word.lower() for word in words).upper()


def get_prefixed_type(path: Iterable[str], action_type: str) -> str:
    """Prefix an action type with the dotted path of the part's owners.

    The last path entry is the part itself, so it never appears in the prefix.
    Any previous prefix on the type is replaced.
    """
    prefix = ".".join(tuple(path)[:-1])
    base_type = action_type.split("/")[-1]
    return f"{prefix}/{base_type}" if prefix else base_type


def unique(items: Iterable[T]) -> list[T]:
    """Order-preserving dedup by identity."""
    seen: set[int] = set()
    result: list[T] = []
    for item in items:
        if id(item) not in seen:
            seen.add(id(item))
            result.append(item)
    return result
