"""Versioned memoization for select and proxy parts.

A store keeps one Selection per derived part it has been asked to read.
Reading is pull-based: nothing is recomputed during notification, only when
`get_state(part)` is called.

- Same store version as the last read: the cached result, no work at all.
- Newer version, every source identical to last time: the cached result.
- A source changed: derive again. The new value replaces the cache unless the
  part's `is_equal` says it is the same, and a superseded suspense future is
  cancelled so stale async work can no longer reach a consumer.
- Any source still pending: the derivation itself becomes asynchronous. All
  sources are awaited together, then `get` runs on the resolved values.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Sequence

from partx.parts import SelectPart
from partx.suspense import cancel_suspense_future, get_suspense_future, unwrap
from partx.utils import is_
from partx.validate import is_awaitable

_UNSET = object()


class Selection:
    """Memo of one derived part within one store."""

    __slots__ = ("part", "version", "values", "result")

    def __init__(self, part: SelectPart) -> None:
        self.part = part
        self.version = -1
        self.values: tuple | None = None
        self.result: Any = _UNSET

    @property
    def computed(self) -> bool:
        return self.result is not _UNSET

    def read(self, get_state: Callable[..., Any], version: int) -> Any:
        if self.version == version and self.result is not _UNSET:
            return self.result

        part = self.part
        if part.sources is None:
            self._commit(_settle(part.get(get_state)))
        else:
            values = tuple(get_state(source) for source in part.sources)
            if self.values is None or not _same(values, self.values):
                # Sources are recorded only once a derive succeeded.
                self._commit(_derive(part.get, values))
                self.values = values

        self.version = version
        return self.result

    def _commit(self, value: Any) -> None:
        previous = self.result
        if previous is not _UNSET and self.part.is_equal(previous, value):
            return
        self.result = value
        if previous is not _UNSET:
            cancel_suspense_future(previous)

    def __repr__(self) -> str:
        state = f"cached={self.result!r}" if self.computed else "empty"
        return f"Selection({self.part!r}, version={self.version}, {state})"


def _same(values: Sequence, previous: Sequence) -> bool:
    return len(values) == len(previous) and all(
        is_(value, prev) for value, prev in zip(values, previous)
    )


def _settle(value: Any) -> Any:
    return get_suspense_future(value) if is_awaitable(value) else value


def _derive(get: Callable[..., Any], values: tuple) -> Any:
    inputs = tuple(unwrap(value) for value in values)
    if any(is_awaitable(value) for value in inputs):
        return get_suspense_future(_derive_async(get, inputs))
    return _settle(get(*inputs))


async def _derive_async(get: Callable[..., Any], inputs: tuple) -> Any:
    resolved = await asyncio.gather(*(_resolve(value) for value in inputs))
    result = get(*resolved)
    if is_awaitable(result):
        result = await result
    return result


async def _resolve(value: Any) -> Any:
    if is_awaitable(value):
        return await value
    return value
