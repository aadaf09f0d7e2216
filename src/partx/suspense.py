"""Cancellable-future cache for asynchronous derivations.

An async derivation is wrapped in a future whose lifecycle is tracked
explicitly by a `SuspenseEntry`. Consumers identify a derivation by the
wrapper they were handed, never by the awaitable that produced it, so the
cache is keyed by the wrapper.

Cancelling an entry resolves its wrapper with `None` instead of rejecting it,
which keeps a consumer that treats rejection as failure from ever seeing an
error caused by a superseded computation. The underlying task keeps running;
its eventual outcome is observed and dropped.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from enum import Enum
from typing import Awaitable, Generic, TypeVar

logger = logging.getLogger("partx.suspense")

T = TypeVar("T")


class Status(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CANCELED = "canceled"


class SuspenseEntry(Generic[T]):
    """State of one wrapped derivation. Leaves PENDING at most once."""

    __slots__ = ("_future", "status", "result", "error")

    def __init__(self, future: asyncio.Future) -> None:
        # Weak, so the cache entry does not keep its own key alive.
        self._future = weakref.ref(future)
        self.status = Status.PENDING
        self.result: T | None = None
        self.error: BaseException | None = None

    @property
    def future(self) -> asyncio.Future | None:
        return self._future()

    @property
    def pending(self) -> bool:
        return self.status is Status.PENDING

    @property
    def canceled(self) -> bool:
        return self.status is Status.CANCELED

    def cancel(self) -> None:
        """PENDING -> CANCELED. The wrapper resolves with None."""
        if self.status is not Status.PENDING:
            return
        self.status = Status.CANCELED
        future = self.future
        if future is not None and not future.done():
            future.set_result(None)
        logger.debug("Canceled suspense future %r", future)

    def _settle(self, base: asyncio.Future) -> None:
        if self.status is not Status.PENDING:
            # Retrieve the outcome so the loop does not report it as unhandled.
            if not base.cancelled():
                base.exception()
            logger.debug("Discarded settlement of %s suspense future", self.status.value)
            return

        if base.cancelled():
            self.cancel()
            return

        error = base.exception()
        if error is not None:
            self.error = error
            self.status = Status.REJECTED
            future = self.future
            if future is not None and not future.done():
                future.set_exception(error)
            return

        self.result = base.result()
        self.status = Status.RESOLVED
        future = self.future
        if future is not None and not future.done():
            future.set_result(self.result)

    def __repr__(self) -> str:
        return f"SuspenseEntry({self.status.value})"


_CACHE: weakref.WeakKeyDictionary[asyncio.Future, SuspenseEntry] = weakref.WeakKeyDictionary()

# Strong references to in-flight base tasks; the loop only holds weak ones.
_in_flight: set[asyncio.Future] = set()


def _to_future(awaitable: Awaitable[T]) -> asyncio.Future:
    if asyncio.isfuture(awaitable):
        return awaitable
    if asyncio.iscoroutine(awaitable):
        return asyncio.get_running_loop().create_task(awaitable)
    return asyncio.ensure_future(awaitable)


def create_suspense_future(awaitable: Awaitable[T]) -> asyncio.Future:
    """Wrap an awaitable and start tracking it. Requires a running loop."""
    base = _to_future(awaitable)
    wrapper = base.get_loop().create_future()
    entry: SuspenseEntry[T] = SuspenseEntry(wrapper)
    _CACHE[wrapper] = entry
    _in_flight.add(base)
    base.add_done_callback(_in_flight.discard)
    base.add_done_callback(entry._settle)
    return wrapper


def get_suspense_future(value: Awaitable[T]) -> T | asyncio.Future:
    """Return the cached wrapper (or its value once resolved), else wrap anew."""
    entry = get_suspense_entry(value)
    if entry is None:
        return create_suspense_future(value)
    if entry.status is Status.RESOLVED:
        return entry.result
    return entry.future


def get_suspense_entry(value: object) -> SuspenseEntry | None:
    if not asyncio.isfuture(value):
        return None
    return _CACHE.get(value)


def cancel_suspense_future(value: object) -> None:
    entry = get_suspense_entry(value)
    if entry is not None:
        entry.cancel()


def is_suspense_future_canceled(value: object) -> bool:
    entry = get_suspense_entry(value)
    return entry is not None and entry.canceled


def unwrap(value: object) -> object:
    """A resolved wrapper becomes its value; anything else passes through."""
    entry = get_suspense_entry(value)
    if entry is not None and entry.status is Status.RESOLVED:
        return entry.result
    return value
