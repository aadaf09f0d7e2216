"""Batched notification — defer notify passes until a batch closes.

A BatchNotifier is passed as the `notifier` of one or more partitioners.
Outside a batch it notifies immediately. Inside `with notifier.batch():` or a
function decorated with `@notifier.action`, dispatches still apply to state
right away, but each store's notify pass is queued and runs once when the
outermost batch exits, in the order the stores first changed.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")

Notify = Callable[[], None]


class BatchNotifier:
    """Notifier that coalesces notify passes inside a batch."""

    def __init__(self) -> None:
        self._depth = 0
        # Queued notify callables, one per store, in first-change order.
        self._pending: dict[Notify, None] = {}

    @property
    def batching(self) -> bool:
        return self._depth > 0

    def get_pending_count(self) -> int:
        """Number of stores waiting to notify. Useful for testing."""
        return len(self._pending)

    def __call__(self, notify: Notify) -> None:
        if self._depth > 0:
            self._pending[notify] = None
        else:
            notify()

    def begin(self) -> None:
        """Enter a batching scope. Nested batches are supported."""
        self._depth += 1

    def end(self) -> None:
        """Exit a batching scope. The outermost exit flushes queued passes."""
        self._depth -= 1
        if self._depth == 0:
            self._flush()

    def _flush(self) -> None:
        while self._pending:
            # A listener may dispatch and queue again while we flush.
            batch = list(self._pending)
            self._pending.clear()
            for notify in batch:
                notify()

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Context manager for batching dispatches.

        Usage:
            with notifier.batch():
                store.dispatch(first(1))
                store.dispatch(last(2))
                # listeners run here, once
        """
        self.begin()
        try:
            yield
        finally:
            self.end()

    def action(self, fn: Callable[P, R]) -> Callable[P, R]:
        """Decorator: batch all dispatches made inside fn."""

        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            self.begin()
            try:
                return fn(*args, **kwargs)
            finally:
                self.end()

        return wrapper
