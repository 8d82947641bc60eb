"""Trailing-edge debounce on an anyio task group.

A ``Debouncer`` owns at most one pending timer. ``trigger()`` re-arms it:
the callback runs once, *delay* seconds after the last trigger. The timer
is a sleeper task started in the caller's task group under its own
``CancelScope``, so re-arming and ``cancel()`` are plain, synchronous
scope cancellations.

Usage::

    async with anyio.create_task_group() as tg:
        debouncer = Debouncer(tg, 0.2, write_state)
        tree.changed.add(debouncer.trigger)
        ...
        debouncer.cancel()
"""

from collections.abc import Callable

import anyio
from anyio.abc import TaskGroup


class Debouncer:
    """Single-shot, re-armable, cancellable timer."""

    __slots__ = ("_callback", "_delay", "_scope", "_task_group")

    def __init__(self, task_group: TaskGroup, delay: float, callback: Callable[[], None]) -> None:
        self._task_group = task_group
        self._delay = delay
        self._callback = callback
        self._scope: anyio.CancelScope | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """True while a trigger is waiting for its window to elapse."""
        return self._scope is not None

    def trigger(self) -> None:
        """(Re-)arm the timer. Safe to call from synchronous handlers."""
        self.cancel()
        scope = anyio.CancelScope()
        self._scope = scope
        self._task_group.start_soon(self._run, scope)

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._scope is not None:
            self._scope.cancel()
            self._scope = None

    def flush(self) -> None:
        """Run the pending call now instead of at the end of the window."""
        if self._scope is None:
            return
        self.cancel()
        self._callback()

    async def _run(self, scope: anyio.CancelScope) -> None:
        with scope:
            await anyio.sleep(self._delay)
            if self._scope is not scope:
                return
            # Clear before the callback so a trigger from inside it re-arms.
            self._scope = None
            self._callback()
