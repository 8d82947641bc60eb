"""Observable state primitives.

- ``Signal``: synchronous change notification. ``add()`` returns a
  disposer that removes the handler again.
- ``WatchableValue``: a single observable cell (used for ``parse_error``).
- ``StateTree``: the protocol the binding consumes.
- ``JsonStateTree``: an in-memory tree of JSON-compatible values with a
  generation counter that advances exactly when the value changes.

Example::

    tree = JsonStateTree()
    dispose = tree.changed.add(lambda: print(tree.generation))
    tree.set("layout", "xy")      # prints 1
    tree.set("layout", "xy")      # unchanged, prints nothing
    dispose()
"""

import copy
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from hashsync.codec import verify_object

type Disposer = Callable[[], None]


class Signal:
    """Synchronous broadcast of a no-argument notification.

    Handlers run in registration order on the caller's turn. A handler
    added or removed during dispatch takes effect on the next dispatch.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: list[Callable[[], None]] = []

    def add(self, handler: Callable[[], None]) -> Disposer:
        """Register *handler*; the returned callable unregisters it."""
        self._handlers.append(handler)

        def dispose() -> None:
            # Only this registration; an equal handler added separately stays.
            for i, registered in enumerate(self._handlers):
                if registered is handler:
                    del self._handlers[i]
                    return

        return dispose

    def dispatch(self) -> None:
        for handler in list(self._handlers):
            handler()

    def __len__(self) -> int:
        return len(self._handlers)


class WatchableValue[T]:
    """An observable cell. Assigning a different value dispatches ``changed``."""

    __slots__ = ("_value", "changed")

    def __init__(self, value: T) -> None:
        self._value = value
        self.changed = Signal()

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if new_value is self._value:
            return
        self._value = new_value
        self.changed.dispatch()


@runtime_checkable
class StateTree(Protocol):
    """What ``UrlHashBinding`` needs from an application state tree."""

    @property
    def changed(self) -> Signal: ...

    @property
    def generation(self) -> int: ...

    def cached_json(self) -> tuple[Any, int]:
        """Return ``(value, generation)`` read together."""
        ...

    def reset(self) -> None: ...

    def restore_state(self, obj: Any) -> None:
        """Apply *obj*; raises ``ShapeError`` if it is not a JSON object."""
        ...


class JsonStateTree:
    """In-memory observable JSON object.

    ``restore_state`` merges into the current contents, so ``reset()``
    followed by ``restore_state(obj)`` replaces the state while a bare
    ``restore_state(obj)`` is additive. Top-level keys are merged; nested
    values are replaced whole.
    """

    __slots__ = ("_generation", "_value", "changed")

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._value: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._generation = 0
        self.changed = Signal()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def value(self) -> dict[str, Any]:
        """A deep copy of the current state."""
        return copy.deepcopy(self._value)

    def cached_json(self) -> tuple[dict[str, Any], int]:
        return copy.deepcopy(self._value), self._generation

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._value.get(key, default))

    def set(self, key: str, value: Any) -> None:
        """Set a top-level key."""
        updated = dict(self._value)
        updated[key] = copy.deepcopy(value)
        self._replace(updated)

    def delete(self, key: str) -> None:
        if key not in self._value:
            return
        updated = dict(self._value)
        del updated[key]
        self._replace(updated)

    def reset(self) -> None:
        self._replace({})

    def restore_state(self, obj: Any) -> None:
        verify_object(obj)
        updated = dict(self._value)
        updated.update(copy.deepcopy(obj))
        self._replace(updated)

    def _replace(self, new_value: dict[str, Any]) -> None:
        if new_value == self._value:
            return
        self._value = new_value
        self._generation += 1
        self.changed.dispatch()

    def __repr__(self) -> str:
        return f"JsonStateTree(generation={self._generation}, value={self._value!r})"
