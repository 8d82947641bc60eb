"""Navigation facade.

The binding never touches a real browser location. It goes through the
small ``Navigation`` protocol instead:

- ``href``: the current absolute URL.
- ``replace(url)``: swap the current URL without a new history entry and
  without notifying change listeners (``history.replaceState``).
- ``on_change(callback)``: subscribe to fragment changes caused by
  navigation (``hashchange``); returns a disposer.

``MemoryNavigation`` is a complete in-memory implementation, used by the
CLI and by tests, and usable by headless hosts that keep their own notion
of "the current URL".
"""

from collections import deque
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from hashsync.fragment import split_fragment
from hashsync.state import Disposer, Signal


@runtime_checkable
class Navigation(Protocol):
    @property
    def href(self) -> str: ...

    def replace(self, url: str) -> None: ...

    def on_change(self, callback: Callable[[], None]) -> Disposer: ...


def resolve_url(base: str, url: str) -> str:
    """Resolve *url* against *base* the way ``replaceState`` does for our inputs.

    Only fragment-relative URLs (``#...``) are resolved; anything else is
    taken as absolute.

        >>> resolve_url("https://h/p?q=1#old", "#!{}")
        'https://h/p?q=1#!{}'
    """
    if url.startswith("#"):
        before, _ = split_fragment(base)
        return before + url
    return url


class MemoryNavigation:
    """In-memory location with a history stack.

    ``navigate()`` behaves like the user following a link: it pushes a
    history entry and fires change listeners if the fragment differs.
    ``replace()`` rewrites the current entry silently. The most recent
    *replacement_history* URLs passed to ``replace()`` are kept in
    ``replacements`` (as given, before resolution) so callers can audit
    what was written.
    """

    __slots__ = ("_changed", "_index", "history", "replacements")

    def __init__(self, href: str = "http://localhost/", *, replacement_history: int = 256) -> None:
        self.history: list[str] = [href]
        self._index = 0
        self._changed = Signal()
        self.replacements: deque[str] = deque(maxlen=replacement_history)

    @property
    def href(self) -> str:
        return self.history[self._index]

    def current_fragment(self) -> str:
        """The fragment including its ``#``, or ``""``."""
        return split_fragment(self.href)[1]

    def current_query(self) -> str:
        """The query string without its ``?``, or ``""``."""
        before, _ = split_fragment(self.href)
        _, _, query = before.partition("?")
        return query

    def replace(self, url: str) -> None:
        self.replacements.append(url)
        self.history[self._index] = resolve_url(self.href, url)

    def on_change(self, callback: Callable[[], None]) -> Disposer:
        return self._changed.add(callback)

    def navigate(self, url: str) -> None:
        """Follow *url*, dropping any forward history."""
        previous = self.href
        del self.history[self._index + 1 :]
        self.history.append(resolve_url(previous, url))
        self._index += 1
        self._notify_if_moved(previous)

    def back(self) -> bool:
        """Go back one entry. Returns False when already at the start."""
        if self._index == 0:
            return False
        previous = self.href
        self._index -= 1
        self._notify_if_moved(previous)
        return True

    def forward(self) -> bool:
        """Go forward one entry. Returns False when already at the end."""
        if self._index == len(self.history) - 1:
            return False
        previous = self.href
        self._index += 1
        self._notify_if_moved(previous)
        return True

    def _notify_if_moved(self, previous: str) -> None:
        if split_fragment(previous)[1] != self.current_fragment():
            self._changed.dispatch()

    def __repr__(self) -> str:
        return f"MemoryNavigation(href={self.href!r})"
