"""Status reporting for background work.

Remote state loads finish after the inbound cycle that started them has
returned, so their outcome cannot go into ``parse_error``. They are
reported through a ``StatusReporter`` instead. ``LoggingStatus`` is the
default: it logs progress and failures and keeps a short message history
that a UI can render.
"""

import logging
from collections import deque
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

logger = logging.getLogger("hashsync.status")

type StatusKind = Literal["progress", "success", "error"]


@dataclass(frozen=True, slots=True)
class StatusMessage:
    kind: StatusKind
    text: str
    error: Exception | None = None


@runtime_checkable
class StatusReporter(Protocol):
    async def for_awaitable[T](
        self,
        awaitable: Awaitable[T],
        *,
        initial_message: str,
        error_prefix: str,
    ) -> T | None:
        """Await *awaitable*, reporting progress and failure.

        Returns the result, or None if it raised. Never re-raises
        ``Exception`` subclasses; cancellation propagates.
        """
        ...


class LoggingStatus:
    """``StatusReporter`` that logs and remembers the latest messages."""

    __slots__ = ("messages",)

    def __init__(self, history: int = 32) -> None:
        self.messages: deque[StatusMessage] = deque(maxlen=history)

    @property
    def last_error(self) -> Exception | None:
        for message in reversed(self.messages):
            if message.kind == "error":
                return message.error
        return None

    async def for_awaitable[T](
        self,
        awaitable: Awaitable[T],
        *,
        initial_message: str,
        error_prefix: str,
    ) -> T | None:
        self.messages.append(StatusMessage("progress", initial_message))
        logger.info("%s", initial_message)
        try:
            result = await awaitable
        except Exception as exc:
            text = f"{error_prefix} {exc}"
            self.messages.append(StatusMessage("error", text, exc))
            logger.warning("%s", text)
            return None
        self.messages.append(StatusMessage("success", f"{initial_message}: done"))
        logger.debug("%s: done", initial_message)
        return result
