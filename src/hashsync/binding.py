"""Binding between an observable state tree and the URL fragment.

Outbound: tree change -> debounce -> serialize -> compare with the last
written value -> ``navigation.replace()`` only if it changed.

Inbound: hash change (or an explicit call at startup) -> redirect
recovery -> classify -> decode -> verify object -> apply to the tree.

The two directions share an ``EchoGuard`` (last JSON text, last tree
generation) so that our own writes are never read back as external
changes and values we just read are never written back out.

Usage::

    tree = JsonStateTree()
    nav = MemoryNavigation("https://viewer.example/#!{'layout':'xy'}")

    async with UrlHashBinding(tree, nav) as binding:
        binding.update_from_url_hash()   # initial load
        tree.set("layout", "3d")         # URL follows 200 ms later
        ...
"""

from __future__ import annotations

import contextlib
import dataclasses
import logging
from typing import Any

import anyio
import httpx
from anyio.abc import TaskGroup

from hashsync.codec import (
    decode_uri_component,
    encode_fragment,
    remove_parameter_from_url,
    stringify_state,
    url_safe_parse,
    verify_object,
)
from hashsync.config import BindingConfig
from hashsync.debounce import Debouncer
from hashsync.errors import HashSyncError, MalformedFragmentError, RemoteLoadError, ShapeError
from hashsync.fragment import (
    LegacyFragment,
    MalformedFragment,
    RemoteFragment,
    StandardFragment,
    classify_fragment,
    effective_fragment,
)
from hashsync.navigation import Navigation
from hashsync.remote import CredentialsManager, fetch_json, parse_special_url
from hashsync.state import StateTree, WatchableValue
from hashsync.status import LoggingStatus, StatusReporter

logger = logging.getLogger("hashsync.binding")

EMPTY_STATE_TEXT = "{}"


class EchoGuard:
    """Last value confirmed in the URL: its JSON text and the tree generation.

    Both fields change together. ``text`` is the decoded JSON text, the
    form both directions can compare directly.
    """

    __slots__ = ("generation", "text")

    def __init__(self) -> None:
        self.text: str | None = None
        self.generation: int | None = None

    def is_current(self, generation: int) -> bool:
        return self.generation is not None and generation == self.generation

    def holds(self, text: str) -> bool:
        return self.text is not None and text == self.text

    def record(self, text: str, generation: int) -> None:
        self.text = text
        self.generation = generation

    def clear(self) -> None:
        self.text = None
        self.generation = None

    def __repr__(self) -> str:
        return f"EchoGuard(text={self.text!r}, generation={self.generation!r})"


class UrlHashBinding:
    """Keeps *root* and the URL fragment of *navigation* in sync.

    Listeners, the debounce timer and remote loads live for the duration
    of ``async with``. ``set_url_hash()`` and ``update_from_url_hash()``
    are plain synchronous calls and may be used outside it, except that
    remote references need the running context to fetch in.

    Attributes:
        parse_error: The last inbound failure, or None after a successful
            cycle. Remote load failures go to *status* instead, except a
            remote reference seen while not running, which lands here.
    """

    def __init__(
        self,
        root: StateTree,
        navigation: Navigation,
        *,
        credentials_manager: CredentialsManager | None = None,
        status: StatusReporter | None = None,
        config: BindingConfig | None = None,
        update_delay: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.root = root
        self.navigation = navigation
        self.credentials_manager = credentials_manager or CredentialsManager()
        self.status: StatusReporter = status or LoggingStatus()
        config = config or BindingConfig()
        if update_delay is not None:
            config = dataclasses.replace(config, update_delay=update_delay)
        self.config = config
        self.update_delay = config.update_delay
        self.parse_error: WatchableValue[Exception | None] = WatchableValue(None)
        self._client = client
        self._guard = EchoGuard()
        self._debouncer: Debouncer | None = None
        self._task_group: TaskGroup | None = None
        self._stack: contextlib.AsyncExitStack | None = None

    @property
    def running(self) -> bool:
        return self._task_group is not None

    @property
    def guard(self) -> EchoGuard:
        return self._guard

    # -- Lifecycle --

    async def __aenter__(self) -> UrlHashBinding:
        if self._stack is not None:
            msg = "UrlHashBinding is already running"
            raise HashSyncError(msg)
        async with contextlib.AsyncExitStack() as stack:
            task_group = await stack.enter_async_context(anyio.create_task_group())
            # Callbacks unwind in reverse: listeners, then timer, then in-flight loads.
            stack.callback(task_group.cancel_scope.cancel)
            debouncer = Debouncer(task_group, self.update_delay, self.set_url_hash)
            stack.callback(debouncer.cancel)
            stack.callback(self.navigation.on_change(self.update_from_url_hash))
            stack.callback(self.root.changed.add(debouncer.trigger))
            stack.callback(self._detach)
            self._task_group = task_group
            self._debouncer = debouncer
            self._stack = stack.pop_all()
        logger.debug("Binding started (update_delay=%.3fs)", self.update_delay)
        return self

    async def __aexit__(self, *exc_info: Any) -> bool | None:
        stack, self._stack = self._stack, None
        if stack is None:
            return None
        logger.debug("Binding stopped")
        return await stack.__aexit__(*exc_info)

    def _detach(self) -> None:
        self._task_group = None
        self._debouncer = None

    def flush(self) -> None:
        """Write a pending debounced change now."""
        if self._debouncer is not None:
            self._debouncer.flush()

    # -- Outbound --

    def set_url_hash(self) -> None:
        """Make the URL fragment match the current state."""
        value, generation = self.root.cached_json()
        self.navigation.replace(
            remove_parameter_from_url(self.navigation.href, self.config.legacy_url_parameter)
        )

        if self._guard.is_current(generation):
            return

        try:
            text = stringify_state(value)
        except ValueError as exc:
            logger.warning("Generation %d is not valid JSON, URL left unchanged: %s", generation, exc)
            return
        if self._guard.holds(text):
            logger.debug("Generation %d serializes to the current URL state", generation)
            self._guard.record(text, generation)
            return

        if text == EMPTY_STATE_TEXT:
            self.navigation.replace("#")
        else:
            self.navigation.replace("#!" + encode_fragment(text))
        self._guard.record(text, generation)
        logger.debug("Wrote generation %d to URL hash", generation)

    # -- Inbound --

    def update_from_url_hash(self) -> None:
        """Make the state match the URL fragment.

        Call once right after entering the binding to initialize the
        state from the URL. Never raises: failures land in ``parse_error``.
        """
        try:
            self._apply_url_hash()
        except HashSyncError as exc:
            logger.warning("Invalid URL hash: %s", exc)
            self.parse_error.value = exc
        except Exception as exc:
            logger.exception("Failed to restore state from URL hash")
            self.parse_error.value = exc
        else:
            self.parse_error.value = None

    def _apply_url_hash(self) -> None:
        effective = effective_fragment(self.navigation.href, self.config.redirect_parameter)
        if effective.recovered:
            logger.debug("Using fragment recovered from %r", self.config.redirect_parameter)

        match classify_fragment(effective.fragment):
            case RemoteFragment(url=url):
                self._start_remote_load(url)

            case LegacyFragment(payload=payload):
                text = self._decode_payload(payload, effective.recovered)
                state = verify_object(url_safe_parse(text))
                self.root.restore_state(state)
                # Merged state is not what the URL says; force the next write.
                self._guard.clear()

            case StandardFragment(payload=payload):
                text = self._decode_payload(payload, effective.recovered)
                if self._guard.holds(text):
                    logger.debug("URL hash matches current state, ignoring")
                    return
                state = verify_object(url_safe_parse(text))
                self.root.reset()
                self.root.restore_state(state)
                self._guard.record(text, self.root.generation)

            case MalformedFragment(raw=raw):
                raise MalformedFragmentError(raw)

    @staticmethod
    def _decode_payload(payload: str, recovered: bool) -> str:
        # Browsers may percent-encode the fragment even when it was typed raw.
        text = decode_uri_component(payload)
        if recovered:
            # The identity-provider redirect adds one more encoding layer.
            text = decode_uri_component(text)
        return text

    # -- Remote state documents --

    def _start_remote_load(self, url: str) -> None:
        if self._task_group is None:
            msg = "binding is not running"
            raise RemoteLoadError(url, msg)
        self._task_group.start_soon(self._report_remote_load, url)

    async def _report_remote_load(self, url: str) -> None:
        await self.status.for_awaitable(
            self.load_remote_state(url),
            initial_message=f"Loading state from {url}",
            error_prefix="Error loading state:",
        )

    async def load_remote_state(self, url: str) -> None:
        """Fetch the state document at *url* and replace the state with it.

        Raises:
            RemoteLoadError: Resolution, transport, status, JSON or shape
                failure. The tree is untouched in every case.
        """
        special = parse_special_url(url, self.credentials_manager)
        data = await fetch_json(special, client=self._client, timeout=self.config.remote_timeout)
        try:
            state = verify_object(data)
        except ShapeError as exc:
            raise RemoteLoadError(url, str(exc)) from exc
        self.root.reset()
        self.root.restore_state(state)
        logger.info("Loaded state from %s", url)
