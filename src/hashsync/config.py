"""Binding configuration.

The binding reads every tunable from one frozen dataclass, so a config can be
shared between bindings and compared by value.
"""

from dataclasses import dataclass

from hashsync.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class BindingConfig:
    """Configuration for a ``UrlHashBinding``. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = BindingConfig(update_delay=0.5, remote_timeout=10.0)
    """

    # Outbound
    update_delay: float = 0.2  # Seconds; trailing-edge debounce window
    legacy_url_parameter: str = "json_url"  # Stripped on every outbound write, never read

    # Inbound
    redirect_parameter: str = "redirect_fragment"  # Identity-provider redirect recovery

    # Remote state documents
    remote_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.update_delay < 0:
            msg = f"update_delay must be >= 0, got {self.update_delay!r}"
            raise ConfigurationError(msg)
        if self.remote_timeout <= 0:
            msg = f"remote_timeout must be > 0, got {self.remote_timeout!r}"
            raise ConfigurationError(msg)
        if not self.legacy_url_parameter or not self.redirect_parameter:
            msg = "Query parameter names must be non-empty"
            raise ConfigurationError(msg)
