"""hashsync exception hierarchy.

Shared across the codec, the fragment classifier, the remote loader and
the binding so every module raises and catches the same types.
"""


class HashSyncError(Exception):
    """Base for all hashsync-specific errors."""


class ConfigurationError(HashSyncError):
    """Raised when a ``BindingConfig`` is invalid.

    Typically raised from ``BindingConfig.__post_init__`` at construction.
    """


class FragmentError(HashSyncError):
    """Base for inbound fragment failures.

    These are captured synchronously by ``UrlHashBinding`` and stored in
    its ``parse_error`` cell rather than propagated.
    """


class MalformedFragmentError(FragmentError):
    """The fragment does not match any recognized shape."""

    def __init__(self, fragment: str) -> None:
        self.fragment = fragment
        super().__init__('URL hash is expected to be of the form "#!{...}" or "#!+{...}".')


class DecodeError(FragmentError):
    """Percent-decoding or JSON syntax failure."""

    def __init__(self, detail: str, *, position: int | None = None) -> None:
        self.detail = detail
        self.position = position
        if position is None:
            super().__init__(detail)
        else:
            super().__init__(f"{detail} (at position {position})")


class ShapeError(FragmentError):
    """The decoded value is valid JSON but not a JSON object."""

    def __init__(self, actual: str) -> None:
        self.actual = actual
        super().__init__(f"Expected JSON object, but received: {actual}")


class RemoteLoadError(HashSyncError):
    """Fetching or resolving a remote state document failed.

    Surfaced through the status reporter when the load runs in the
    binding's task group. A remote reference seen while the binding is not
    running is recorded in ``parse_error`` instead.
    """

    def __init__(self, url: str, detail: str, *, status: int | None = None) -> None:
        self.url = url
        self.detail = detail
        self.status = status
        if status is None:
            super().__init__(f"{url}: {detail}")
        else:
            super().__init__(f"{url} returned {status}: {detail}")
