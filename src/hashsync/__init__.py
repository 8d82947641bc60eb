"""hashsync — keep an observable JSON state tree in the URL fragment.

State changes are debounced and written to the fragment as ``#!<json>``;
navigation back, forward or to a pasted link restores the state from it.

Basic usage::

    from hashsync import JsonStateTree, MemoryNavigation, UrlHashBinding

    tree = JsonStateTree()
    nav = MemoryNavigation("https://viewer.example/")

    async with UrlHashBinding(tree, nav) as binding:
        binding.update_from_url_hash()
        tree.set("layout", "xy")

Fragment forms::

    #  /  #!  / (none)        empty state {}
    #!{"layout":"xy"}         replace the state
    #!+{"layout":"xy"}        merge into the current state
    #!https://host/s.json     fetch the state document
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "BindingConfig",
    "ConfigurationError",
    "CredentialsManager",
    "DecodeError",
    "FragmentError",
    "HashSyncError",
    "JsonStateTree",
    "LoggingStatus",
    "MalformedFragmentError",
    "MemoryNavigation",
    "RemoteLoadError",
    "ShapeError",
    "StaticCredentialsProvider",
    "UrlHashBinding",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import hashsync`` fast while providing a clean top-level API.
    """
    if name == "UrlHashBinding":
        from hashsync.binding import UrlHashBinding

        return UrlHashBinding

    if name == "BindingConfig":
        from hashsync.config import BindingConfig

        return BindingConfig

    if name == "JsonStateTree":
        from hashsync.state import JsonStateTree

        return JsonStateTree

    if name == "MemoryNavigation":
        from hashsync.navigation import MemoryNavigation

        return MemoryNavigation

    if name == "LoggingStatus":
        from hashsync.status import LoggingStatus

        return LoggingStatus

    if name in ("CredentialsManager", "StaticCredentialsProvider"):
        from hashsync import remote as _remote

        return getattr(_remote, name)

    if name in (
        "ConfigurationError",
        "DecodeError",
        "FragmentError",
        "HashSyncError",
        "MalformedFragmentError",
        "RemoteLoadError",
        "ShapeError",
    ):
        from hashsync import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
