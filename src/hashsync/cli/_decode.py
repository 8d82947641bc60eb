"""``hashsync decode`` — apply a URL to a scratch tree and print the state.

Remote references are resolved but not fetched unless ``--fetch`` is
given. Exits with code 1 if the fragment cannot be decoded or fetched.
"""

import argparse
import json
import sys

import anyio
import httpx

from hashsync.binding import UrlHashBinding
from hashsync.cli._input import as_url
from hashsync.errors import RemoteLoadError
from hashsync.fragment import RemoteFragment, classify_fragment, effective_fragment
from hashsync.navigation import MemoryNavigation
from hashsync.remote import parse_special_url
from hashsync.state import JsonStateTree


def run_decode(args: argparse.Namespace) -> None:
    url = as_url(args.url)
    tree = JsonStateTree()
    binding = UrlHashBinding(tree, MemoryNavigation(url))

    classified = classify_fragment(effective_fragment(url, binding.config.redirect_parameter).fragment)
    if isinstance(classified, RemoteFragment):
        try:
            if args.fetch:
                anyio.run(_fetch, tree, url, classified.url)
            else:
                print(parse_special_url(classified.url, binding.credentials_manager).url)
                return
        except RemoteLoadError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc
    else:
        binding.update_from_url_hash()
        error = binding.parse_error.value
        if error is not None:
            print(f"Error: {error}", file=sys.stderr)
            raise SystemExit(1)

    print(json.dumps(tree.value, indent=args.indent or None, ensure_ascii=False))


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


async def _fetch(tree: JsonStateTree, url: str, remote_url: str) -> None:
    # One-shot load: the binding is not entered, so no task group wraps errors.
    async with _client() as client:
        binding = UrlHashBinding(tree, MemoryNavigation(url), client=client)
        await binding.load_remote_state(remote_url)
