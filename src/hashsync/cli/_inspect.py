"""``hashsync inspect`` — show how a URL's fragment is classified."""

import argparse

from hashsync.cli._input import as_url
from hashsync.codec import decode_uri_component
from hashsync.config import BindingConfig
from hashsync.errors import DecodeError
from hashsync.fragment import (
    LegacyFragment,
    MalformedFragment,
    RemoteFragment,
    StandardFragment,
    classify_fragment,
    effective_fragment,
)


def run_inspect(args: argparse.Namespace) -> None:
    effective = effective_fragment(as_url(args.url), BindingConfig().redirect_parameter)
    print(f"fragment:  {effective.fragment}")
    print(f"recovered: {'yes' if effective.recovered else 'no'}")

    match classify_fragment(effective.fragment):
        case RemoteFragment(url=url, scheme=scheme):
            print("kind:      remote")
            print(f"scheme:    {scheme}")
            print(f"url:       {url}")
        case LegacyFragment(payload=payload):
            print("kind:      legacy (merge)")
            _print_payload(payload, effective.recovered)
        case StandardFragment(payload=payload):
            print("kind:      standard (replace)")
            _print_payload(payload, effective.recovered)
        case MalformedFragment():
            print("kind:      malformed")


def _print_payload(payload: str, recovered: bool) -> None:
    try:
        text = decode_uri_component(payload)
        if recovered:
            text = decode_uri_component(text)
    except DecodeError as exc:
        print(f"decoded:   <{exc}>")
        return
    print(f"decoded:   {text}")
