"""hashsync CLI — encode, decode and inspect state fragments.

Entry point registered as ``hashsync`` in ``pyproject.toml``::

    [project.scripts]
    hashsync = "hashsync.cli:main"
"""

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``hashsync`` command."""
    parser = argparse.ArgumentParser(
        prog="hashsync",
        description="hashsync — keep application state in the URL fragment.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # -- hashsync encode --------------------------------------------------
    encode_parser = subparsers.add_parser("encode", help="Encode a JSON object as a URL fragment")
    encode_parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="JSON file to read ('-' or omitted for stdin)",
    )

    # -- hashsync decode --------------------------------------------------
    decode_parser = subparsers.add_parser("decode", help="Decode a URL or fragment to JSON")
    decode_parser.add_argument("url", help="Full URL or fragment (starting with '#')")
    decode_parser.add_argument(
        "--fetch",
        action="store_true",
        help="Fetch remote state references instead of printing the resolved URL",
    )
    decode_parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")

    # -- hashsync inspect -------------------------------------------------
    inspect_parser = subparsers.add_parser("inspect", help="Show how a URL or fragment is classified")
    inspect_parser.add_argument("url", help="Full URL or fragment (starting with '#')")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "encode":
        from hashsync.cli._encode import run_encode

        run_encode(args)
    elif args.command == "decode":
        from hashsync.cli._decode import run_decode

        run_decode(args)
    elif args.command == "inspect":
        from hashsync.cli._inspect import run_inspect

        run_inspect(args)
