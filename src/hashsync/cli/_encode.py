"""``hashsync encode`` — print the fragment for a JSON object.

Runs the object through a scratch tree and the binding's own outbound
path, so the output is exactly what an application would write.
"""

import argparse
import json
import sys
from pathlib import Path

from hashsync.binding import UrlHashBinding
from hashsync.cli._input import SCRATCH_ORIGIN
from hashsync.errors import ShapeError
from hashsync.navigation import MemoryNavigation
from hashsync.state import JsonStateTree


def run_encode(args: argparse.Namespace) -> None:
    try:
        if args.file == "-":
            value = json.load(sys.stdin)
        else:
            value = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    tree = JsonStateTree()
    try:
        tree.restore_state(value)
    except ShapeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    navigation = MemoryNavigation(SCRATCH_ORIGIN)
    UrlHashBinding(tree, navigation).set_url_hash()
    print(navigation.current_fragment() or "#")
