"""Fragment text codec.

Turns JSON text into a URL-fragment-safe string and back.

Outbound encoding follows ``encodeURI`` rules (reserved and unreserved URI
characters pass through, everything else is UTF-8 percent-encoded with
uppercase hex) and additionally escapes ``! ' ( ) * ; ,`` so intermediaries
that leave those raw cannot corrupt the fragment.

Inbound decoding is strict, like ``decodeURIComponent``: a stray ``%`` or
an escape run that is not valid UTF-8 raises ``DecodeError`` instead of
being passed through.
"""

import json
import re
from typing import Any
from urllib.parse import quote

from hashsync.errors import DecodeError, ShapeError

# encodeURI's pass-through set, minus the characters we always escape.
# ``quote`` keeps ASCII letters, digits and ``_.-~`` on its own.
_FRAGMENT_SAFE = "/?:@&=+$#"

_ESCAPE_RUN_RE = re.compile(r"(?:%[0-9A-Fa-f]{2})+|%")


def encode_fragment(text: str) -> str:
    """Percent-encode *text* for use in a URL fragment.

    Examples::

        >>> encode_fragment('{"a":1}')
        '%7B%22a%22:1%7D'
        >>> encode_fragment("(x)")
        '%28x%29'
    """
    return quote(text, safe=_FRAGMENT_SAFE)


def decode_uri_component(text: str) -> str:
    """Decode every ``%XX`` escape in *text*.

    Raises:
        DecodeError: A ``%`` is not followed by two hex digits, or an
            escape run does not decode as UTF-8.
    """
    parts: list[str] = []
    last = 0
    for match in _ESCAPE_RUN_RE.finditer(text):
        run = match.group(0)
        if run == "%":
            msg = "URI malformed: '%' not followed by two hex digits"
            raise DecodeError(msg, position=match.start())
        parts.append(text[last : match.start()])
        try:
            parts.append(bytes.fromhex(run.replace("%", "")).decode("utf-8"))
        except UnicodeDecodeError as exc:
            msg = "URI malformed: escape sequence is not valid UTF-8"
            raise DecodeError(msg, position=match.start() + exc.start * 3) from exc
        last = match.end()
    parts.append(text[last:])
    return "".join(parts)


def stringify_state(value: Any) -> str:
    """Serialize a JSON-compatible value the way browsers do (compact, raw unicode)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _reject_constant(name: str) -> Any:
    msg = f"Unexpected token {name} in JSON"
    raise DecodeError(msg)


def url_safe_parse(text: str) -> Any:
    """Parse JSON text, accepting the url-safe single-quote dialect.

    Standard JSON is tried first so strings containing apostrophes survive
    a round trip. Only if that fails are single quotes read as double
    quotes (``{'a':'b'}``).

    Raises:
        DecodeError: Neither form parses, or the text uses ``NaN`` or
            ``Infinity``. Reports the strict parse error.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as strict_exc:
        if "'" not in text:
            raise DecodeError(strict_exc.msg, position=strict_exc.pos) from strict_exc
        try:
            return json.loads(text.replace("'", '"'), parse_constant=_reject_constant)
        except json.JSONDecodeError:
            raise DecodeError(strict_exc.msg, position=strict_exc.pos) from strict_exc


def verify_object(value: Any) -> dict[str, Any]:
    """Return *value* if it is a JSON object, else raise ``ShapeError``."""
    if not isinstance(value, dict):
        raise ShapeError(_json_type_name(value))
    return value


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


def remove_parameter_from_url(url: str, parameter: str) -> str:
    """Remove ``parameter=...`` from the query string of *url*.

    The fragment is preserved. Other parameters keep their order::

        >>> remove_parameter_from_url("https://h/p?a=1&json_url=x&b=2#!{}", "json_url")
        'https://h/p?a=1&b=2#!{}'
        >>> remove_parameter_from_url("https://h/p?json_url=x#frag", "json_url")
        'https://h/p#frag'
    """
    name = re.escape(parameter)
    url = re.sub(rf"[?&]{name}=[^&#]*(#.*)?$", lambda m: m.group(1) or "", url, count=1)
    return re.sub(rf"([?&]){name}=[^&#]*&", r"\1", url, count=1)
