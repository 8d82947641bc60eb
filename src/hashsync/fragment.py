"""Fragment classification.

An effective fragment string is classified into one of four shapes by an
ordered pattern dispatch. Each shape is a frozen dataclass; callers
``match`` on the type::

    match classify_fragment(effective.fragment):
        case RemoteFragment(url=url): ...
        case LegacyFragment(payload=payload): ...
        case StandardFragment(payload=payload): ...
        case MalformedFragment(): ...

Payloads are returned exactly as they appear in the URL, still
percent-encoded. Decoding depends on whether redirect recovery was used,
which ``EffectiveFragment.recovered`` records.
"""

import re
from dataclasses import dataclass
from urllib.parse import parse_qs

EMPTY_STATE_FRAGMENT = "#!{}"

_EMPTY_FRAGMENTS = frozenset({"", "#", "#!"})

# Scheme per RFC 3986: ALPHA *( ALPHA / DIGIT / "+" / "-" / "." ), lowercase only.
_REMOTE_RE = re.compile(r"^#!([a-z][a-z\d+\-.]*)://")


@dataclass(frozen=True, slots=True)
class StandardFragment:
    """``#!<payload>`` — full-replace state."""

    payload: str


@dataclass(frozen=True, slots=True)
class LegacyFragment:
    """``#!+<payload>`` — merge into the current state, no reset."""

    payload: str


@dataclass(frozen=True, slots=True)
class RemoteFragment:
    """``#!<scheme>://...`` — fetch the state document from *url*."""

    url: str
    scheme: str


@dataclass(frozen=True, slots=True)
class MalformedFragment:
    """Anything that is not one of the ``#!`` forms."""

    raw: str


type ClassifiedFragment = StandardFragment | LegacyFragment | RemoteFragment | MalformedFragment


@dataclass(frozen=True, slots=True)
class EffectiveFragment:
    """The fragment an inbound cycle should decode.

    Attributes:
        fragment: Fragment text including the leading ``#``.
        recovered: True when the text came from the redirect query
            parameter instead of the URL's own fragment. Recovered
            payloads carry one extra layer of percent-encoding.
    """

    fragment: str
    recovered: bool = False


def split_fragment(url: str) -> tuple[str, str]:
    """Split *url* into ``(before, fragment)``; *fragment* keeps its ``#``."""
    before, sep, after = url.partition("#")
    return before, sep + after


def check_redirect_fragment(
    url: str, parameter: str = "redirect_fragment"
) -> tuple[bool, str]:
    """Extract a fragment relocated into the query by an identity-provider redirect.

    Some identity providers move the original fragment into a query
    parameter on the way back to the application. Returns ``(True, "#" +
    value)`` when *parameter* is present, else ``(False, "")``.

    Only the query proper is read; the URL's own fragment is ignored.
    """
    before, _ = split_fragment(url)
    _, sep, query = before.partition("?")
    if not sep:
        return False, ""
    params = parse_qs(query, keep_blank_values=True)
    values = params.get(parameter)
    if not values:
        return False, ""
    return True, f"#{values[0]}"


def effective_fragment(url: str, redirect_parameter: str = "redirect_fragment") -> EffectiveFragment:
    """Pick the fragment an inbound cycle should decode from *url*.

    The redirect parameter takes precedence over the literal fragment.
    An empty literal fragment (``""``, ``"#"`` or ``"#!"``) is the
    canonical empty state ``#!{}``.
    """
    found, recovered = check_redirect_fragment(url, redirect_parameter)
    if found:
        return EffectiveFragment(recovered, recovered=True)
    _, fragment = split_fragment(url)
    if fragment in _EMPTY_FRAGMENTS:
        fragment = EMPTY_STATE_FRAGMENT
    return EffectiveFragment(fragment)


def classify_fragment(fragment: str) -> ClassifiedFragment:
    """Classify *fragment* (including its leading ``#``) by shape.

    Checked in priority order: remote reference, legacy ``#!+``, standard
    ``#!``. Anything else is malformed.
    """
    remote = _REMOTE_RE.match(fragment)
    if remote is not None:
        return RemoteFragment(url=fragment[2:], scheme=remote.group(1))
    if fragment.startswith("#!+"):
        return LegacyFragment(payload=fragment[3:])
    if fragment.startswith("#!"):
        return StandardFragment(payload=fragment[2:])
    return MalformedFragment(raw=fragment)
