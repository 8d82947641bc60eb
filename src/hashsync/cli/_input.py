"""Shared argument handling for the fragment commands."""

SCRATCH_ORIGIN = "http://localhost/"


def as_url(value: str) -> str:
    """Accept either a full URL or a bare fragment; return a full URL."""
    if value.startswith("#"):
        return SCRATCH_ORIGIN + value
    return value
