"""Slug helpers for tool names."""

import re
from typing import Iterable

# Word characters are ASCII only; whitespace includes non-ASCII spaces such as U+00A0
_DISALLOWED = re.compile(r"[^A-Za-z0-9_\s-]")
_SEPARATORS = re.compile(r"[\s_]+")
_REPEATED_HYPHENS = re.compile(r"-+")
_SLUG = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")


def to_slug(value: str) -> str:
    """
    Convert a string to a slug.

    Lower-cases, drops characters other than word characters, whitespace and
    hyphens, turns whitespace/underscore runs into single hyphens, collapses
    repeated hyphens and trims hyphens from both ends.
    """
    slug = value.lower().strip()
    slug = _DISALLOWED.sub("", slug)
    slug = _SEPARATORS.sub("-", slug)
    slug = _REPEATED_HYPHENS.sub("-", slug)
    return slug.strip("-")


def is_valid_slug(value: str) -> bool:
    """True for lowercase alphanumerics separated by single hyphens."""
    if not value:
        return False
    return _SLUG.fullmatch(value) is not None


def unique_slug(base: str, taken: Iterable[str]) -> str:
    """Return base, or base-2, base-3, ... whichever is not taken."""
    taken = set(taken)
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"
