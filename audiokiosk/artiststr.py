"""
The artiststr module parses and formats artist credits. Tags carry artists as a single free-form
string, e.g. `Alice & Bob and Carol`, while the catalog stores individual artists. The functions
here convert between the two forms, and compute the canonical key that artists are deduplicated on.
"""

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

WHITESPACE_REGEX = re.compile(r"\s+")
TRAILING_PUNCTUATION_REGEX = re.compile(r"[,.;:\s]+$")
ARTIST_CONJUNCTION_REGEX = re.compile(r"&|\band\b", re.IGNORECASE)


def canonical_key(name: Any) -> str:
    """
    Compute the identity of an artist name. Two names with the same canonical key are the same
    artist. The key is never displayed.
    """
    if not isinstance(name, str):
        return ""
    key = WHITESPACE_REGEX.sub(" ", name.strip())
    key = TRAILING_PUNCTUATION_REGEX.sub("", key)
    return key.lower()


def split_artists(raw: str | None) -> list[str]:
    """
    Split a compound artist credit into individual artist names. Names are deduplicated on their
    canonical key; the first spelling and the first position win.
    """
    if not raw:
        return []
    rval: list[str] = []
    seen: set[str] = set()
    for part in ARTIST_CONJUNCTION_REGEX.sub(",", raw).split(","):
        name = part.strip()
        if not name:
            continue
        key = canonical_key(name)
        if not key or key in seen:
            continue
        seen.add(key)
        rval.append(name)
    logger.debug(f"Split artist credit {raw!r} into {rval}")
    return rval


def join_artists(names: list[str]) -> str:
    """Format artist names as a human-readable credit, e.g. `Alice, Bob and Carol`."""
    names = sorted(names, key=str.lower)
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + " and " + names[-1]
