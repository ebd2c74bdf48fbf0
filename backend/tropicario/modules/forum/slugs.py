"""
Slug derivation for sections, threads and topics.
"""

import re
import time

from slugify import slugify

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", flags=re.ASCII)


def make_slug(title: str) -> str:
    """
    Lowercase, hyphenated form of a title.

    Characters outside [a-z0-9_-] are dropped (not transliterated), whitespace
    runs become one hyphen, repeated hyphens collapse and edge hyphens are trimmed.
    """
    text = _NON_SLUG_CHARS.sub("", title.strip().lower())
    return slugify(text, regex_pattern=r"[^-a-z0-9_]+", lowercase=True)


def now_ms() -> int:
    return int(time.time() * 1000)


def make_topic_slug(title: str, stamp: int | None = None) -> str:
    """Slug with a millisecond timestamp suffix, generated once per topic."""
    return f"{make_slug(title)}-{now_ms() if stamp is None else stamp}"
