"""Privacy tier taxonomy and legacy normalization.

Rows arrive from the backend with free-text ``privacy_level`` values. The
pipeline reasons over the five-tier :class:`PrivacyLevel`; some presentation
paths collapse it into the three-tier :class:`SimplePrivacyLevel`.
"""
from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class PrivacyLevel(str, Enum):
    """Canonical visibility classification of a post."""

    PUBLIC = "public"
    PUBLIC_HIGHLIGHTS = "public_highlights"
    FRIENDS = "friends"
    COACHES = "coaches"
    PRIVATE = "private"


class SimplePrivacyLevel(str, Enum):
    """Three-tier projection used for display."""

    PUBLIC = "public"
    PUBLIC_HIGHLIGHTS = "public_highlights"
    PRIVATE = "private"


_LOOKUP: dict[str, PrivacyLevel] = {level.value: level for level in PrivacyLevel}


def normalize_privacy_level(raw: object) -> PrivacyLevel | str:
    """Parse a stored privacy value into the five-tier model.

    Unrecognised values are returned as strings so callers can fail closed on
    them instead of guessing a tier.
    """
    if isinstance(raw, PrivacyLevel):
        return raw
    if isinstance(raw, str):
        level = _LOOKUP.get(raw)
        if level is not None:
            return level
        logger.debug("Unrecognised privacy level %r kept verbatim", raw)
        return raw
    return str(raw)


def simplify_privacy_level(level: PrivacyLevel | str) -> SimplePrivacyLevel:
    """Collapse a five-tier value into the three-tier display scheme.

    ``friends`` and ``coaches`` become ``private``; anything unknown does too.
    """
    parsed = normalize_privacy_level(level)
    if parsed is PrivacyLevel.PUBLIC:
        return SimplePrivacyLevel.PUBLIC
    if parsed is PrivacyLevel.PUBLIC_HIGHLIGHTS:
        return SimplePrivacyLevel.PUBLIC_HIGHLIGHTS
    return SimplePrivacyLevel.PRIVATE


def is_public(level: PrivacyLevel | str) -> bool:
    """Return True only for the ``public`` tier."""
    return normalize_privacy_level(level) is PrivacyLevel.PUBLIC
