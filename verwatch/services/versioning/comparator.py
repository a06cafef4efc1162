"""Version ordering and prerelease classification.

Semantic versions follow semantic-version precedence. Anything else is only
compared for equality of its cleaned text, and an unequal pair is reported as
``GREATER`` so that an incomparable remote version still surfaces as an update
candidate.
"""

from __future__ import annotations

from enum import Enum

from .parser import Opaque, Semantic, clean_version, parse_version

PRERELEASE_MARKERS = ("alpha", "beta", "rc", "preview", "canary", "nightly")


class Comparison(str, Enum):
    GREATER = "greater"
    EQUAL = "equal"
    LESS = "less"
    UNKNOWN = "unknown"


def compare_versions(latest: str, local: str | None) -> Comparison:
    """Compare the remote ``latest`` version against the ``local`` one."""
    if local is None:
        return Comparison.UNKNOWN

    latest_parsed = parse_version(latest)
    local_parsed = parse_version(local)

    if isinstance(latest_parsed, Semantic) and isinstance(local_parsed, Semantic):
        order = latest_parsed.version.compare(local_parsed.version)
        if order > 0:
            return Comparison.GREATER
        if order < 0:
            return Comparison.LESS
        return Comparison.EQUAL

    if isinstance(latest_parsed, Opaque) and isinstance(local_parsed, Opaque):
        return Comparison.EQUAL if latest_parsed.text == local_parsed.text else Comparison.GREATER

    if clean_version(latest) == clean_version(local):
        return Comparison.EQUAL
    return Comparison.GREATER


def has_update(latest: str, local: str | None) -> bool:
    return compare_versions(latest, local) is Comparison.GREATER


def is_prerelease(version: str) -> bool:
    parsed = parse_version(version)
    if isinstance(parsed, Semantic):
        return parsed.is_prerelease
    lowered = parsed.text.lower()
    return any(marker in lowered for marker in PRERELEASE_MARKERS)


def classify_change(old: str, new: str) -> str | None:
    """Return ``"major"``, ``"minor"`` or ``"patch"`` for an upgrade from ``old`` to ``new``.

    The highest differing component decides. ``None`` when either side is not
    semantic, the numeric parts are equal, or the highest difference is a
    downgrade.
    """
    old_parsed = parse_version(old)
    new_parsed = parse_version(new)
    if not (isinstance(old_parsed, Semantic) and isinstance(new_parsed, Semantic)):
        return None

    for component in ("major", "minor", "patch"):
        old_value = getattr(old_parsed, component)
        new_value = getattr(new_parsed, component)
        if new_value == old_value:
            continue
        return component if new_value > old_value else None
    return None
