"""Tolerant version parsing and comparison across package registries."""

from __future__ import annotations

from .comparator import Comparison, classify_change, compare_versions, has_update, is_prerelease
from .parser import Opaque, ParsedVersion, Semantic, clean_version, parse_version

__all__ = [
    "Comparison",
    "Opaque",
    "ParsedVersion",
    "Semantic",
    "classify_change",
    "clean_version",
    "compare_versions",
    "has_update",
    "is_prerelease",
    "parse_version",
]
