"""Version string parsing.

Registries mix strict semantic versions (``1.2.3-rc.1``), truncated ones
(``1.2``, ``5``), build suffixes (``1.2.3_1``, ``1.2.3.4``) and date or build
schemes (``2024-01-15``). :func:`parse_version` resolves a raw string into a
:class:`Semantic` version when one of the fallbacks below applies and into an
:class:`Opaque` value otherwise. It never raises.

Resolution order, first match wins:

1. strict ``major.minor.patch[-prerelease][+build]``
2. the same with ``.0`` appended (``1.2`` -> ``1.2.0``)
3. purely numeric strings with ``.0.0`` appended (``5`` -> ``5.0.0``)
4. at most one hyphen, split on ``.``/``_``, three numeric-leading parts and
   a first part under 1000 (keeps ``2024.01.15`` out of the major range)
5. opaque
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from semver import Version

_NUMERIC_PREFIX = re.compile(r"^(\d+)")
_COMPONENT_SPLIT = re.compile(r"[._]")
_MAX_HEURISTIC_MAJOR = 1000


@dataclass(frozen=True)
class Semantic:
    version: Version

    @property
    def major(self) -> int:
        return self.version.major

    @property
    def minor(self) -> int:
        return self.version.minor

    @property
    def patch(self) -> int:
        return self.version.patch

    @property
    def prerelease(self) -> str | None:
        return self.version.prerelease

    @property
    def is_prerelease(self) -> bool:
        return bool(self.version.prerelease)


@dataclass(frozen=True)
class Opaque:
    text: str


ParsedVersion = Union[Semantic, Opaque]


def clean_version(version: str) -> str:
    """Trim whitespace and a single leading ``v`` (``" v1.2.3 "`` -> ``"1.2.3"``)."""
    cleaned = (version or "").strip()
    if cleaned[:1] in {"v", "V"}:
        cleaned = cleaned[1:]
    return cleaned.strip()


def _is_number(value: str) -> bool:
    return value.isascii() and value.isdigit()


def _strict(text: str) -> Version | None:
    try:
        return Version.parse(text)
    except (TypeError, ValueError):
        return None


def _from_components(cleaned: str) -> Version | None:
    if cleaned.count("-") > 1:
        return None
    parts = _COMPONENT_SPLIT.split(cleaned)
    if len(parts) < 3:
        return None
    if not (_is_number(parts[0]) and _is_number(parts[1])):
        return None
    patch = _NUMERIC_PREFIX.match(parts[2])
    if patch is None:
        return None
    major = int(parts[0])
    if major >= _MAX_HEURISTIC_MAJOR:
        return None
    return _strict(f"{major}.{int(parts[1])}.{int(patch.group(1))}")


def parse_version(version: str) -> ParsedVersion:
    cleaned = clean_version(version)

    parsed = _strict(cleaned)
    if parsed is None:
        parsed = _strict(f"{cleaned}.0")
    if parsed is None and _is_number(cleaned):
        parsed = _strict(f"{cleaned}.0.0")
    if parsed is None:
        parsed = _from_components(cleaned)

    if parsed is None:
        return Opaque(cleaned)
    return Semantic(parsed)
