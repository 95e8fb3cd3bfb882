"""Legacy tag parsing and generation.

A tag has the form ``{domain}_{kind}`` where kind is one of db, api, app,
storage, pipes. When a component carries no explicit domain, the domain is
read back out of its tag.

Usage:
    resolve_domain("user_db")                        # "user"
    generate_unique_tag("Orders DB", "DB", {"Orders_DB_db"})  # "Orders_DB_1_db"
"""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping

KIND_SUFFIXES: tuple[str, ...] = ("db", "api", "app", "storage", "pipes")

_SUFFIX_GROUP = "|".join(KIND_SUFFIXES)
_DOMAIN_RE = re.compile(rf"^(.+)_({_SUFFIX_GROUP})\Z")
_VALID_TAG_RE = re.compile(rf"^[a-zA-Z0-9_-]+_({_SUFFIX_GROUP})\Z")
_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9_-]")
_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

_DB_NAME_HINTS = ("db", "database")
_DB_SOURCE_HINTS = ("postgres", "mysql", "mongo")
_API_NAME_HINTS = ("api", "service")
_API_SOURCE_HINTS = ("swagger", "openapi")


def resolve_domain(tag: str | None) -> str | None:
    """Return the domain prefix of *tag*, or None if it has no kind suffix.

    The match is greedy, so ``"a_b_db"`` resolves to ``"a_b"``.
    """
    if not tag:
        return None
    match = _DOMAIN_RE.match(tag)
    return match.group(1) if match else None


def validate_tag(tag: str) -> bool:
    """True if *tag* uses only ``[a-zA-Z0-9_-]`` and ends in a kind suffix."""
    return bool(_VALID_TAG_RE.match(tag))


def normalize_component_name(name: str) -> str:
    return _UNSAFE_CHARS_RE.sub("_", name.strip())


def generate_unique_tag(name: str, kind: str, existing_tags: Collection[str]) -> str:
    """Build ``{name}_{kind}``, numbering it until it is absent from *existing_tags*.

    Args:
        name: Display name; normalised to ``[a-zA-Z0-9_-]``.
        kind: Component type (``DB``, ``API``, ...); lower-cased for the suffix.
        existing_tags: Tags already taken. Never mutated.

    Returns:
        ``{name}_{kind}`` or, on collision, ``{name}_{n}_{kind}`` with n = 1, 2, ...
    """
    base = normalize_component_name(name)
    suffix = kind.lower()
    tag = f"{base}_{suffix}"
    counter = 1
    while tag in existing_tags:
        tag = f"{base}_{counter}_{suffix}"
        counter += 1
    return tag


def infer_component_type(name: str, source: str = "") -> str:
    """Guess a component type from its name and discovery source (DB, API or APP)."""
    name_lower = name.lower()
    source_lower = source.lower()

    if any(h in name_lower for h in _DB_NAME_HINTS) or any(
        h in source_lower for h in _DB_SOURCE_HINTS
    ):
        return "DB"
    if any(h in name_lower for h in _API_NAME_HINTS) or any(
        h in source_lower for h in _API_SOURCE_HINTS
    ):
        return "API"
    return "APP"


def render_tag_pattern(pattern: str, data: Mapping[str, object]) -> str:
    """Substitute ``{key}`` placeholders; unknown or empty keys are left as-is."""

    def _sub(match: re.Match[str]) -> str:
        value = data.get(match.group(1))
        return str(value) if value else match.group(0)

    return _PLACEHOLDER_RE.sub(_sub, pattern)
