"""Invalidation rules mapping mutation events to affected cache keys."""

import fnmatch
import glob
from collections.abc import Iterable
from dataclasses import dataclass

# Placeholder for the related-id segment of a pattern
ID_PLACEHOLDER = "{id}"


class InvalidationRuleError(ValueError):
    """Raised when an invalidation rule is malformed."""

    pass


@dataclass(frozen=True)
class InvalidationRule:
    """Maps a mutation event to the key patterns it makes stale.

    Patterns are glob patterns over cache keys and entry tags. A
    pattern containing ``{id}`` is scoped to the related entity: with
    a related id, ``saved_properties_{id}`` matches
    ``saved_properties_<id>`` and ``saved_properties_<id>_...``; without
    one it matches every ``saved_properties_*`` key. Patterns without
    the placeholder are never narrowed.

    Example:
        InvalidationRule(
            event="saved_properties",
            patterns=("saved_properties_{id}", "user_profile_{id}"),
        )
    """

    event: str
    patterns: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.event:
            raise InvalidationRuleError("Invalidation rule needs an event name")
        if not self.patterns or not all(self.patterns):
            raise InvalidationRuleError(
                f"Invalidation rule {self.event!r} needs non-empty patterns"
            )

    def expand(self, related_id: str | None = None) -> list[str]:
        """Expand the rule's patterns into concrete glob patterns.

        Args:
            related_id: Optional entity id scoping ``{id}`` patterns.

        Returns:
            Glob patterns to match against keys and tags.
        """
        return expand_patterns(self.patterns, related_id)


def expand_patterns(
    patterns: Iterable[str],
    related_id: str | None = None,
) -> list[str]:
    """Expand ``{id}`` placeholders into glob patterns.

    Args:
        patterns: Patterns that may contain the ``{id}`` placeholder.
        related_id: Optional entity id to substitute.

    Returns:
        A list of glob patterns.
    """
    expanded: list[str] = []
    for pattern in patterns:
        if ID_PLACEHOLDER not in pattern:
            expanded.append(pattern)
        elif related_id is None:
            expanded.append(pattern.replace(ID_PLACEHOLDER, "*"))
        else:
            scoped = pattern.replace(ID_PLACEHOLDER, glob.escape(str(related_id)))
            expanded.append(scoped)
            expanded.append(f"{scoped}_*")
    return expanded


def matches_any(candidates: Iterable[str], globs: list[str]) -> bool:
    """Check whether any candidate string matches any glob pattern."""
    return any(
        fnmatch.fnmatchcase(candidate, pattern)
        for candidate in candidates
        for pattern in globs
    )


# Collection views may contain the mutated property, so they are
# evicted wholesale; detail and per-user views are scoped by id.
DEFAULT_RULES: tuple[InvalidationRule, ...] = (
    InvalidationRule(
        event="user_properties",
        patterns=(
            "user_properties_{id}",
            "all_properties_*",
            "recent_properties*",
        ),
    ),
    InvalidationRule(
        event="property_create",
        patterns=(
            "user_properties_*",
            "all_properties_*",
            "recent_properties*",
        ),
    ),
    InvalidationRule(
        event="property_update",
        patterns=(
            "user_properties_*",
            "all_properties_*",
            "recent_properties*",
            "property_{id}",
            "saved_properties_*",
        ),
    ),
    InvalidationRule(
        event="property_delete",
        patterns=(
            "user_properties_*",
            "all_properties_*",
            "recent_properties*",
            "property_{id}",
            "saved_properties_*",
        ),
    ),
    InvalidationRule(
        event="saved_properties",
        patterns=("saved_properties_{id}", "user_profile_{id}"),
    ),
    InvalidationRule(
        event="user_update",
        patterns=("user_profile_{id}", "saved_properties_{id}"),
    ),
)

# Everything scoped to one user
USER_DATA_PATTERNS: tuple[str, ...] = (
    "user_properties_{id}",
    "saved_properties_{id}",
    "user_profile_{id}",
)

# Every property-derived view
PROPERTY_DATA_PATTERNS: tuple[str, ...] = (
    "all_properties_*",
    "user_properties_*",
    "property_*",
)
