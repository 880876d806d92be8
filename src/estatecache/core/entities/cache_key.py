"""Cache key value object."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from estatecache.utils.hashing import hash_value, normalize_segment


class InvalidCacheKeyError(ValueError):
    """Raised when a cache key is empty or cannot be built."""

    pass


@dataclass(frozen=True)
class CacheKey:
    """Immutable cache key value object.

    Combines the entity kind, an optional scope (entity or user id),
    the sorted filter parameters and a pagination cursor, so that
    distinct queries never share a cache slot.

    Example:
        >>> str(CacheKey.build("saved_properties", "u1", {"limit": 20}))
        'saved_properties_u1_limit=20'
    """

    kind: str
    scope: str | None = None
    filters: tuple[tuple[str, str], ...] = ()
    cursor: str | None = None

    def __post_init__(self) -> None:
        if not self.kind:
            raise InvalidCacheKeyError("Cache key kind must not be empty")

    def __str__(self) -> str:
        """Return the full cache key string.

        Returns:
            The complete cache key as a string.
        """
        parts = [self.kind]
        if self.scope:
            parts.append(self.scope)
        if self.filters:
            parts.append("&".join(f"{name}={value}" for name, value in self.filters))
        if self.cursor:
            parts.append(f"after={self.cursor}")
        return "_".join(parts)

    @classmethod
    def build(
        cls,
        kind: str,
        scope: Any | None = None,
        filters: Mapping[str, Any] | None = None,
        cursor: Any | None = None,
    ) -> "CacheKey":
        """Create a CacheKey from raw components.

        Filters with a None value are dropped. Mapping and sequence
        values are hashed so the key stays short and deterministic.

        Args:
            kind: Entity kind, e.g. ``"saved_properties"``.
            scope: Optional entity or user id.
            filters: Optional filter parameters.
            cursor: Optional pagination cursor.

        Returns:
            A new CacheKey instance.
        """
        normalized: list[tuple[str, str]] = []
        for name, value in sorted((filters or {}).items()):
            if value is None:
                continue
            normalized.append((name, _format_filter(value)))

        return cls(
            kind=kind,
            scope=normalize_segment(scope) if scope is not None else None,
            filters=tuple(normalized),
            cursor=normalize_segment(cursor) if cursor is not None else None,
        )


def _format_filter(value: Any) -> str:
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        if isinstance(value, (set, frozenset)):
            value = sorted(value, key=str)
        return hash_value(value)
    return normalize_segment(value)


def resolve_key(key: "str | CacheKey") -> str:
    """Turn a key argument into its string form.

    Raises:
        InvalidCacheKeyError: If the key is empty.
    """
    resolved = str(key)
    if not resolved:
        raise InvalidCacheKeyError("Cache key must not be empty")
    return resolved
