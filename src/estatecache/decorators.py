"""Cache decorators for async data-access functions.

``@cached`` routes a coroutine function through ``CacheStore.get_or_fetch``
and ``@invalidates`` declares, at the mutation's definition, which
invalidation event it triggers once it succeeds.

The store is passed explicitly or, for methods, read from the
instance's ``cache`` attribute.
"""

import functools
import inspect
import re
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from estatecache.core.entities.cache_key import CacheKey
from estatecache.core.services.cache_store import CacheStore

F = TypeVar("F", bound=Callable[..., Any])

STORE_ATTRIBUTE = "cache"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def cached(
    key: str | Callable[..., str | CacheKey],
    ttl: timedelta | None = None,
    tags: list[str] | None = None,
    store: CacheStore | None = None,
) -> Callable[[F], F]:
    """Decorator for caching async function results.

    Args:
        key: Cache key template or function building the key.
            If string, supports {arg_name} interpolation.
            If callable, receives the call's arguments and returns the key.
        ttl: Time-to-live for cached results. Uses the store default if None.
        tags: Dependency tags. Supports {arg_name} interpolation.
        store: The cache store. Read from ``self.cache`` if None.

    Returns:
        Decorated function.

    Example:
        class ProfileService:
            def __init__(self, cache: CacheStore, source: IPropertySource):
                self.cache = cache
                self.source = source

            @cached(key="user_profile_{user_id}", ttl=timedelta(seconds=30))
            async def get_profile(self, user_id: str) -> dict | None:
                return await self.source.fetch_user_profile(user_id)
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            arguments = _bind(signature, args, kwargs)
            cache_store = _resolve_store(store, arguments)

            if callable(key):
                cache_key: str | CacheKey = key(*args, **kwargs)
            else:
                cache_key = _interpolate_string(key, arguments)

            return await cache_store.get_or_fetch(
                cache_key,
                lambda: func(*args, **kwargs),
                ttl=ttl,
                tags=_resolve_tags(tags, arguments),
            )

        return wrapper  # type: ignore

    return decorator


def invalidates(
    event: str,
    related_id: str | Callable[..., str | None] | None = None,
    store: CacheStore | None = None,
) -> Callable[[F], F]:
    """Decorator for invalidating cache entries on mutation.

    Executes the decorated function and, if it succeeds, calls
    ``invalidate_on_change`` with the declared event. A failed
    mutation invalidates nothing.

    Args:
        event: The mutation event, e.g. ``"saved_properties"``.
        related_id: Optional entity id template (supports {arg_name})
            or function receiving the call's arguments.
        store: The cache store. Read from ``self.cache`` if None.

    Returns:
        Decorated function.

    Example:
        @invalidates("property_update", related_id="{property_id}")
        async def update_property(self, property_id: str, updates: dict) -> None:
            await self.source.update_property(property_id, updates)
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            arguments = _bind(signature, args, kwargs)
            cache_store = _resolve_store(store, arguments)

            # Execute function first
            result = await func(*args, **kwargs)

            if callable(related_id):
                scope = related_id(*args, **kwargs)
            elif related_id is not None:
                scope = _interpolate_string(related_id, arguments)
            else:
                scope = None

            cache_store.invalidate_on_change(event, scope)
            return result

        return wrapper  # type: ignore

    return decorator


def _bind(
    signature: inspect.Signature,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> dict[str, Any]:
    bound = signature.bind(*args, **kwargs)
    bound.apply_defaults()
    return dict(bound.arguments)


def _resolve_store(
    store: CacheStore | None,
    arguments: dict[str, Any],
) -> CacheStore:
    """Find the cache store for a call.

    Raises:
        RuntimeError: If no store was given and the first argument
            has no ``cache`` attribute.
    """
    if store is not None:
        return store

    if arguments:
        owner = next(iter(arguments.values()))
        candidate = getattr(owner, STORE_ATTRIBUTE, None)
        if isinstance(candidate, CacheStore):
            return candidate

    raise RuntimeError(
        "No cache store available. Pass store= or decorate a method "
        f"of an object with a '{STORE_ATTRIBUTE}' attribute."
    )


def _resolve_tags(
    tags: list[str] | None,
    arguments: dict[str, Any],
) -> list[str]:
    """Resolve tags with argument interpolation.

    Args:
        tags: Tag patterns with optional {arg} placeholders.
        arguments: Bound call arguments.

    Returns:
        List of resolved tag strings.
    """
    if not tags:
        return []
    return [_interpolate_string(tag, arguments) for tag in tags]


def _interpolate_string(template: str, arguments: dict[str, Any]) -> str:
    """Interpolate {arg_name} placeholders in string.

    Args:
        template: String with {arg_name} placeholders.
        arguments: Bound call arguments, positional ones included.

    Returns:
        Interpolated string. Unknown placeholders are kept as-is.
    """

    def replacer(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in arguments:
            return str(arguments[name])
        return match.group(0)  # Keep original if not found

    return _PLACEHOLDER.sub(replacer, template)
