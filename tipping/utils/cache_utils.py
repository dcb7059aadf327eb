"""
Cache utilities for the tipping league application
Tag-versioned keys on top of Flask-Caching so a tag can be invalidated without
enumerating the keys stored under it
"""

import functools

from flask import current_app

from tipping import cache

BET_BADGES_TAG = "bet-badges"


def data_tag(kind):
    """Cache tag covering read models of one bet kind, e.g. 'match-data'"""
    return f"{kind}-data"


def _version_key(tag):
    return f"tag_version_{tag}"


def get_tag_version(tag):
    version = cache.get(_version_key(tag))
    if version is None:
        version = 1
        cache.set(_version_key(tag), version, timeout=0)
    return version


def make_tagged_key(tag, *parts):
    """Build a cache key that changes whenever the tag is invalidated"""
    parts_str = "_".join(str(part) for part in parts)
    return f"{tag}_v{get_tag_version(tag)}_{parts_str}"


def cached_by_tag(tag, timeout=300):
    """
    Decorator for caching service results under a tag

    The wrapped function's positional and keyword arguments form the key.

    Args:
        tag: Cache tag, or a callable taking the call's args and returning one
        timeout: Cache timeout in seconds
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            resolved_tag = tag(*args, **kwargs) if callable(tag) else tag
            kwargs_parts = [f"{k}_{v}" for k, v in sorted(kwargs.items())]
            cache_key = make_tagged_key(resolved_tag, f.__name__, *args, *kwargs_parts)

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Cache hit for key: {cache_key}")
                return result

            result = f(*args, **kwargs)
            cache.set(cache_key, result, timeout=timeout)
            current_app.logger.debug(f"Cache set for key: {cache_key}")
            return result

        return wrapped

    return decorator


def invalidate_tags(*tags):
    """
    Invalidate every cache entry stored under the given tags

    Failures are logged and swallowed; cache state never decides the outcome
    of a business operation.
    """
    for tag in tags:
        try:
            cache.set(_version_key(tag), get_tag_version(tag) + 1, timeout=0)
            current_app.logger.debug(f"Cache tag invalidated: {tag}")
        except Exception as e:
            current_app.logger.error(f"Failed to invalidate cache tag {tag}: {e}")


def get_cache_stats():
    """Get cache statistics"""
    return {
        "type": current_app.config.get("CACHE_TYPE", "Unknown"),
        "timeout": current_app.config.get("CACHE_DEFAULT_TIMEOUT", 300),
    }
