"""Utility helpers for estatecache."""

from estatecache.utils.hashing import hash_value, normalize_segment

__all__ = ["hash_value", "normalize_segment"]
