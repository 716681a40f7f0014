"""Response caching for AI calls."""

from ascend_ai.cache.keys import generate_key, hash_input
from ascend_ai.cache.response import CacheEntry, CacheStats, ResponseCache

__all__ = ["CacheEntry", "CacheStats", "ResponseCache", "generate_key", "hash_input"]
