"""In-memory caches shared across backend services."""

from .coaching_cache import coaching_cache, CoachingCache

__all__ = ["coaching_cache", "CoachingCache"]
