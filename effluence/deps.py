"""Factories for process-wide singletons.

Tests and ``uninit()`` reset them with ``get_settings.cache_clear()``.
"""

from functools import lru_cache

from effluence.config import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
