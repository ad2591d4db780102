"""On-disk storage of the deprecation cache."""

from __future__ import annotations

import json
import os
from pathlib import Path

from .config import CACHE_DIR_NAME, CACHE_FILE
from .models import DeprecationCache


class CacheService:
    """Loads, saves and clears the JSON cache file."""

    def __init__(self, cache_dir: str | os.PathLike[str] | None = None) -> None:
        if cache_dir is None:
            self.cache_dir = Path.home() / CACHE_DIR_NAME
        else:
            self.cache_dir = Path(cache_dir)

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / CACHE_FILE

    def load(self) -> DeprecationCache:
        """Return the cached data; a missing or unreadable cache file gives an empty cache."""
        try:
            raw = self.cache_path.read_bytes()
        except FileNotFoundError:
            return DeprecationCache()
        try:
            data = json.loads(raw)
            if data is None:
                return DeprecationCache()
            if not isinstance(data, dict):
                return DeprecationCache()
            return DeprecationCache.from_dict(data)
        except (ValueError, TypeError, AttributeError):
            return DeprecationCache()

    def save(self, cache: DeprecationCache) -> None:
        """Write the cache, creating its directory when needed."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        text = json.dumps(cache.to_dict(), indent=2, ensure_ascii=False)
        self.cache_path.write_text(text, encoding="utf-8")

    def clear(self) -> None:
        """Delete the cache file if it exists."""
        self.cache_path.unlink(missing_ok=True)