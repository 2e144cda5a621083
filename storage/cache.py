"""
Cache
Injectable key-value stores backing the report cache and filter store
"""
from abc import ABC, abstractmethod
from typing import Any, Optional, Dict
from pathlib import Path
import json
import hashlib
import logging
import shutil

from utils.exceptions import CacheError


logger = logging.getLogger(__name__)


class BaseCache(ABC):
    """
    Key-value store interface.
    
    Values must be JSON-serializable so that every implementation can
    persist them. Entries never expire on their own.
    """
    
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value or None"""
        pass
    
    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous one"""
        pass
    
    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key if present"""
        pass
    
    @abstractmethod
    def clear(self) -> None:
        """Remove every key"""
        pass
    
    def exists(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryCache(BaseCache):
    """
    In-process dictionary store, used for sessions and tests
    """
    
    def __init__(self):
        self._cache: Dict[str, Any] = {}
    
    def get(self, key: str) -> Optional[Any]:
        return self._cache.get(key)
    
    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value
    
    def delete(self, key: str) -> None:
        self._cache.pop(key, None)
    
    def clear(self) -> None:
        self._cache.clear()


class DiskCache(BaseCache):
    """
    JSON file store
    One file per key so entries survive process restarts
    """
    
    def __init__(self, cache_dir: str = "./cache"):
        """
        Args:
            cache_dir: directory holding the entry files
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
    
    def _get_path(self, key: str) -> Path:
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{digest}.json"
    
    def get(self, key: str) -> Optional[Any]:
        path = self._get_path(key)
        if not path.exists():
            return None
        
        try:
            with open(path, 'r', encoding='utf-8') as f:
                entry = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load cache {key}: {e}")
            return None
        
        if not isinstance(entry, dict) or entry.get("key") != key:
            return None
        return entry.get("value")
    
    def set(self, key: str, value: Any) -> None:
        path = self._get_path(key)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump({"key": key, "value": value}, f, ensure_ascii=False)
        except (OSError, TypeError) as e:
            raise CacheError(f"Failed to save cache {key}", {"error": str(e)}) from e
    
    def delete(self, key: str) -> None:
        path = self._get_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(f"Failed to delete cache {key}", {"error": str(e)}) from e
    
    def clear(self) -> None:
        shutil.rmtree(self.cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)


def get_cache(provider: str = "memory", cache_dir: str = "./cache") -> BaseCache:
    """
    Build a key-value store.
    
    Args:
        provider: memory or disk
        cache_dir: directory for the disk store
    """
    if provider == "memory":
        return MemoryCache()
    
    elif provider == "disk":
        return DiskCache(cache_dir=cache_dir)
    
    else:
        raise ValueError(f"Unknown cache provider: {provider}")
