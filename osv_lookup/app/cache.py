"""취약점 조회 TTL 캐시(TTL cache for vulnerability lookups)."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from common_lib.logger import get_logger

from .models import OSVResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """캐시 항목(Cache entry with absolute expiry)."""

    key: str
    expiry: float
    result: OSVResult


def build_cache_key(name: str, ecosystem: str) -> str:
    """캐시 키 생성(Build the ecosystem-qualified cache key)."""

    return f"{ecosystem}:{name.lower()}"


class VulnerabilityCache:
    """프로세스 범위 메모리 캐시(Process-scoped in-memory cache).

    Entries are never returned once the clock passes their expiry. Expired
    entries are dropped lazily on the next lookup of the same key; there is
    no background sweep. Each ``set`` replaces the whole entry, so readers
    never observe a partially updated value.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, name: str, ecosystem: str) -> Optional[OSVResult]:
        """캐시 조회(Return a live cached result, evicting it if expired)."""

        key = build_cache_key(name, ecosystem)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expiry:
            self._entries.pop(key, None)
            logger.debug("Cache entry expired for %s", key)
            return None
        return entry.result

    def set(self, name: str, ecosystem: str, result: OSVResult, ttl_seconds: float) -> None:
        """캐시 저장(Store a result for ``ttl_seconds``)."""

        key = build_cache_key(name, ecosystem)
        self._entries[key] = CacheEntry(key=key, expiry=self._clock() + ttl_seconds, result=result)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
