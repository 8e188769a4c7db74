"""
Courier office cache.

Stores a carrier's normalized office directory per country and filters it by
an address substring on read. Entries never expire; they are dropped only
through ``remove``. Concurrent writers for one country overwrite each other
(last writer wins).
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import redis

from shipment_manager.core.config import settings
from shipment_manager.core.redis_client import get_redis
from shipment_manager.core.utils import to_ascii
from shipment_manager.models.shipping import CourierOfficeData

logger = logging.getLogger(__name__)


def matches_address(office: CourierOfficeData, address_filter: Optional[str]) -> bool:
    """Case and script insensitive substring match on the office address."""
    if not address_filter:
        return True
    needle = to_ascii(address_filter).lower().strip()
    haystack = " ".join((office.address_en, to_ascii(office.address), office.city_en)).lower()
    return needle in haystack


class ShippingOfficeCache(ABC):
    """Office store keyed by (country, optional address substring)."""

    def find(self, country: str, address_filter: Optional[str] = None) -> Optional[List[CourierOfficeData]]:
        """
        Return cached offices for ``country`` matching ``address_filter``.

        Returns:
            List of offices (possibly empty), or None on a cache miss
        """
        offices = self._load(country.upper())
        if offices is None:
            return None
        return [office for office in offices if matches_address(office, address_filter)]

    def save(self, country: str, offices: List[CourierOfficeData]) -> None:
        self._store(country.upper(), list(offices))

    @abstractmethod
    def remove(self, country: str) -> None:
        pass

    @abstractmethod
    def _load(self, country: str) -> Optional[List[CourierOfficeData]]:
        pass

    @abstractmethod
    def _store(self, country: str, offices: List[CourierOfficeData]) -> None:
        pass


class InMemoryShippingOfficeCache(ShippingOfficeCache):
    """Process-local cache; entries stay until ``remove``."""

    def __init__(self):
        self._cache: Dict[str, List[CourierOfficeData]] = {}

    def _load(self, country: str) -> Optional[List[CourierOfficeData]]:
        if country not in self._cache:
            return None
        return list(self._cache[country])

    def _store(self, country: str, offices: List[CourierOfficeData]) -> None:
        self._cache[country] = offices

    def remove(self, country: str) -> None:
        self._cache.pop(country.upper(), None)

    def get_stats(self) -> Dict[str, int]:
        return {
            "countries": len(self._cache),
            "offices": sum(len(offices) for offices in self._cache.values()),
        }


class RedisShippingOfficeCache(ShippingOfficeCache):
    """Cache shared across workers through Redis, one JSON list per country."""

    def __init__(self, client: redis.Redis, namespace: str, prefix: Optional[str] = None):
        self.client = client
        self.namespace = namespace
        self.prefix = prefix or settings.OFFICE_CACHE_KEY_PREFIX

    def _key(self, country: str) -> str:
        return f"{self.prefix}:{self.namespace}:{country.upper()}"

    def _load(self, country: str) -> Optional[List[CourierOfficeData]]:
        raw = self.client.get(self._key(country))
        if raw is None:
            return None
        return [CourierOfficeData.from_dict(item) for item in json.loads(raw)]

    def _store(self, country: str, offices: List[CourierOfficeData]) -> None:
        payload = json.dumps([office.to_dict() for office in offices], ensure_ascii=False)
        self.client.set(self._key(country), payload)
        logger.info(f"Cached {len(offices)} offices under {self._key(country)}")

    def remove(self, country: str) -> None:
        self.client.delete(self._key(country))


# Process wide in-memory caches, one per carrier namespace
_memory_caches: Dict[str, InMemoryShippingOfficeCache] = {}


def get_office_cache(namespace: str) -> ShippingOfficeCache:
    """
    Redis-backed cache when Redis is configured, otherwise the process wide
    in-memory cache for ``namespace``.
    """
    client = get_redis()
    if client is None:
        if namespace not in _memory_caches:
            _memory_caches[namespace] = InMemoryShippingOfficeCache()
        return _memory_caches[namespace]
    return RedisShippingOfficeCache(client, namespace)


def clear_memory_caches() -> None:
    """Drop every process wide in-memory cache."""
    _memory_caches.clear()
