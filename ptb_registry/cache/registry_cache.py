"""
Registry Cache: Time-Boxed Snapshot in Front of the Registry Sheet

The sheet backend is slow (seconds per read), while the dashboard, the
detail view and the analysis charts all want the full collection. The cache
keeps one envelope, {timestamp, data}, in a single named slot:

1. fetch() serves the envelope while `now - timestamp < ttl`
2. otherwise it reads the sheet, normalizes the rows and stores a new envelope
3. invalidate() deletes the slot; every write calls it

A failed read returns [] and leaves the slot untouched. An envelope that does
not parse is deleted and treated as absent. An envelope stamped later than
the clock (the clock stepped back) counts as stale. A slot that cannot be
written is logged and the fresh rows are returned anyway.

Concurrent fetches are not coordinated: the last one to finish writes the
slot. A fetch that started before an invalidation can therefore put its
(older) snapshot back. One interactive user at a time makes that acceptable.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..clients.registry_client import RegistryStoreClient
from ..normalizer import normalize_patients
from ..schemas import CacheEnvelope, Patient
from .storage import CacheStorage, InMemoryCacheStorage

logger = logging.getLogger("ptb-registry")

CACHE_KEY = "ptb_registry_cache"
DEFAULT_TTL = timedelta(minutes=5)

Clock = Callable[[], datetime]


class RegistryCache:
    """
    Read-through cache for the full patient collection.

    Args:
        client: Registry sheet client used on a miss
        storage: Slot backend (in-memory when omitted)
        clock: Returns the current instant; injected so tests control expiry
        ttl: Freshness window measured from the envelope timestamp
        key: Slot name
    """

    def __init__(
        self,
        client: RegistryStoreClient,
        storage: Optional[CacheStorage] = None,
        clock: Clock = datetime.now,
        ttl: timedelta = DEFAULT_TTL,
        key: str = CACHE_KEY,
    ):
        self.client = client
        self.storage = storage if storage is not None else InMemoryCacheStorage()
        self.clock = clock
        self.ttl = ttl
        self.key = key

    def _load(self) -> Optional[CacheEnvelope]:
        raw = self.storage.get(self.key)
        if raw is None:
            return None
        try:
            return CacheEnvelope.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[CACHE] Invalid cache format, clearing: {e.error_count()} errors")
            self.storage.delete(self.key)
            return None

    def peek(self) -> Optional[CacheEnvelope]:
        """The stored envelope, fresh or not, without touching the network."""
        return self._load()

    def is_fresh(self, envelope: CacheEnvelope) -> bool:
        # a timestamp in the future means the clock stepped back; treat as stale
        age = self.clock() - envelope.timestamp
        return timedelta(0) <= age < self.ttl

    async def fetch(self) -> List[Patient]:
        """Return the registry, from the slot when fresh, otherwise from the sheet."""
        envelope = self._load()
        if envelope is not None and self.is_fresh(envelope):
            logger.debug(f"[CACHE] Serving {len(envelope.data)} patients from cache")
            return envelope.data

        result = await self.client.fetch_raw()
        if not result.ok:
            logger.warning(f"[CACHE] Registry read failed, returning empty list: {result.error}")
            return []

        patients = normalize_patients(result.rows)
        envelope = CacheEnvelope(timestamp=self.clock(), data=patients)
        try:
            self.storage.set(self.key, envelope.model_dump_json())
        except OSError as e:
            logger.error(f"[CACHE] Could not store snapshot, serving uncached: {e}")
            return patients
        logger.info(f"[CACHE] Stored {len(patients)} patients")
        return patients

    def invalidate(self) -> None:
        """Drop the snapshot so the next fetch goes to the sheet."""
        self.storage.delete(self.key)
        logger.debug("[CACHE] Invalidated")
