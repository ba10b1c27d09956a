"""
Registry Service

Ties the sheet client and the cache together and exposes the operations the
API needs: read (cached), filtered list, detail, stats, analysis, save and
disposition patch.

Every write invalidates the cache before returning, whether the write
succeeded or raised, so the next read always goes to the sheet.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from .cache import DiskCacheStorage, InMemoryCacheStorage, RegistryCache
from .cache.registry_cache import Clock
from .clients import RegistryStoreClient
from .completeness import check
from .config import RegistrySettings
from .diagnostics import resolve_latest
from .filters import RegistryQuery, filter_patients
from .registration import registration_updates
from .schemas import AnalysisReport, DashboardStats, Patient, PatientDetail
from .stats import aggregate, build_analysis, patient_age
from .status import effective_status, is_active

logger = logging.getLogger("ptb-registry")


def generate_patient_id() -> str:
    """Short opaque id for a newly registered case."""
    return uuid.uuid4().hex[:9]


class RegistryService:
    """Cached registry access plus the derived views built on it."""

    def __init__(self, client: RegistryStoreClient, cache: RegistryCache, clock: Clock = datetime.now):
        self.client = client
        self.cache = cache
        self.clock = clock

    # --------------------------------------------------------
    # Reads
    # --------------------------------------------------------

    async def get_patients(self) -> List[Patient]:
        return await self.cache.fetch()

    async def get_patient(self, patient_id: str) -> Optional[Patient]:
        for patient in await self.get_patients():
            if patient.id == patient_id:
                return patient
        return None

    async def list_patients(self, query: RegistryQuery) -> List[Patient]:
        patients = await self.get_patients()
        matched = filter_patients(patients, query)
        logger.debug(f"Filter {query} matched {len(matched)}/{len(patients)}")
        return matched

    async def get_detail(self, patient_id: str) -> Optional[PatientDetail]:
        patient = await self.get_patient(patient_id)
        if patient is None:
            return None

        report = check(patient)
        return PatientDetail(
            patient=patient,
            effectiveStatus=effective_status(patient),
            isActive=is_active(patient),
            latestXpert=resolve_latest(patient.xpertHistory),
            latestSmear=resolve_latest(patient.smearHistory),
            missingFields=list(report.missing),
            isComplete=report.is_complete,
            age=patient_age(patient, self.clock().date()),
        )

    async def get_stats(self) -> DashboardStats:
        return aggregate(await self.get_patients(), self.clock())

    async def get_analysis(self) -> AnalysisReport:
        return build_analysis(await self.get_patients(), self.clock())

    # --------------------------------------------------------
    # Writes
    # --------------------------------------------------------

    async def save_patient(self, patient: Patient) -> Patient:
        """
        Upsert a patient. A patient without an id is registered as a new,
        Active case. Returns the record as sent; the argument is not modified.

        Raises:
            RegistrationError: the record breaks a registration rule; nothing is sent
            RegistryWriteError: the sheet rejected the write
        """
        updates = registration_updates(patient)
        if not patient.id:
            updates.update(
                id=generate_patient_id(),
                createdAt=self.clock().isoformat(),
                status="Active",
            )
        record = patient.model_copy(update=updates, deep=True)

        try:
            await self.client.save(record.model_dump(mode="json"))
        finally:
            self.cache.invalidate()
        return record

    async def update_final_disposition(
        self,
        patient_id: str,
        disposition: str,
        date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Record a case outcome. The date is only sent when given."""
        updates: Dict[str, Any] = {"finalDisposition": disposition}
        if date:
            updates["finalDispositionDate"] = date

        try:
            await self.client.patch(patient_id, updates)
        finally:
            self.cache.invalidate()
        return updates

    def invalidate(self) -> None:
        self.cache.invalidate()


# ============================================================
# SINGLETON INSTANCE
# ============================================================

_service: Optional[RegistryService] = None


def build_service(settings: RegistrySettings, clock: Clock = datetime.now) -> RegistryService:
    """Wire client, storage and cache from settings."""
    client = RegistryStoreClient(settings.api_url, timeout=settings.timeout_s)
    storage = DiskCacheStorage(settings.cache_dir) if settings.cache_dir else InMemoryCacheStorage()
    cache = RegistryCache(
        client,
        storage=storage,
        clock=clock,
        ttl=timedelta(seconds=settings.cache_ttl_s),
    )
    return RegistryService(client, cache, clock=clock)


def get_service() -> RegistryService:
    """Get or create the process-wide service."""
    global _service
    if _service is None:
        _service = build_service(RegistrySettings.from_env())
    return _service


def set_service(service: Optional[RegistryService]) -> None:
    """Replace (or clear) the process-wide service."""
    global _service
    _service = service
