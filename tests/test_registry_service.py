import asyncio
import json

import httpx
import pytest

from ptb_registry.cache import CACHE_KEY, InMemoryCacheStorage, RegistryCache
from ptb_registry.clients import RegistryStoreClient, RegistryWriteError
from ptb_registry.filters import RegistryQuery
from ptb_registry.registration import RegistrationError
from ptb_registry.registry_service import RegistryService
from ptb_registry.schemas import Patient
from ptb_registry.stats import CardFilter

URL = "https://sheet.example.test/exec"


class SheetApp:
    """Fake registry web app: GET returns rows, POST records the body."""

    def __init__(self, rows, fail_writes=False):
        self.rows = rows
        self.fail_writes = fail_writes
        self.gets = 0
        self.posts = []

    def __call__(self, request):
        if request.method == "GET":
            self.gets += 1
            return httpx.Response(200, json={"status": "success", "data": self.rows})
        self.posts.append(json.loads(request.content))
        if self.fail_writes:
            return httpx.Response(500, text="error")
        return httpx.Response(200, json={"status": "success"})


def _service(app, clock):
    client = RegistryStoreClient(URL, transport=httpx.MockTransport(app))
    storage = InMemoryCacheStorage()
    cache = RegistryCache(client, storage=storage, clock=clock)
    return RegistryService(client, cache, clock=clock), storage


def test_reads_share_the_cache(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, _ = _service(app, clock)
    asyncio.run(service.get_stats())
    asyncio.run(service.get_analysis())
    asyncio.run(service.list_patients(RegistryQuery()))
    assert app.gets == 1


def test_save_new_patient_generates_identity(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, storage = _service(app, clock)
    asyncio.run(service.get_patients())

    new = Patient(lastName="Lim", firstName="Ana", initialDisposition="Admitted")
    saved = asyncio.run(service.save_patient(new))

    assert saved.id and len(saved.id) == 9
    assert saved.status == "Active"
    assert saved.createdAt == clock().isoformat()
    assert new.id == ""  # caller's object untouched
    assert app.posts[0]["action"] == "save"
    assert app.posts[0]["patient"]["id"] == saved.id
    assert app.posts[0]["patient"]["xpertHistory"] == []
    assert CACHE_KEY not in storage


def test_save_existing_patient_keeps_id(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, _ = _service(app, clock)
    saved = asyncio.run(service.save_patient(Patient(id="a1", createdAt="2024-01-01T00:00:00")))
    assert saved.id == "a1"
    assert saved.createdAt == "2024-01-01T00:00:00"


def test_patch_invalidates_and_next_read_hits_network(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, storage = _service(app, clock)
    asyncio.run(service.get_patients())
    updates = asyncio.run(service.update_final_disposition("a1", "Discharged", "2024-03-10"))

    assert updates == {"finalDisposition": "Discharged", "finalDispositionDate": "2024-03-10"}
    assert app.posts == [{"action": "patch", "id": "a1", "updates": updates}]
    assert CACHE_KEY not in storage
    asyncio.run(service.get_patients())
    assert app.gets == 2


def test_patch_without_date_sends_only_disposition(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, _ = _service(app, clock)
    assert asyncio.run(service.update_final_disposition("a1", "Expired")) == {"finalDisposition": "Expired"}


def test_failed_write_still_invalidates(raw_rows, clock):
    app = SheetApp(raw_rows, fail_writes=True)
    service, storage = _service(app, clock)
    asyncio.run(service.get_patients())
    with pytest.raises(RegistryWriteError):
        asyncio.run(service.update_final_disposition("a1", "Expired"))
    assert CACHE_KEY not in storage


def test_detail_view(raw_rows, clock):
    service, _ = _service(SheetApp(raw_rows), clock)
    detail = asyncio.run(service.get_detail("a1"))
    assert detail.isActive
    assert detail.effectiveStatus == "Admitted"
    assert detail.latestXpert.result == "Positive"
    assert detail.latestSmear.result == "Pending"
    assert detail.missingFields == ["Smear Result"]
    assert detail.age == 49
    assert asyncio.run(service.get_detail("missing")) is None


def test_filtered_list_uses_card(raw_rows, clock):
    service, _ = _service(SheetApp(raw_rows), clock)
    rows = asyncio.run(service.list_patients(RegistryQuery(card=CardFilter.PENDING_LABS)))
    assert [p.id for p in rows] == ["a1"]


def test_failed_save_still_invalidates(raw_rows, clock):
    app = SheetApp(raw_rows, fail_writes=True)
    service, storage = _service(app, clock)
    asyncio.run(service.get_patients())
    with pytest.raises(RegistryWriteError):
        asyncio.run(service.save_patient(Patient(lastName="Lim")))
    assert len(app.posts) == 1
    assert CACHE_KEY not in storage


def test_concluded_case_without_date_is_rejected_before_sending(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, _ = _service(app, clock)
    for disposition in ("Discharged", "Expired", "Transferred"):
        with pytest.raises(RegistrationError):
            asyncio.run(service.save_patient(Patient(initialDisposition=disposition, brgy="Pembo")))
    assert app.posts == []


def test_concluded_case_outcome_defaults_from_initial_disposition(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, _ = _service(app, clock)

    transferred = asyncio.run(service.save_patient(
        Patient(initialDisposition="Transferred", finalDispositionDate="2024-03-02")
    ))
    assert transferred.finalDisposition == "Transferred out"
    assert app.posts[-1]["patient"]["finalDisposition"] == "Transferred out"

    expired = asyncio.run(service.save_patient(
        Patient(initialDisposition="Expired", finalDispositionDate="2024-03-02")
    ))
    assert expired.finalDisposition == "Expired"

    explicit = asyncio.run(service.save_patient(Patient(
        initialDisposition="Discharged",
        finalDisposition="Lost to follow-up",
        finalDispositionDate="2024-03-02",
    )))
    assert explicit.finalDisposition == "Lost to follow-up"


def test_active_case_needs_no_disposition_date(raw_rows, clock):
    service, _ = _service(SheetApp(raw_rows), clock)
    saved = asyncio.run(service.save_patient(Patient(initialDisposition="ER-level")))
    assert saved.finalDisposition == ""
    assert saved.finalDispositionDate is None


def test_city_follows_barangay_on_save(raw_rows, clock):
    app = SheetApp(raw_rows)
    service, _ = _service(app, clock)
    embo = asyncio.run(service.save_patient(Patient(brgy="Pembo")))
    makati = asyncio.run(service.save_patient(Patient(brgy="Poblacion", city="Embo")))
    outside = asyncio.run(service.save_patient(Patient(brgy="Outside Makati", city="Taguig")))
    assert (embo.city, makati.city, outside.city) == ("Embo", "Makati", "Taguig")
    assert app.posts[0]["patient"]["city"] == "Embo"
