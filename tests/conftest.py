import os
import tempfile
from datetime import datetime, timedelta

import pytest

from ptb_registry.schemas import DiagnosticRecord, Patient

# keep the app's log files out of the working tree
os.environ.setdefault("REGISTRY_LOG_DIR", tempfile.mkdtemp(prefix="ptb-registry-logs-"))


@pytest.fixture
def make_patient():
    """
    Factory for fully-resolved patients; override any field by keyword.
    The defaults describe a complete, admitted case.
    """
    def _make(**overrides) -> Patient:
        data = dict(
            id="p1",
            hospitalNumber="H-001",
            lastName="Santos",
            firstName="Maria",
            dob="1980-05-20",
            dateOfAdmission="2024-01-05",
            areaWard="Infectious Ward",
            initialDisposition="Admitted",
            finalDisposition="",
            xpertHistory=[DiagnosticRecord(date="2024-01-10", result="Positive")],
            smearHistory=[DiagnosticRecord(date="2024-01-11", result="Negative")],
            bacteriologicalStatus="Bacteriological",
            drugSusceptibility="Drug-susceptible",
            hivTestResult="Negative",
        )
        data.update(overrides)
        return Patient(**data)

    return _make


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 15, 9, 0, 0))


@pytest.fixture
def raw_rows():
    """Rows as the registry sheet returns them: loosely typed."""
    return [
        {
            "id": "a1",
            "hospitalNumber": 10234,
            "lastName": "Reyes",
            "firstName": "Jose",
            "dob": "1975-02-01",
            "dateOfAdmission": "2024-03-02",
            "areaWard": "SARI 1",
            "initialDisposition": "Admitted",
            "finalDisposition": "",
            "xpertHistory": [{"date": "2024-03-03", "result": "Positive"}],
            "smearHistory": "",
            "treatmentStarted": "TRUE",
            "startedOnArt": "FALSE",
            "hivTestResult": "Negative",
            "drugSusceptibility": "Drug-susceptible",
            "bacteriologicalStatus": "Bacteriological",
        },
        {
            "id": "b2",
            "hospitalNumber": "H-2",
            "lastName": "Cruz",
            "firstName": "Ana",
            "dob": "2010-08-30",
            "dateOfAdmission": "2024-02-10",
            "areaWard": "Pedia Ward 3",
            "initialDisposition": "ER-level",
            "finalDisposition": "Discharged",
            "finalDispositionDate": "2024-03-01",
            "xpertHistory": [{"date": "2024-02-11", "result": "Negative"}],
            "smearHistory": [{"date": "2024-02-12", "result": "Negative"}],
            "treatmentStarted": True,
            "comorbidities": {"diabetes": "true", "others": "asthma"},
            "hivTestResult": "Pending",
            "drugSusceptibility": "Unknown",
            "bacteriologicalStatus": "Clinical",
        },
    ]
