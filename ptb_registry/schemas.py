"""
Pydantic schemas for data validation.
Defines the patient record as stored in the remote registry sheet and the
dashboard/chart structures handed to the frontend.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, List
from datetime import datetime
from enum import Enum


class LabResult(str, Enum):
    PENDING = "Pending"
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NOT_DONE = "Not Done"
    TRACE = "Trace"
    INDETERMINATE = "Indeterminate"


class InitialDisposition(str, Enum):
    ER_LEVEL = "ER-level"
    ADMITTED = "Admitted"
    DISCHARGED = "Discharged"
    EXPIRED = "Expired"
    TRANSFERRED = "Transferred"
    HAMA = "HAMA"


class Outcome(str, Enum):
    ER_LEVEL = "ER-level"
    ADMITTED = "Admitted"
    DISCHARGED = "Discharged"
    EXPIRED = "Expired"
    TRANSFERRED_OUT = "Transferred out"
    LOST_TO_FOLLOW_UP = "Lost to follow-up"


class BacteriologicalStatus(str, Enum):
    BACTERIOLOGICAL = "Bacteriological"
    CLINICAL = "Clinical"
    PENDING = "Pending"


class DrugSusceptibility(str, Enum):
    SUSCEPTIBLE = "Drug-susceptible"
    RESISTANT = "Drug Resistant"
    UNKNOWN = "Unknown"


class HivResult(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    UNKNOWN = "Unknown"
    PENDING = "Pending"


class DiagnosticRecord(BaseModel):
    """One dated lab result. An empty date means not yet performed."""
    id: Optional[str] = None
    date: str = ""
    result: str = LabResult.PENDING.value


class Comorbidities(BaseModel):
    diabetes: bool = False
    substanceAbuse: bool = False
    liverDisease: bool = False
    renalDisease: bool = False
    others: str = ""  # comma separated


class Patient(BaseModel):
    """
    One registry case, as stored in the remote sheet.

    Vocabulary fields are plain strings so that malformed sheet values are
    carried through instead of rejecting the whole record. Columns the
    registry does not know about are kept as extras so a save round-trips them.
    """
    model_config = ConfigDict(extra="allow")

    id: str = ""
    hospitalNumber: str = ""

    # Demographics
    lastName: str = ""
    firstName: str = ""
    dob: str = ""
    age: Optional[int] = None
    sex: str = ""
    civilStatus: str = ""
    brgy: str = ""
    city: str = ""

    # Admission
    dateOfAdmission: str = ""
    areaWard: str = ""
    doctorInCharge: str = ""
    initialDisposition: str = ""

    # Diagnostics (history)
    xpertHistory: List[DiagnosticRecord] = []
    smearHistory: List[DiagnosticRecord] = []

    # Classification
    bacteriologicalStatus: str = BacteriologicalStatus.PENDING.value
    anatomicalSite: str = ""
    extraPulmonarySite: Optional[str] = None
    drugSusceptibility: str = DrugSusceptibility.UNKNOWN.value
    treatmentHistory: str = ""

    # Treatment
    treatmentStarted: bool = False
    treatmentStartDate: Optional[str] = None
    treatmentRegimen: Optional[str] = None
    treatmentRegimenNotes: Optional[str] = None

    # Comorbidities & HIV
    comorbidities: Comorbidities = Field(default_factory=Comorbidities)
    hivTestResult: str = HivResult.UNKNOWN.value
    startedOnArt: bool = False

    # Outcome (final disposition)
    finalDisposition: str = ""
    finalDispositionDate: Optional[str] = None

    # Metadata
    status: str = "Active"
    createdAt: str = ""


class CacheEnvelope(BaseModel):
    """Cached registry snapshot and the instant it was fetched."""
    timestamp: datetime
    data: List[Patient] = []


class DashboardStats(BaseModel):
    """Counters behind the summary cards."""
    totalActive: int = 0
    admitted: int = 0
    erLevel: int = 0
    dischargedThisMonth: int = 0
    expiredThisMonth: int = 0
    pendingLabs: int = 0
    inactiveMissing: int = 0


class CensusPoint(BaseModel):
    """Admissions in one calendar month."""
    name: str
    patients: int
    rawDate: str


class ChartSlice(BaseModel):
    name: str
    value: int


class DiagnosticYieldRow(BaseModel):
    name: str
    xpert: int = 0
    smear: int = 0


class AnalysisReport(BaseModel):
    """Every chart-ready reduction for the analysis view."""
    census: List[CensusPoint] = []
    outcomes: List[ChartSlice] = []
    classification: List[ChartSlice] = []
    diagnostics: List[DiagnosticYieldRow] = []
    wards: List[ChartSlice] = []
    ageGroups: List[ChartSlice] = []


class PatientDetail(BaseModel):
    """A patient with its derived state for the detail view."""
    patient: Patient
    effectiveStatus: str
    isActive: bool
    latestXpert: DiagnosticRecord
    latestSmear: DiagnosticRecord
    missingFields: List[str] = []
    isComplete: bool = True
    age: Optional[int] = None


class DispositionUpdate(BaseModel):
    """Request to record a case outcome."""
    finalDisposition: str
    finalDispositionDate: Optional[str] = None


class WriteResult(BaseModel):
    status: str = "success"
    id: Optional[str] = None
    detail: Any = None
