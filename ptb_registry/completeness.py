"""
Completeness Checker: Identify Registry Fields That Still Need Data

A case is "complete" when every field the TB program reports on has a
resolved value. Each rule below is evaluated on its own; the returned labels
are what the dashboard shows in its "Missing Entries" column, in this order:

    Xpert Result, Smear Result, HIV Status, Drug Susc., Final Disposition,
    Classification
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Tuple

from .diagnostics import resolve_latest
from .schemas import (
    BacteriologicalStatus,
    DrugSusceptibility,
    HivResult,
    LabResult,
    Patient,
)
from .status import CONCLUDED_STATUSES

XPERT_RESULT = "Xpert Result"
SMEAR_RESULT = "Smear Result"
HIV_STATUS = "HIV Status"
DRUG_SUSCEPTIBILITY = "Drug Susc."
FINAL_DISPOSITION = "Final Disposition"
CLASSIFICATION = "Classification"

UNRESOLVED_HIV = frozenset({HivResult.UNKNOWN.value, HivResult.PENDING.value})


def _xpert_pending(p: Patient) -> bool:
    return resolve_latest(p.xpertHistory).result == LabResult.PENDING.value


def _smear_pending(p: Patient) -> bool:
    return resolve_latest(p.smearHistory).result == LabResult.PENDING.value


def _hiv_unresolved(p: Patient) -> bool:
    return p.hivTestResult in UNRESOLVED_HIV


def _susceptibility_unknown(p: Patient) -> bool:
    return p.drugSusceptibility == DrugSusceptibility.UNKNOWN.value


def _outcome_unrecorded(p: Patient) -> bool:
    # looks concluded but nobody recorded the outcome
    return not p.finalDisposition and p.initialDisposition in CONCLUDED_STATUSES


def _classification_pending(p: Patient) -> bool:
    return p.bacteriologicalStatus == BacteriologicalStatus.PENDING.value


# Order is the display order.
RULES: Tuple[Tuple[str, Callable[[Patient], bool]], ...] = (
    (XPERT_RESULT, _xpert_pending),
    (SMEAR_RESULT, _smear_pending),
    (HIV_STATUS, _hiv_unresolved),
    (DRUG_SUSCEPTIBILITY, _susceptibility_unknown),
    (FINAL_DISPOSITION, _outcome_unrecorded),
    (CLASSIFICATION, _classification_pending),
)


@dataclass(frozen=True)
class CompletenessReport:
    """
    Missing-field verdict for one patient.

    Attributes:
        patient_id: The patient the verdict belongs to
        missing: Labels of unresolved fields, in display order
    """
    patient_id: str
    missing: Tuple[str, ...]

    @property
    def is_complete(self) -> bool:
        return not self.missing

    def summary(self) -> str:
        """Comma separated labels, or "Complete"."""
        return ", ".join(self.missing) if self.missing else "Complete"


def missing_fields(patient: Patient) -> List[str]:
    """Labels of the required fields this patient has not resolved yet."""
    return [label for label, rule in RULES if rule(patient)]


def is_complete(patient: Patient) -> bool:
    return not missing_fields(patient)


def check(patient: Patient) -> CompletenessReport:
    return CompletenessReport(patient_id=patient.id, missing=tuple(missing_fields(patient)))
