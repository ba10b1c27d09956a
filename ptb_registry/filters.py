"""Dashboard table filtering: search box, dropdowns and the selected summary card."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .schemas import Patient
from .stats import CARD_PREDICATES, CardFilter
from .status import is_active

ALL = "All"
ACTIVE_CASES = "Active Cases"


@dataclass(frozen=True)
class RegistryQuery:
    """
    One dashboard filter state. Every non-default field narrows the result;
    there is no OR mode.

    Attributes:
        search: Case-insensitive text matched against name, id and hospital number
        ward: Exact ward name, or "All"
        outcome: "All", "Active Cases", or an exact final disposition
        classification: Exact bacteriological status, or "All"
        card: Summary card whose predicate is applied on top of the rest
    """
    search: str = ""
    ward: str = ALL
    outcome: str = ALL
    classification: str = ALL
    card: Optional[CardFilter] = None


def search_text(patient: Patient) -> str:
    return f"{patient.lastName} {patient.firstName} {patient.id} {patient.hospitalNumber}".lower()


def matches_search(patient: Patient, term: str) -> bool:
    return term.lower() in search_text(patient)


def matches_ward(patient: Patient, ward: str) -> bool:
    return ward == ALL or patient.areaWard == ward


def matches_outcome(patient: Patient, outcome: str) -> bool:
    if outcome == ALL:
        return True
    if outcome == ACTIVE_CASES:
        return is_active(patient)
    return patient.finalDisposition == outcome


def matches_classification(patient: Patient, classification: str) -> bool:
    return classification == ALL or patient.bacteriologicalStatus == classification


def matches_card(patient: Patient, card: Optional[CardFilter]) -> bool:
    if card is None:
        return True
    return CARD_PREDICATES[CardFilter(card)](patient)


def match(patient: Patient, query: RegistryQuery) -> bool:
    return (
        matches_search(patient, query.search)
        and matches_ward(patient, query.ward)
        and matches_classification(patient, query.classification)
        and matches_outcome(patient, query.outcome)
        and matches_card(patient, query.card)
    )


def filter_patients(patients: Iterable[Patient], query: RegistryQuery) -> List[Patient]:
    return [p for p in patients if match(p, query)]
