"""
Stats Aggregator: Summary Cards and Chart Data for the Registry Dashboard

Every function here is a pure reduction over the full patient collection and
is recomputed on each request. The registry holds one hospital's TB caseload,
so an O(n) pass per chart is all that is needed.

Summary cards:
    totalActive, admitted, erLevel, dischargedThisMonth, expiredThisMonth,
    pendingLabs, inactiveMissing

Charts:
    monthly census, outcome mix, classification mix, diagnostic yield,
    ward ranking, age bands

The card predicates in CARD_PREDICATES are shared with the table filter so a
selected card and the rows it filters to always agree.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .completeness import missing_fields
from .diagnostics import parse_iso_date, resolve_latest
from .schemas import (
    AnalysisReport,
    BacteriologicalStatus,
    CensusPoint,
    ChartSlice,
    DashboardStats,
    DiagnosticYieldRow,
    InitialDisposition,
    LabResult,
    Outcome,
    Patient,
)
from .status import effective_status, is_active, is_admitted, is_er_level

TOP_WARDS = 8
UNKNOWN_WARD = "Unknown"

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class CardFilter(str, Enum):
    """Summary cards that double as table filters."""
    TOTAL_ACTIVE = "totalActive"
    ADMITTED = "admitted"
    ER_LEVEL = "erLevel"
    PENDING_LABS = "pendingLabs"
    INACTIVE_MISSING = "inactiveMissing"


# ============================================================
# CARD PREDICATES
# ============================================================

def has_pending_labs(patient: Patient) -> bool:
    """Active case whose latest Xpert or latest Smear is still Pending."""
    if not is_active(patient):
        return False
    xpert = resolve_latest(patient.xpertHistory).result
    smear = resolve_latest(patient.smearHistory).result
    return xpert == LabResult.PENDING.value or smear == LabResult.PENDING.value


def is_inactive_missing(patient: Patient) -> bool:
    """Closed case that still has unresolved required fields."""
    return not is_active(patient) and bool(missing_fields(patient))


CARD_PREDICATES: Dict[CardFilter, Callable[[Patient], bool]] = {
    CardFilter.TOTAL_ACTIVE: is_active,
    CardFilter.ADMITTED: is_admitted,
    CardFilter.ER_LEVEL: is_er_level,
    CardFilter.PENDING_LABS: has_pending_labs,
    CardFilter.INACTIVE_MISSING: is_inactive_missing,
}


# ============================================================
# DATE HELPERS
# ============================================================

def month_start(moment: date) -> date:
    return date(moment.year, moment.month, 1)


def next_month_start(moment: date) -> date:
    if moment.month == 12:
        return date(moment.year + 1, 1, 1)
    return date(moment.year, moment.month + 1, 1)


def in_month_of(value: Optional[str], now: datetime) -> bool:
    """True when the ISO date falls within the calendar month of `now`."""
    parsed = parse_iso_date(value)
    if parsed is None:
        return False
    today = now.date()
    return month_start(today) <= parsed < next_month_start(today)


def age_on(dob: Optional[str], today: date) -> Optional[int]:
    """Whole years between dob and today, or None without a usable dob."""
    born = parse_iso_date(dob)
    if born is None:
        return None
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def patient_age(patient: Patient, today: date) -> Optional[int]:
    """Recorded age when the sheet carries one, otherwise derived from dob."""
    if patient.age is not None:
        return patient.age
    return age_on(patient.dob, today)


# ============================================================
# SUMMARY CARDS
# ============================================================

def _count(patients: Iterable[Patient], predicate: Callable[[Patient], bool]) -> int:
    return sum(1 for p in patients if predicate(p))


def aggregate(patients: Sequence[Patient], now: datetime) -> DashboardStats:
    """Compute every summary card for the collection at instant `now`."""
    return DashboardStats(
        totalActive=_count(patients, CARD_PREDICATES[CardFilter.TOTAL_ACTIVE]),
        admitted=_count(patients, CARD_PREDICATES[CardFilter.ADMITTED]),
        erLevel=_count(patients, CARD_PREDICATES[CardFilter.ER_LEVEL]),
        dischargedThisMonth=_count(
            patients,
            lambda p: p.finalDisposition == Outcome.DISCHARGED.value
            and in_month_of(p.finalDispositionDate, now),
        ),
        expiredThisMonth=_count(
            patients,
            lambda p: p.finalDisposition == Outcome.EXPIRED.value
            and in_month_of(p.finalDispositionDate, now),
        ),
        pendingLabs=_count(patients, CARD_PREDICATES[CardFilter.PENDING_LABS]),
        inactiveMissing=_count(patients, CARD_PREDICATES[CardFilter.INACTIVE_MISSING]),
    )


# ============================================================
# CHARTS
# ============================================================

def monthly_census(patients: Iterable[Patient]) -> List[CensusPoint]:
    """Admissions per year-month, oldest month first."""
    counts: Counter = Counter()
    for p in patients:
        admitted_on = parse_iso_date(p.dateOfAdmission)
        if admitted_on is None:
            continue
        counts[f"{admitted_on.year}-{admitted_on.month:02d}"] += 1

    points = []
    for key in sorted(counts):
        year, month = key.split("-")
        label = f"{MONTH_ABBR[int(month) - 1]} {year[-2:]}"
        points.append(CensusPoint(name=label, patients=counts[key], rawDate=key))
    return points


OUTCOME_BUCKETS = (
    "Active (Admitted)",
    "Active (ER)",
    "Discharged",
    "Expired",
    "Transferred",
    "Others",
)

_OUTCOME_BUCKET_BY_STATUS = {
    InitialDisposition.ADMITTED.value: "Active (Admitted)",
    InitialDisposition.ER_LEVEL.value: "Active (ER)",
    Outcome.DISCHARGED.value: "Discharged",
    Outcome.EXPIRED.value: "Expired",
    Outcome.TRANSFERRED_OUT.value: "Transferred",
    InitialDisposition.TRANSFERRED.value: "Transferred",
}


def outcome_mix(patients: Iterable[Patient]) -> List[ChartSlice]:
    """Effective disposition split into the six pie buckets, zeros dropped."""
    counts = {bucket: 0 for bucket in OUTCOME_BUCKETS}
    for p in patients:
        bucket = _OUTCOME_BUCKET_BY_STATUS.get(effective_status(p), "Others")
        counts[bucket] += 1
    return [ChartSlice(name=k, value=v) for k, v in counts.items() if v > 0]


def classification_mix(patients: Iterable[Patient]) -> List[ChartSlice]:
    counts = {
        BacteriologicalStatus.BACTERIOLOGICAL.value: 0,
        BacteriologicalStatus.CLINICAL.value: 0,
        BacteriologicalStatus.PENDING.value: 0,
    }
    for p in patients:
        status = p.bacteriologicalStatus
        if status not in counts:
            status = BacteriologicalStatus.PENDING.value
        counts[status] += 1
    return [ChartSlice(name=k, value=v) for k, v in counts.items() if v > 0]


def _yield_bucket(result: str, trace_is_positive: bool) -> str:
    if result == LabResult.POSITIVE.value:
        return "Positive"
    if trace_is_positive and result == LabResult.TRACE.value:
        return "Positive"
    if result == LabResult.NEGATIVE.value:
        return "Negative"
    return "Pending/Other"


def diagnostic_yield(patients: Iterable[Patient]) -> List[DiagnosticYieldRow]:
    """
    Latest Xpert and Smear results side by side.

    Xpert "Trace" counts as Positive; Smear has no trace grade, so a Trace
    there lands in Pending/Other with every other non-definitive result.
    """
    rows = {name: DiagnosticYieldRow(name=name) for name in ("Positive", "Negative", "Pending/Other")}
    for p in patients:
        xpert = resolve_latest(p.xpertHistory).result
        smear = resolve_latest(p.smearHistory).result
        rows[_yield_bucket(xpert, trace_is_positive=True)].xpert += 1
        rows[_yield_bucket(smear, trace_is_positive=False)].smear += 1
    return list(rows.values())


def ward_ranking(patients: Iterable[Patient], top_n: int = TOP_WARDS) -> List[ChartSlice]:
    """Busiest wards first. Ties keep the order wards were first seen."""
    counts: Dict[str, int] = {}
    for p in patients:
        ward = p.areaWard or UNKNOWN_WARD
        counts[ward] = counts.get(ward, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [ChartSlice(name=k, value=v) for k, v in ranked[:top_n]]


AGE_BANDS = ("0-18", "19-39", "40-59", "60+")


def _age_band(age: int) -> str:
    if age < 19:
        return "0-18"
    if age < 40:
        return "19-39"
    if age < 60:
        return "40-59"
    return "60+"


def age_bands(patients: Iterable[Patient], today: date) -> List[ChartSlice]:
    """Age distribution from dob. Every band is emitted, even when empty."""
    counts = {band: 0 for band in AGE_BANDS}
    for p in patients:
        age = age_on(p.dob, today)
        if age is None:
            continue
        counts[_age_band(age)] += 1
    return [ChartSlice(name=k, value=v) for k, v in counts.items()]


def build_analysis(patients: Sequence[Patient], now: datetime) -> AnalysisReport:
    return AnalysisReport(
        census=monthly_census(patients),
        outcomes=outcome_mix(patients),
        classification=classification_mix(patients),
        diagnostics=diagnostic_yield(patients),
        wards=ward_ranking(patients),
        ageGroups=age_bands(patients, now.date()),
    )
