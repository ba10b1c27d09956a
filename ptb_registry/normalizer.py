"""
Boundary normalization for records read from the registry sheet.

The sheet backend is loosely typed: booleans come back as "TRUE"/"true",
empty history columns come back as "" instead of [], numbers show up where
text was entered. Everything is coerced here, once, so the rest of the
registry only ever sees fully-typed Patient objects. A malformed field falls
back to its default; a record is never rejected.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from .schemas import Comorbidities, DiagnosticRecord, LabResult, Patient

logger = logging.getLogger("ptb-registry")

TRUE_STRINGS = ("true", "TRUE")

BOOLEAN_FIELDS = ("treatmentStarted", "startedOnArt")
HISTORY_FIELDS = ("xpertHistory", "smearHistory")
COMORBIDITY_FLAGS = ("diabetes", "substanceAbuse", "liverDisease", "renalDisease")

STRING_FIELDS = tuple(
    name for name, field in Patient.model_fields.items() if field.annotation is str
)
OPTIONAL_STRING_FIELDS = tuple(
    name for name, field in Patient.model_fields.items() if field.annotation == Optional[str]
)


def coerce_bool(value: Any) -> bool:
    """Only a real True or the strings "true"/"TRUE" count as true."""
    return value is True or value in TRUE_STRINGS


def coerce_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def coerce_int(value: Any) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # "Infinity", "1e999" and "NaN" parse as floats but have no int value
    if not math.isfinite(number):
        return None
    return int(number)


def normalize_history(value: Any) -> List[DiagnosticRecord]:
    """Keep well-formed entries of a lab history; anything that is not a list is empty."""
    if not isinstance(value, list):
        return []

    records: List[DiagnosticRecord] = []
    for entry in value:
        if not isinstance(entry, dict):
            logger.debug(f"Dropping malformed history entry: {entry!r}")
            continue
        entry_id = entry.get("id")
        records.append(DiagnosticRecord(
            id=coerce_str(entry_id) if entry_id not in (None, "") else None,
            date=coerce_str(entry.get("date")),
            result=coerce_str(entry.get("result")) or LabResult.PENDING.value,
        ))
    return records


def normalize_comorbidities(value: Any) -> Comorbidities:
    if not isinstance(value, dict):
        return Comorbidities()
    return Comorbidities(
        **{flag: coerce_bool(value.get(flag)) for flag in COMORBIDITY_FLAGS},
        others=coerce_str(value.get("others")),
    )


def normalize_patient(raw: Dict[str, Any]) -> Patient:
    """Coerce one raw sheet row into a Patient."""
    data = dict(raw)

    for name in STRING_FIELDS:
        if name in data:
            data[name] = coerce_str(data[name])
    for name in OPTIONAL_STRING_FIELDS:
        if name in data and data[name] is not None:
            data[name] = coerce_str(data[name])

    for name in HISTORY_FIELDS:
        data[name] = normalize_history(data.get(name))
    for name in BOOLEAN_FIELDS:
        data[name] = coerce_bool(data.get(name))

    data["comorbidities"] = normalize_comorbidities(data.get("comorbidities"))
    data["age"] = coerce_int(data.get("age"))

    # newly registered cases have no outcome yet
    data["finalDisposition"] = data.get("finalDisposition") or data.get("initialDisposition", "")

    return Patient.model_validate(data)


def normalize_patients(rows: Iterable[Any]) -> List[Patient]:
    """Normalize every dict row; non-dict rows are skipped."""
    patients: List[Patient] = []
    skipped = 0
    for row in rows:
        if not isinstance(row, dict):
            skipped += 1
            continue
        patients.append(normalize_patient(row))

    if skipped:
        logger.warning(f"Skipped {skipped} non-object rows from registry sheet")
    return patients
