"""Lab history resolution: picks the current Xpert/Smear result for a patient."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Sequence, Tuple

from .schemas import DiagnosticRecord, LabResult


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse the date part of an ISO string ("2024-01-10" or "2024-01-10T08:00:00Z").

    Returns None for empty or unparseable values.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO date or timestamp into a naive UTC datetime.

    Date-only values land at midnight. Offsets (including a trailing "Z") are
    converted to UTC; timestamps without an offset are taken as UTC. When the
    time part does not parse, the date part alone is used.
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        day = parse_iso_date(text)
        return datetime(day.year, day.month, day.day) if day else None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def pending_record() -> DiagnosticRecord:
    """The stand-in for a modality that has no recorded result yet."""
    return DiagnosticRecord(date="", result=LabResult.PENDING.value)


def _sort_key(record: DiagnosticRecord) -> Tuple[bool, datetime]:
    parsed = parse_iso_datetime(record.date)
    if parsed is None:
        return (False, datetime.min)
    return (True, parsed)


def resolve_latest(history: Optional[Sequence[DiagnosticRecord]]) -> DiagnosticRecord:
    """
    Return the most recent entry of a lab history.

    Entries are ordered by their full timestamp; a date-only entry counts as
    midnight of that day. Entries without a usable date sort after every dated
    entry. Entries with equal timestamps keep their insertion order (sorted()
    is stable, also with reverse=True), so the first one inserted wins.
    """
    if not history:
        return pending_record()

    ordered = sorted(history, key=_sort_key, reverse=True)
    return ordered[0]
