"""
PTB Registry

Tuberculosis case registry backend: lab history resolution, case status,
completeness checks, dashboard filters and statistics over a cached copy of
the remote registry sheet.
"""

from .diagnostics import resolve_latest
from .status import effective_status, is_active
from .completeness import missing_fields, is_complete
from .filters import RegistryQuery, match, filter_patients
from .stats import CardFilter, aggregate, build_analysis
from .normalizer import normalize_patient, normalize_patients

__all__ = [
    "resolve_latest",
    "effective_status",
    "is_active",
    "missing_fields",
    "is_complete",
    "RegistryQuery",
    "match",
    "filter_patients",
    "CardFilter",
    "aggregate",
    "build_analysis",
    "normalize_patient",
    "normalize_patients",
]
