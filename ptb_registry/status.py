"""Active/Inactive classification of registry cases."""

from .schemas import InitialDisposition, Outcome, Patient

ACTIVE_STATUSES = frozenset({
    Outcome.ADMITTED.value,
    Outcome.ER_LEVEL.value,
})

# Outcomes that close a case; a case showing one of these as its initial
# disposition is expected to carry a final disposition too.
CONCLUDED_STATUSES = frozenset({
    Outcome.DISCHARGED.value,
    Outcome.EXPIRED.value,
    Outcome.TRANSFERRED_OUT.value,
    Outcome.LOST_TO_FOLLOW_UP.value,
})


def effective_status(patient: Patient) -> str:
    """The final disposition when recorded, otherwise the initial one."""
    return patient.finalDisposition or patient.initialDisposition


def is_active(patient: Patient) -> bool:
    return effective_status(patient) in ACTIVE_STATUSES


def is_admitted(patient: Patient) -> bool:
    return effective_status(patient) == InitialDisposition.ADMITTED.value


def is_er_level(patient: Patient) -> bool:
    return effective_status(patient) == InitialDisposition.ER_LEVEL.value
