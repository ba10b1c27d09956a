"""
Registration rules applied to a patient record before it is saved.

1. A case registered as already concluded (Discharged, Expired, Transferred)
   must carry the date of that disposition
2. Its outcome defaults to the initial disposition, with Transferred
   recorded as "Transferred out"
3. The city follows the barangay: EMBO barangays belong to Embo, other
   Makati barangays to Makati; "Outside Makati" keeps whatever city was typed
"""

import logging
from typing import Any, Dict

from .constants import EMBO_BARANGAYS, OUTSIDE_MAKATI
from .schemas import InitialDisposition, Outcome, Patient

logger = logging.getLogger("ptb-registry")

TERMINAL_DISPOSITIONS = {
    InitialDisposition.DISCHARGED.value: Outcome.DISCHARGED.value,
    InitialDisposition.EXPIRED.value: Outcome.EXPIRED.value,
    InitialDisposition.TRANSFERRED.value: Outcome.TRANSFERRED_OUT.value,
}


class RegistrationError(ValueError):
    """A record that cannot be saved as entered."""


def city_for_barangay(brgy: str, city: str = "") -> str:
    if not brgy:
        return city
    if brgy == OUTSIDE_MAKATI:
        return city
    if brgy in EMBO_BARANGAYS:
        return "Embo"
    return "Makati"


def registration_updates(patient: Patient) -> Dict[str, Any]:
    """
    Field changes the save applies to `patient`.

    Raises:
        RegistrationError: concluded initial disposition without a date
    """
    updates: Dict[str, Any] = {}

    outcome = TERMINAL_DISPOSITIONS.get(patient.initialDisposition)
    if outcome is not None:
        if not patient.finalDispositionDate:
            raise RegistrationError(
                f"Date of disposition is required for a {patient.initialDisposition} case"
            )
        if not patient.finalDisposition:
            updates["finalDisposition"] = outcome

    city = city_for_barangay(patient.brgy, patient.city)
    if city != patient.city:
        updates["city"] = city

    if updates:
        logger.debug(f"Registration defaults for {patient.id or 'new patient'}: {updates}")
    return updates
