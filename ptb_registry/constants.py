"""Reference vocabularies served to the registration form."""

from .schemas import (
    BacteriologicalStatus,
    DrugSusceptibility,
    HivResult,
    InitialDisposition,
    LabResult,
    Outcome,
)

WARDS = [
    "6th Floor Ward",
    "7th Floor Ward",
    "ARI 2",
    "Dengue Ward",
    "Emergency Room Complex",
    "ICU",
    "Infectious Ward",
    "Medicine Female",
    "Medicine Isolation Room",
    "Medicine Male",
    "NICU",
    "NICU Transition",
    "NON-SARI",
    "OB Gyne Ward",
    "Pedia 3 Pulmo (Hema Ward)",
    "Pedia ICU",
    "Pedia ISO (4th)",
    "Pedia Isolation",
    "Pedia Ward 1 Stepdown",
    "Pedia Ward 3",
    "Pedia Ward 3 Extension",
    "Respiratory ICU",
    "SARI",
    "SARI 1",
    "SARI 2",
    "SARI 3",
    "Surgery Ward",
    "Others",
]

BARANGAYS = [
    "Bangkal",
    "Bel-Air",
    "Carmona",
    "Cembo",
    "Comembo",
    "Dasmarinas",
    "East Rembo",
    "Forbes Park",
    "Guadalupe Nuevo",
    "Guadalupe Viejo",
    "Kasilawan",
    "La Paz",
    "Magallanes",
    "Olympia",
    "Palanan",
    "Pembo",
    "Pinagkaisahan",
    "Pio del Pilar",
    "Pitogo",
    "Poblacion",
    "Post Proper Northside",
    "Post Proper Southside",
    "Rizal",
    "San Antonio",
    "San Isidro",
    "San Lorenzo",
    "Santa Cruz",
    "Singkamas",
    "South Cembo",
    "Tejeros",
    "Urdaneta",
    "Valenzuela",
    "West Rembo",
    "Outside Makati",
]

OUTSIDE_MAKATI = "Outside Makati"

EMBO_BARANGAYS = [
    "Pembo",
    "Comembo",
    "Cembo",
    "East Rembo",
    "West Rembo",
    "South Cembo",
    "Pitogo",
    "Post Proper Northside",
    "Post Proper Southside",
    "Rizal",
]

TREATMENT_REGIMENS = [
    "Regimen 1: 2HRZE/4HR",
    "Regimen 2: 2HRZE/10HR",
    "Regimen 3: SSOR",
    "Regimen 4: SLOR FQ-S",
    "Regimen 5: SLOR FQ-R",
    "Regimen 6: PEDIA MDR FQ-S",
    "Regimen 7: PEDIA MDR FQ-R",
    "ITR (Individualized)",
    "BPaL",
    "TPT: 6H",
    "TPT: 3HP",
    "TPT: 3HR",
    "TPT: 4R",
    "Other",
]


def reference_lists() -> dict:
    """Every dropdown vocabulary, keyed the way the form names them."""
    return {
        "wards": WARDS,
        "barangays": BARANGAYS,
        "emboBarangays": EMBO_BARANGAYS,
        "treatmentRegimens": TREATMENT_REGIMENS,
        "labResults": [r.value for r in LabResult],
        "initialDispositions": [d.value for d in InitialDisposition],
        "outcomes": [o.value for o in Outcome],
        "bacteriologicalStatuses": [s.value for s in BacteriologicalStatus],
        "drugSusceptibilities": [s.value for s in DrugSusceptibility],
        "hivResults": [r.value for r in HivResult],
    }
