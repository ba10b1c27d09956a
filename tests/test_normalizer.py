import pytest

from ptb_registry.normalizer import (
    coerce_bool,
    normalize_history,
    normalize_patient,
    normalize_patients,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        ("true", True),
        ("TRUE", True),
        ("True", False),
        (False, False),
        ("FALSE", False),
        (1, False),
        (None, False),
        ("", False),
    ],
)
def test_coerce_bool_accepts_only_true_literals(value, expected):
    assert coerce_bool(value) is expected


def test_history_that_is_not_a_list_is_empty():
    assert normalize_history("") == []
    assert normalize_history(None) == []
    assert normalize_history({"date": "2024-01-01"}) == []


def test_history_entries_get_defaults():
    history = normalize_history([{"date": None}, "junk", {"date": "2024-01-01", "result": "Trace", "id": 7}])
    assert [(r.date, r.result, r.id) for r in history] == [
        ("", "Pending", None),
        ("2024-01-01", "Trace", "7"),
    ]


def test_normalize_patient_coerces_loose_fields(raw_rows):
    patient = normalize_patient(raw_rows[0])
    assert patient.hospitalNumber == "10234"
    assert patient.smearHistory == []
    assert patient.treatmentStarted is True
    assert patient.startedOnArt is False
    assert patient.comorbidities.diabetes is False
    assert patient.comorbidities.others == ""
    # finalDisposition falls back to the initial one
    assert patient.finalDisposition == "Admitted"


def test_normalize_patient_keeps_recorded_outcome_and_comorbidities(raw_rows):
    patient = normalize_patient(raw_rows[1])
    assert patient.finalDisposition == "Discharged"
    assert patient.comorbidities.diabetes is True
    assert patient.comorbidities.others == "asthma"


def test_unknown_columns_are_preserved():
    patient = normalize_patient({"id": "x", "philhealthNo": "12-3", "age": "42"})
    assert patient.model_dump()["philhealthNo"] == "12-3"
    assert patient.age == 42


def test_malformed_values_fall_back_instead_of_failing():
    patient = normalize_patient({
        "id": 5,
        "lastName": None,
        "age": "unknown",
        "comorbidities": "none",
        "treatmentStartDate": 20240101,
    })
    assert patient.id == "5"
    assert patient.lastName == ""
    assert patient.age is None
    assert patient.comorbidities.renalDisease is False
    assert patient.treatmentStartDate == "20240101"


def test_non_finite_age_falls_back_to_none():
    for age in ("Infinity", "-Infinity", "1e999", "NaN", float("inf"), 10 ** 400):
        assert normalize_patient({"id": "x", "age": age}).age is None


def test_normalize_patients_skips_non_objects(raw_rows):
    patients = normalize_patients(raw_rows + ["oops", None])
    assert [p.id for p in patients] == ["a1", "b2"]


def test_normalize_does_not_modify_input(raw_rows):
    before = dict(raw_rows[0])
    normalize_patient(raw_rows[0])
    assert raw_rows[0] == before
