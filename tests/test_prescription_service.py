"""
Store operations: create with id retry, lookups, and render-by-id.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import make_payload
from prescription_service.core.exceptions import GenerationCollision, RecordNotFound
from prescription_service.models import Prescription
from prescription_service.schemas.prescription import PrescriptionCreate
from prescription_service.services import prescriptions as svc
from prescription_service.services.id_gen import is_valid_rx_id

NOW = datetime(2026, 10, 19, 11, 0)


def _create(db, **overrides):
    return svc.create_prescription(db, PrescriptionCreate(**make_payload(**overrides)),
                                   now=NOW)


def _ids(*values):
    it = iter(values)
    return lambda: next(it)


# -------------------------------------------------------------------
# Create
# -------------------------------------------------------------------

class TestCreate:

    def test_assigns_id_and_defaults(self, db):
        rx = _create(db)
        assert is_valid_rx_id(rx.id)
        assert rx.created_at == NOW
        assert rx.approved_by_doctor is False
        assert rx.is_ai_generated is True

    def test_keeps_supplied_created_at_and_flags(self, db):
        when = datetime(2026, 1, 2, 3, 4)
        rx = _create(db, created_at=when, approved_by_doctor=True,
                     is_ai_generated=False)
        assert rx.created_at == when
        assert rx.approved_by_doctor is True
        assert rx.is_ai_generated is False

    def test_medication_order_preserved(self, db):
        meds = [{"name": n} for n in ("C", "A", "B")]
        rx = _create(db, medication_data=meds)
        db.expire_all()
        stored = db.get(Prescription, rx.id)
        assert [m["name"] for m in stored.medication_data] == ["C", "A", "B"]
        assert stored.medication_data[0]["dosage"] is None

    def test_retries_after_existing_id(self, db):
        first = svc.create_prescription(db, PrescriptionCreate(**make_payload()),
                                        id_gen=_ids("SNKTMOCH00000001"), now=NOW)
        second = svc.create_prescription(
            db, PrescriptionCreate(**make_payload(patient_name="Asha")),
            id_gen=_ids("SNKTMOCH00000001", "SNKTMOCH00000002"), now=NOW)
        assert first.id == "SNKTMOCH00000001"
        assert second.id == "SNKTMOCH00000002"
        assert db.query(Prescription).count() == 2

    def test_retries_after_primary_key_violation(self, db, monkeypatch):
        svc.create_prescription(db, PrescriptionCreate(**make_payload()),
                                id_gen=_ids("SNKTMOCH00000001"), now=NOW)
        db.expunge_all()
        # hide the row from the first pre-check only, so the insert collides
        real_get = db.get
        lookups = []

        def get_once_hidden(*args, **kwargs):
            lookups.append(args)
            return None if len(lookups) == 1 else real_get(*args, **kwargs)

        monkeypatch.setattr(db, "get", get_once_hidden)
        rx = svc.create_prescription(
            db, PrescriptionCreate(**make_payload(patient_name="Asha")),
            id_gen=_ids("SNKTMOCH00000001", "SNKTMOCH00000003"), now=NOW)
        assert rx.id == "SNKTMOCH00000003"
        assert rx.patient_name == "Asha"

    def test_other_integrity_errors_are_not_retried(self, db, monkeypatch):
        real_row_values = svc._row_values

        def without_name(payload, now):
            values = real_row_values(payload, now)
            values["patient_name"] = None
            return values

        monkeypatch.setattr(svc, "_row_values", without_name)
        calls = []

        def ids():
            calls.append(1)
            return f"SNKTMOCH0000000{len(calls)}"

        with pytest.raises(IntegrityError):
            svc.create_prescription(db, PrescriptionCreate(**make_payload()),
                                    id_gen=ids, now=NOW)
        assert len(calls) == 1
        assert db.query(Prescription).count() == 0

    def test_gives_up_after_bounded_attempts(self, db):
        svc.create_prescription(db, PrescriptionCreate(**make_payload()),
                                id_gen=_ids("SNKTMOCH00000001"), now=NOW)
        calls = []

        def always_taken():
            calls.append(1)
            return "SNKTMOCH00000001"

        with pytest.raises(GenerationCollision) as exc_info:
            svc.create_prescription(db, PrescriptionCreate(**make_payload()),
                                    id_gen=always_taken, now=NOW)
        assert exc_info.value.attempts == 5
        assert len(calls) == 5
        assert db.query(Prescription).count() == 1


# -------------------------------------------------------------------
# Read
# -------------------------------------------------------------------

def test_get_missing_raises_not_found(db):
    with pytest.raises(RecordNotFound):
        svc.get_prescription(db, "SNKTMOCH99999999")


def test_history_is_case_insensitive_newest_first(db):
    old = _create(db, patient_name="Rahul", created_at=NOW - timedelta(days=3))
    new = _create(db, patient_name="rahul", created_at=NOW)
    _create(db, patient_name="Rahul Kumar")
    found = svc.history_by_patient(db, "RAHUL")
    assert [rx.id for rx in found] == [new.id, old.id]


def test_search_by_diagnosis_substring(db):
    tb = _create(db, diagnosis="Pulmonary Tuberculosis")
    _create(db, diagnosis="Viral Fever")
    assert [rx.id for rx in svc.search_by_diagnosis(db, "tuberc")] == [tb.id]
    assert svc.search_by_diagnosis(db, "%") == []


# -------------------------------------------------------------------
# Render by id
# -------------------------------------------------------------------

def test_render_missing_never_calls_renderer(db, monkeypatch):
    calls = []
    monkeypatch.setattr(svc, "build_prescription_pdf",
                        lambda *a, **kw: calls.append(a) or b"")
    with pytest.raises(RecordNotFound):
        svc.render_prescription(db, "SNKTMOCH00000000")
    assert calls == []


def test_render_existing(db):
    rx = _create(db)
    assert svc.render_prescription(db, rx.id).startswith(b"%PDF-")


def test_pdf_filename():
    assert svc.pdf_filename("SNKTMOCH00004213") == "SNKTMOCH00004213.pdf"
