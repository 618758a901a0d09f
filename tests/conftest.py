"""
Shared fixtures for all tests.

The app is pointed at in-memory sqlite before anything from the package is
imported, so no MySQL server is needed.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from datetime import datetime  # noqa: E402
from io import BytesIO  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from pypdf import PdfReader  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from prescription_service.api.deps import get_db  # noqa: E402
from prescription_service.db.base import Base  # noqa: E402
from prescription_service.main import app  # noqa: E402
from prescription_service.models import Prescription  # noqa: F401,E402

CREATED = datetime(2026, 10, 19, 9, 30)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_record(**overrides):
    """A fully populated prescription as a plain dict (renderer input)."""
    rec = {
        "id": "SNKTMOCH12345678",
        "patient_name": "John Doe",
        "patient_address": "123 Main St, Springfield",
        "patient_phone": "555-1234",
        "age": 30,
        "gender": "Male",
        "bp": "120/80",
        "pulse": "72",
        "spo2": "98",
        "temp": "98.6",
        "weight": "70",
        "height": "175",
        "bmi": "22.9",
        "clinical_notes": "Fever and cough",
        "diagnosis": "Viral Fever",
        "advice": "Drink plenty of water. Rest.",
        "medication_data": [
            {"name": "Paracetamol", "dosage": "500mg", "duration": "5 days"},
        ],
        "doctor_name": "Dr. Smith",
        "doctor_reg_no": "MD12345",
        "doctor_qualification": "MBBS, MD",
        "doctor_specialization": "General Physician",
        "clinic_name": None,
        "clinic_address": None,
        "next_visit_date": None,
        "created_at": CREATED,
        "approved_by_doctor": False,
        "is_ai_generated": True,
    }
    rec.update(overrides)
    return rec


def make_payload(**overrides):
    """Minimal-but-realistic POST body."""
    body = {
        "patient_name": "John Doe",
        "age": 30,
        "gender": "Male",
        "bp": "120/80",
        "clinical_notes": "Fever and cough",
        "diagnosis": "Viral Fever",
        "medication_data": [
            {"name": "Paracetamol", "dosage": "500mg", "duration": "5 days"},
        ],
        "doctor_name": "Dr. Smith",
        "doctor_reg_no": "MD12345",
    }
    body.update(overrides)
    return body


def pdf_text(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    return "\n".join(filter(None, (page.extract_text() for page in reader.pages)))


def pdf_pages(data: bytes) -> int:
    return len(PdfReader(BytesIO(data)).pages)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine,
                                  autocommit=False,
                                  autoflush=False,
                                  future=True)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def record():
    return make_record()
