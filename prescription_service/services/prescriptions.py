# FILE: prescription_service/services/prescriptions.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prescription_service.core.config import settings
from prescription_service.core.exceptions import GenerationCollision, RecordNotFound
from prescription_service.models.prescription import Prescription
from prescription_service.schemas.prescription import PrescriptionCreate
from prescription_service.services.id_gen import RandomIdGenerator
from prescription_service.services.pdf_prescription import build_prescription_pdf
from prescription_service.services.pdf_theme import PdfTheme

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def _row_values(payload: PrescriptionCreate, now: datetime) -> dict:
    values = payload.model_dump(exclude={"medication_data"})
    values["medication_data"] = [m.model_dump() for m in payload.medication_data]
    if values.get("approved_by_doctor") is None:
        values["approved_by_doctor"] = False
    if values.get("is_ai_generated") is None:
        values["is_ai_generated"] = True
    if values.get("created_at") is None:
        values["created_at"] = now
    return values


def create_prescription(
    db: Session,
    payload: PrescriptionCreate,
    *,
    id_gen: Optional[Callable[[], str]] = None,
    now: Optional[datetime] = None,
    max_attempts: Optional[int] = None,
) -> Prescription:
    """
    Persist a new prescription under a freshly generated id.

    A colliding id (seen by the pre-check, or by the primary key on commit) is
    retried with a new one; GenerationCollision only after ``max_attempts``.
    """
    gen = id_gen or RandomIdGenerator()
    attempts = max_attempts or settings.RX_ID_MAX_ATTEMPTS
    values = _row_values(payload, now or datetime.now())

    for attempt in range(1, attempts + 1):
        rx_id = gen()
        if db.get(Prescription, rx_id) is not None:
            logger.warning("Prescription id collision %s (attempt %s/%s)",
                           rx_id, attempt, attempts)
            continue

        rx = Prescription(id=rx_id, **values)
        db.add(rx)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            # only a primary-key clash earns a retry; any other constraint
            # violation is the caller's data
            if db.get(Prescription, rx_id) is None:
                raise
            logger.warning("Prescription id %s rejected on commit (attempt %s/%s)",
                           rx_id, attempt, attempts)
            continue

        db.refresh(rx)
        logger.info("Created prescription %s for %s", rx.id, rx.patient_name)
        return rx

    logger.error("Gave up allocating a prescription id after %s attempts",
                 attempts)
    raise GenerationCollision(attempts)


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------
def get_prescription(db: Session, rx_id: str) -> Prescription:
    rx = db.get(Prescription, rx_id)
    if rx is None:
        raise RecordNotFound(rx_id)
    return rx


def history_by_patient(db: Session, name: str) -> List[Prescription]:
    """All prescriptions for a patient name (case-insensitive), newest first."""
    key = (name or "").strip().lower()
    return (db.query(Prescription)
            .filter(func.lower(Prescription.patient_name) == key)
            .order_by(Prescription.created_at.desc(), Prescription.id)
            .all())


def search_by_diagnosis(db: Session, text: str) -> List[Prescription]:
    return (db.query(Prescription)
            .filter(Prescription.diagnosis.icontains((text or "").strip(),
                                                     autoescape=True))
            .order_by(Prescription.created_at.desc(), Prescription.id)
            .all())


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------
def pdf_filename(rx_id: str) -> str:
    return f"{rx_id}.pdf"


def render_prescription(
    db: Session,
    rx_id: str,
    *,
    theme: Optional[PdfTheme] = None,
    now: Optional[datetime] = None,
) -> bytes:
    # lookup first: a miss never reaches the renderer
    rx = get_prescription(db, rx_id)
    return build_prescription_pdf(rx, theme=theme, now=now)
