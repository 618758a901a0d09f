# FILE: prescription_service/api/routes_prescriptions.py
from __future__ import annotations

import io
from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from prescription_service.api.deps import get_db
from prescription_service.schemas.prescription import PrescriptionCreate, PrescriptionOut
from prescription_service.services import prescriptions as rx_service
from prescription_service.services.pdf_prescription import MEDIA_TYPE

router = APIRouter()


@router.post("",
             response_model=PrescriptionOut,
             status_code=status.HTTP_201_CREATED)
def create_prescription(payload: PrescriptionCreate,
                        db: Session = Depends(get_db)):
    """Store a prescription and assign its SNKTMOCH id."""
    return rx_service.create_prescription(db, payload)


# declared before /{rx_id} so "search" is not taken for an id
@router.get("/search", response_model=List[PrescriptionOut])
def search_prescriptions(
        diagnosis: str = Query(..., min_length=1),
        db: Session = Depends(get_db),
):
    return rx_service.search_by_diagnosis(db, diagnosis)


@router.get("/patient/{name}", response_model=List[PrescriptionOut])
def patient_history(name: str, db: Session = Depends(get_db)):
    return rx_service.history_by_patient(db, name)


@router.get("/{rx_id}", response_model=PrescriptionOut)
def get_prescription(rx_id: str, db: Session = Depends(get_db)):
    return rx_service.get_prescription(db, rx_id)


@router.get("/{rx_id}/download")
def download_prescription(rx_id: str, db: Session = Depends(get_db)):
    """Styled PDF as an attachment named <id>.pdf."""
    pdf_bytes = rx_service.render_prescription(db, rx_id)
    fname = rx_service.pdf_filename(rx_id)
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type=MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{fname}"'},
    )
