# FILE: prescription_service/schemas/prescription.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

# ---------- Medication lines ----------


class MedicationLine(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    dosage: Optional[str] = Field(None, max_length=100)
    duration: Optional[str] = Field(None, max_length=100)


# ---------- Prescription ----------
# max_length mirrors the column sizes in models/prescription.py


class PrescriptionBase(BaseModel):
    patient_name: str = Field(..., max_length=255)
    patient_address: Optional[str] = Field(None, max_length=500)
    patient_phone: Optional[str] = Field(None, max_length=32)
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = Field(None, max_length=32)

    bp: Optional[str] = Field(None, max_length=32)
    pulse: Optional[str] = Field(None, max_length=32)
    spo2: Optional[str] = Field(None, max_length=32)
    temp: Optional[str] = Field(None, max_length=32)
    weight: Optional[str] = Field(None, max_length=32)
    height: Optional[str] = Field(None, max_length=32)
    bmi: Optional[str] = Field(None, max_length=32)

    clinical_notes: Optional[str] = None
    diagnosis: Optional[str] = None
    advice: Optional[str] = None

    medication_data: List[MedicationLine] = Field(default_factory=list)

    doctor_name: Optional[str] = Field(None, max_length=255)
    doctor_reg_no: Optional[str] = Field(None, max_length=64)
    doctor_qualification: Optional[str] = Field(None, max_length=255)
    doctor_specialization: Optional[str] = Field(None, max_length=255)

    clinic_name: Optional[str] = Field(None, max_length=255)
    clinic_address: Optional[str] = Field(None, max_length=500)

    next_visit_date: Optional[datetime] = None


class PrescriptionCreate(PrescriptionBase):
    # None -> column defaults (approved=False, ai_generated=True)
    approved_by_doctor: Optional[bool] = None
    is_ai_generated: Optional[bool] = None
    created_at: Optional[datetime] = None

    @field_validator("patient_name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("patient_name must not be blank")
        return v

    @field_validator("medication_data", mode="before")
    @classmethod
    def _null_meds_as_empty(cls, v):
        return [] if v is None else v


class PrescriptionOut(PrescriptionBase):
    id: str
    approved_by_doctor: bool
    is_ai_generated: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("medication_data", mode="before")
    @classmethod
    def _null_meds_as_empty(cls, v):
        return [] if v is None else v
