# FILE: prescription_service/models/prescription.py
from __future__ import annotations

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    JSON,
    text,
)

from prescription_service.db.base import Base


class Prescription(Base):
    """
    One prescription as captured at the consult.

    id            -> SNKTMOCH + 8 digits, assigned once by the service
    medication_data -> ordered list of {"name", "dosage", "duration"}
    """

    __tablename__ = "prescriptions"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(String(50), primary_key=True)

    # patient
    patient_name = Column(String(255), nullable=False, index=True)
    patient_address = Column(String(500), nullable=True)
    patient_phone = Column(String(32), nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(32), nullable=True)

    # vitals (free text, units live in the PDF labels)
    bp = Column(String(32), nullable=True)
    pulse = Column(String(32), nullable=True)
    spo2 = Column(String(32), nullable=True)
    temp = Column(String(32), nullable=True)
    weight = Column(String(32), nullable=True)
    height = Column(String(32), nullable=True)
    bmi = Column(String(32), nullable=True)

    clinical_notes = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    advice = Column(Text, nullable=True)

    medication_data = Column(JSON, nullable=True)

    approved_by_doctor = Column(Boolean,
                                nullable=False,
                                default=False,
                                server_default=text("0"))
    is_ai_generated = Column(Boolean,
                             nullable=False,
                             default=True,
                             server_default=text("1"))

    doctor_name = Column(String(255), nullable=True)
    doctor_reg_no = Column(String(64), nullable=True)
    doctor_qualification = Column(String(255), nullable=True)
    doctor_specialization = Column(String(255), nullable=True)

    clinic_name = Column(String(255), nullable=True)
    clinic_address = Column(String(500), nullable=True)

    next_visit_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Prescription id={self.id!r} patient={self.patient_name!r}>"
