# prescription_service/models/__init__.py
from .prescription import Prescription

__all__ = [
    "Prescription",
]
