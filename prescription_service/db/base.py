# prescription_service/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """All prescription-service tables inherit from this."""
    pass
