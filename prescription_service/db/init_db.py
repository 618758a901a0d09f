# prescription_service/db/init_db.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from prescription_service.db.base import Base
from prescription_service.db.session import engine as default_engine

# Import all models so metadata is complete
from prescription_service.models import prescription  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create any missing tables. Safe to run multiple times."""
    eng = bind or default_engine
    Base.metadata.create_all(bind=eng)
    logger.info("Tables ensured: %s", sorted(Base.metadata.tables))
