# prescription_service/db/session.py
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from prescription_service.core.config import settings


def _engine_kwargs(db_uri: str) -> Dict[str, Any]:
    # sqlite uses its own pool classes; pool sizing only applies to servers
    if make_url(db_uri).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 280,
        "pool_size": 10,
        "max_overflow": 20,
    }


def make_engine(db_uri: str) -> Engine:
    return create_engine(db_uri, future=True, **_engine_kwargs(db_uri))


engine: Engine = make_engine(settings.SQLALCHEMY_DATABASE_URI)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)
