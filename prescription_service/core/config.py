# prescription_service/core/config.py
import os
from typing import List, Optional
from pydantic import BaseModel
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME",
                                  "Sankat Mochan Prescription Service")
    API_V1_STR: str = os.getenv("API_V1_STR", "/api/v1")

    # CORS (env takes priority)
    BACKEND_CORS_ORIGINS: List[str] = _split_csv(os.getenv("CORS_ORIGINS", "*"))

    # ---------- MySQL ----------
    MYSQL_HOST: str = os.getenv("MYSQL_HOST", "localhost")
    MYSQL_PORT: int = int(os.getenv("MYSQL_PORT", "3306"))
    MYSQL_USER: str = os.getenv("MYSQL_USER", "sankatmochan")
    MYSQL_PASSWORD: str = os.getenv("MYSQL_PASSWORD", "change-this")
    MYSQL_DB: str = os.getenv("MYSQL_DB", "prescription_db")
    DB_DRIVER: str = os.getenv("DB_DRIVER", "pymysql")

    # DATABASE_URL wins over the MySQL parts (sqlite for local runs / tests)
    SQLALCHEMY_DATABASE_URI: str = os.getenv(
        "DATABASE_URL",
        f"mysql+{DB_DRIVER}://{quote_plus(MYSQL_USER)}:{quote_plus(MYSQL_PASSWORD)}"
        f"@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DB}",
    )
    AUTO_CREATE_TABLES: bool = _flag("AUTO_CREATE_TABLES", "true")

    # ---------- Logging ----------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # ---------- Prescription ids ----------
    RX_ID_PREFIX: str = os.getenv("RX_ID_PREFIX", "SNKTMOCH")
    RX_ID_MAX_ATTEMPTS: int = int(os.getenv("RX_ID_MAX_ATTEMPTS", "5"))

    # ---------- PDF ----------
    PDF_THEME: str = os.getenv("PDF_THEME", "spacious")
    CLINIC_LOGO_PATH: Optional[str] = os.getenv("CLINIC_LOGO_PATH") or None


settings = Settings()
