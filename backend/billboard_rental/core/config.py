# backend/billboard_rental/core/config.py
from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


class Settings(BaseSettings):
    # --- Database ---
    DATABASE_URL: str = "sqlite:///./billboards.db"

    # --- CORS ---
    # ["*"] opens the API to any origin, without cookies
    CORS_ALLOW_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Contract financials ---
    DEFAULT_OPERATING_FEE_RATE: Decimal = Decimal("3")  # % of net rental
    INSTALLMENT_TOLERANCE: Decimal = Decimal("1")       # allowed |sum - total|
    INSTALLATION_DUE_DAYS: int = 7                       # "عند التركيب" = start + N days

    # --- Pricing cache ---
    PRICING_PRELOAD: bool = True  # load the pricing table on app startup

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

# SQLite connections are used from the FastAPI threadpool
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# SQLAlchemy Engine & Session
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, future=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db():
    """FastAPI dependency: one DB session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
