"""Database setup for storing user accounts."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

engine = create_engine(settings.database_url, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


def init_db() -> None:
    """Create database tables if they do not exist."""
    # Register the models on Base.metadata before creating tables
    from .models import account  # noqa: F401

    Base.metadata.create_all(bind=engine)
