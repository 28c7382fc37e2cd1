from pathlib import Path

from sqlalchemy import Column, DateTime, Integer, String, create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import declarative_base

from . import settings
from .exceptions import SnapshotStoreError

Base = declarative_base()

# Dialects with an INSERT .. ON CONFLICT DO UPDATE construct in SQLAlchemy.
SUPPORTED_DIALECTS = ("postgresql", "sqlite")


class SnapshotEntry(Base):
    """One variant's quantity in one labelled snapshot. (label, variant_id) is unique."""

    __tablename__ = "snapshot_entries"

    label = Column(String(255), primary_key=True, index=True)
    variant_id = Column(String(255), primary_key=True)
    qty = Column(Integer, nullable=False)


class SnapshotMeta(Base):
    __tablename__ = "snapshot_meta"

    label = Column(String(255), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    count = Column(Integer, nullable=False)


def resolve_database_url(url: str) -> URL:
    """
    Parses DATABASE_URL and rejects dialects the indexed store cannot upsert into.
    A relative SQLite path is taken relative to the project root, not the
    working directory, and its parent directory is created.
    """
    parsed = make_url(url)
    dialect = parsed.get_backend_name()
    if dialect not in SUPPORTED_DIALECTS:
        raise SnapshotStoreError(
            f"Unsupported DATABASE_URL dialect '{dialect}' (supported: {', '.join(SUPPORTED_DIALECTS)})"
        )

    if dialect == "sqlite" and parsed.database and parsed.database != ":memory:":
        path = Path(parsed.database)
        if not path.is_absolute():
            path = settings.BASE_DIR / path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SnapshotStoreError(f"Could not create directory for {path}: {e}") from e
        parsed = parsed.set(database=str(path))
    return parsed


def make_engine(url: str) -> Engine:
    """Creates the engine for the indexed store and makes sure its tables exist."""
    engine = create_engine(resolve_database_url(url), pool_pre_ping=True)
    Base.metadata.create_all(engine)
    return engine
