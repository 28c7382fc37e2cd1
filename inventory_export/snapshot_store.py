"""
Labelled point-in-time inventory snapshots.

Two tiers: a JSON file per label (always written; the recovery copy) and an
optional SQLAlchemy-backed indexed store for fast lookup by label. Writes go
through both; reads try the indexed store first and fall back to the file
when it has nothing for the label.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import settings
from .db import SnapshotEntry, SnapshotMeta, make_engine
from .exceptions import SnapshotStoreError
from .schemas import SnapshotQuantities
from .utils import label_to_filename

logger = logging.getLogger(__name__)


class FileSnapshotStore:
    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def path_for(self, label: str) -> Path:
        return self.directory / label_to_filename(label)

    def save(self, label: str, quantities: SnapshotQuantities, created_at: datetime) -> Path:
        """Writes the snapshot for `label`, replacing any earlier one atomically."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(label)
        document = {
            "label": label,
            "created_at": created_at.isoformat(),
            "count": len(quantities),
            "quantities": quantities,
        }

        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"  > Snapshot file saved: {path} (variants={len(quantities)})")
        return path

    def load(self, label: str) -> Optional[SnapshotQuantities]:
        path = self.path_for(label)
        if not path.exists():
            return None

        with open(path, encoding="utf-8") as f:
            document: dict[str, Any] = json.load(f)

        # Older snapshot files are a bare {variant_id: qty} mapping.
        quantities = document.get("quantities")
        if not isinstance(quantities, dict):
            quantities = document
        logger.info(f"  > Loaded snapshot file {path} (keys={len(quantities)})")
        return {str(variant_id): int(qty) for variant_id, qty in quantities.items()}


class IndexedSnapshotStore:
    # Rows per INSERT statement; keeps SQLite under its bound-parameter limit.
    CHUNK_SIZE = 500

    def __init__(self, engine: Optional[Engine] = None, url: Optional[str] = None):
        if engine is None and not url:
            raise ValueError("IndexedSnapshotStore needs an engine or a database URL")
        self._engine = engine
        self.url = url

    @property
    def engine(self) -> Engine:
        # Connected on first use, so an unreachable database only affects the calls that need it.
        if self._engine is None:
            self._engine = make_engine(self.url)
        return self._engine

    def _insert(self, table):
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(table)
        return sqlite.insert(table)

    def save(self, label: str, quantities: SnapshotQuantities, created_at: datetime) -> None:
        """
        Replaces the label's entries in one transaction. Entries are upserted on
        (label, variant_id), so re-running after an aborted write is safe.
        """
        entries = [
            {"label": label, "variant_id": variant_id, "qty": qty}
            for variant_id, qty in quantities.items()
        ]

        with self.engine.begin() as conn:
            conn.execute(delete(SnapshotEntry).where(SnapshotEntry.label == label))

            for start in range(0, len(entries), self.CHUNK_SIZE):
                stmt = self._insert(SnapshotEntry).values(entries[start : start + self.CHUNK_SIZE])
                stmt = stmt.on_conflict_do_update(
                    index_elements=["label", "variant_id"],
                    set_={"qty": stmt.excluded.qty},
                )
                conn.execute(stmt)

            meta = self._insert(SnapshotMeta).values(
                label=label, created_at=created_at, count=len(quantities)
            )
            meta = meta.on_conflict_do_update(
                index_elements=["label"],
                set_={"created_at": meta.excluded.created_at, "count": meta.excluded.count},
            )
            conn.execute(meta)

        logger.info(f"  > Indexed snapshot upserted: label={label} entries={len(entries)}")

    def load(self, label: str) -> Optional[SnapshotQuantities]:
        """Returns None when the label has no entries (never created, or an empty catalog)."""
        with self.engine.connect() as conn:
            result = conn.execute(
                select(SnapshotEntry.variant_id, SnapshotEntry.qty).where(SnapshotEntry.label == label)
            )
            quantities = {variant_id: qty for variant_id, qty in result}

        logger.info(f"  > Indexed snapshot loaded: label={label} entries={len(quantities)}")
        return quantities or None


class SnapshotStore:
    """Write-through to every configured tier, read fastest-first with file fallback."""

    def __init__(self, file_store: FileSnapshotStore, indexed_store: Optional[IndexedSnapshotStore] = None):
        self.file_store = file_store
        self.indexed_store = indexed_store

    @classmethod
    def from_settings(cls) -> "SnapshotStore":
        indexed_store = None
        if settings.DATABASE_URL:
            indexed_store = IndexedSnapshotStore(url=settings.DATABASE_URL)
        else:
            logger.info("No DATABASE_URL configured. Snapshots are file-only.")
        return cls(FileSnapshotStore(settings.SNAPSHOT_DIR), indexed_store)

    def save(
        self, label: str, quantities: SnapshotQuantities, created_at: Optional[datetime] = None
    ) -> Path:
        created_at = created_at or datetime.now(timezone.utc)

        try:
            path = self.file_store.save(label, quantities, created_at)
        except OSError as e:
            raise SnapshotStoreError(f"Could not write snapshot file for '{label}': {e}") from e

        if self.indexed_store is not None:
            try:
                self.indexed_store.save(label, quantities, created_at)
            except (SQLAlchemyError, SnapshotStoreError) as e:
                raise SnapshotStoreError(f"Could not write indexed snapshot for '{label}': {e}") from e

        return path

    def load(self, label: str) -> Optional[SnapshotQuantities]:
        """Returns the quantities stored under `label`, or None when no tier has it."""
        if self.indexed_store is not None:
            try:
                quantities = self.indexed_store.load(label)
            except (SQLAlchemyError, SnapshotStoreError) as e:
                logger.warning(f"⚠️ Indexed snapshot lookup failed for '{label}', trying file: {e}")
                quantities = None
            if quantities is not None:
                return quantities
            logger.warning(f"⚠️ Indexed store has no entries for '{label}', trying file.")

        quantities = self.file_store.load(label)
        if quantities is None:
            logger.warning(f"⚠️ Snapshot not found: '{label}'")
        return quantities
