import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from .shopify_client import ShopifyClient
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for the report and snapshot pipelines.
    Follows an Extract -> Transform -> Load (ETL) pattern.

    Failures propagate out of run(); a pipeline either finishes as a whole or
    raises, it never loads partial data.
    """

    def __init__(
        self,
        report_type: str,
        client: Optional[ShopifyClient] = None,
        store: Optional[SnapshotStore] = None,
    ):
        self.report_type = report_type
        self.client = client if client is not None else ShopifyClient.from_settings()
        self._store = store

    @property
    def store(self) -> SnapshotStore:
        """The snapshot store, built from settings only when a step first needs it."""
        if self._store is None:
            self._store = SnapshotStore.from_settings()
        return self._store

    def run(self) -> Any:
        """
        Orchestrates the pipeline execution and returns what load() produced.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()}")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        raw_data = self.extract()

        # --- 2. TRANSFORM ---
        transformed = self.transform(raw_data)

        # --- 3. LOAD ---
        result = self.load(transformed)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.")
        logger.info("=" * 60)
        return result

    @abstractmethod
    def extract(self) -> Any:
        """Fetches everything the pipeline needs from Shopify and the snapshot store."""
        pass

    @abstractmethod
    def transform(self, raw_data: Any) -> Any:
        """Pure reduction of the extracted data. No I/O."""
        pass

    @abstractmethod
    def load(self, transformed: Any) -> Any:
        """Persists the result and returns a summary for the caller."""
        pass
