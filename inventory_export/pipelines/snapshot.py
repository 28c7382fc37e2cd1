import logging
from datetime import datetime, timezone
from typing import Optional

from inventory_export.aggregation import snapshot_quantities
from inventory_export.fetchers import fetch_catalog_and_inventory
from inventory_export.pipeline import DataPipeline
from inventory_export.schemas import SnapshotQuantities, SnapshotResult, VariantRecord
from inventory_export.shopify_client import ShopifyClient
from inventory_export.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotPipeline(DataPipeline):
    """Captures {variant_id: quantity on hand} for the whole catalog under a label."""

    def __init__(
        self,
        label: str,
        client: Optional[ShopifyClient] = None,
        store: Optional[SnapshotStore] = None,
    ):
        super().__init__("snapshot", client=client, store=store)
        self.label = label

    def extract(self) -> list[VariantRecord]:
        logger.info(f"--- Creating snapshot for label: {self.label} ---")
        return fetch_catalog_and_inventory(self.client)

    def transform(self, records: list[VariantRecord]) -> SnapshotQuantities:
        return snapshot_quantities(records)

    def load(self, quantities: SnapshotQuantities) -> SnapshotResult:
        path = self.store.save(self.label, quantities, datetime.now(timezone.utc))
        logger.info(f"✅ Snapshot '{self.label}' saved (variants={len(quantities)})")
        return SnapshotResult(label=self.label, count=len(quantities), file=str(path))


def create_snapshot(
    label: str, client: Optional[ShopifyClient] = None, store: Optional[SnapshotStore] = None
) -> SnapshotResult:
    """Fetches a fresh catalog scan and stores it under `label`, overwriting any earlier one."""
    return SnapshotPipeline(label, client=client, store=store).run()
