import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from inventory_export import data_handler, settings, utils
from inventory_export.fetchers import fetch_catalog_and_inventory, fetch_sales
from inventory_export.pipeline import DataPipeline
from inventory_export.report import build_report
from inventory_export.schemas import ReportRow, SalesAggregate, SnapshotQuantities, VariantRecord
from inventory_export.shopify_client import ShopifyClient
from inventory_export.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class ReportInputs:
    variants: list[VariantRecord]
    sales: SalesAggregate
    snapshot: Optional[SnapshotQuantities]


@dataclass
class ReportOutput:
    base: str
    rows: list[ReportRow]
    columns: list[str]


class ReportPipeline(DataPipeline):
    """
    Live catalog + sales in [since, until] + optional starting snapshot,
    joined into one row per tracked variant and saved as CSV and XML.
    """

    def __init__(
        self,
        since: datetime,
        until: datetime,
        start_snapshot_label: Optional[str] = None,
        columns: Optional[Sequence[str]] = None,
        client: Optional[ShopifyClient] = None,
        store: Optional[SnapshotStore] = None,
        export_dir: Optional[Path] = None,
    ):
        super().__init__("report", client=client, store=store)
        self.since = since
        self.until = until
        self.start_snapshot_label = start_snapshot_label
        # Validate up front so a bad selection fails before any remote call.
        self.columns = data_handler.resolve_columns(columns)
        self.export_dir = export_dir

    def extract(self) -> ReportInputs:
        logger.info("--- Starting Report Extraction ---")

        # One client (and HTTP session) per worker; both fetches must finish before the join.
        catalog_client = self.client.with_new_session()
        sales_client = self.client.with_new_session()
        with ThreadPoolExecutor(max_workers=2) as executor:
            catalog_future = executor.submit(fetch_catalog_and_inventory, catalog_client)
            sales_future = executor.submit(fetch_sales, sales_client, self.since, self.until)
            variants = catalog_future.result()
            sales = sales_future.result()

        logger.info(f"Catalog rows={len(variants)}, variants with sales={len(sales)}")
        return ReportInputs(variants=variants, sales=sales, snapshot=self._load_snapshot())

    def _load_snapshot(self) -> Optional[SnapshotQuantities]:
        if not self.start_snapshot_label:
            logger.info("No start snapshot label provided.")
            return None

        snapshot = self.store.load(self.start_snapshot_label)
        if snapshot is None:
            logger.warning(
                f"⚠️ Start snapshot '{self.start_snapshot_label}' not found. Starting quantities will be empty."
            )
        return snapshot

    def transform(self, inputs: ReportInputs) -> list[ReportRow]:
        return build_report(inputs.variants, inputs.sales, inputs.snapshot)

    def load(self, rows: list[ReportRow]) -> ReportOutput:
        base = f"{settings.EXPORT_BASENAME}_{utils.get_export_stamp()}"
        base = data_handler.save_exports(rows, base, self.columns, export_dir=self.export_dir)
        return ReportOutput(base=base, rows=rows, columns=self.columns)
