import logging
from typing import Optional, Sequence

from .aggregation import variant_join_key
from .schemas import ReportRow, SalesAggregate, SnapshotQuantities, VariantRecord

logger = logging.getLogger(__name__)


def build_report(
    variants: Sequence[VariantRecord],
    sales: SalesAggregate,
    snapshot: Optional[SnapshotQuantities] = None,
) -> list[ReportRow]:
    """
    Joins the live catalog with the sales aggregate and an optional snapshot.

    Exactly one row per input record, in input order. Missing sales give 0,
    a missing snapshot (or a variant absent from it) gives a null starting
    quantity. Inputs are never modified.
    """
    rows = []
    for record in variants:
        key = variant_join_key(record)
        units_sold = sales.get(key, 0) if key is not None else 0

        starting_qty = None
        if snapshot is not None and record.variant_id:
            starting_qty = snapshot.get(record.variant_id)

        rows.append(
            ReportRow(
                vendor=record.vendor,
                vendor_invoice_date=record.vendor_invoice_date,
                vendor_invoice_number=record.vendor_invoice_number,
                product_title=record.product_title,
                product_variant_sku=record.sku,
                unit_cost=record.unit_cost,
                unit_cost_currency=record.unit_cost_currency,
                starting_inventory_qty=starting_qty,
                ending_inventory_qty=record.ending_qty,
                units_sold=units_sold,
            )
        )

    logger.info(f"Rows built: {len(rows)}")
    return rows
