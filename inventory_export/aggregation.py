"""
Per-page reductions of raw GraphQL nodes.

Each page is folded as soon as it arrives, so raw pages are never buffered:
product pages become VariantRecords, order pages are added into a running
sales aggregate.
"""

from typing import Any, Iterable, Optional

from .schemas import BySku, ByVariantId, JoinKey, SalesAggregate, SnapshotQuantities, VariantRecord

AVAILABLE = "available"


def _edges(connection: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
    return [edge["node"] for edge in (connection or {}).get("edges") or []]


def ending_quantity(inventory_levels: Iterable[dict[str, Any]]) -> int:
    """
    Sums the 'available' quantity across inventory locations.
    A location without an 'available' entry (or with a null quantity) counts as zero.
    """
    total = 0
    for level in inventory_levels:
        available = next(
            (q for q in level.get("quantities") or [] if q.get("name") == AVAILABLE),
            None,
        )
        total += (available or {}).get("quantity") or 0
    return total


def _metafield_value(product: dict[str, Any], alias: str) -> Optional[str]:
    return (product.get(alias) or {}).get("value") or None


def variant_records_from_products(products: Iterable[dict[str, Any]]) -> list[VariantRecord]:
    """Turns one page of product nodes into records for their tracked variants."""
    records = []
    for product in products:
        for variant in _edges(product.get("variants")):
            item = variant.get("inventoryItem") or {}
            # Only tracked inventory is reported.
            if item.get("tracked") is not True:
                continue

            unit_cost = item.get("unitCost") or {}
            records.append(
                VariantRecord(
                    product_id=product.get("id"),
                    product_title=product.get("title"),
                    vendor=product.get("vendor"),
                    vendor_invoice_date=_metafield_value(product, "vendorInvoiceDate"),
                    vendor_invoice_number=_metafield_value(product, "vendorInvoiceNumber"),
                    variant_id=variant.get("id") or None,
                    sku=variant.get("sku") or None,
                    unit_cost=unit_cost.get("amount"),
                    unit_cost_currency=unit_cost.get("currencyCode"),
                    ending_qty=ending_quantity(_edges(item.get("inventoryLevels"))),
                )
            )
    return records


def line_item_join_key(line_item: dict[str, Any]) -> Optional[JoinKey]:
    """Variant id first, then the line item's SKU; None drops the line item."""
    variant_id = (line_item.get("variant") or {}).get("id")
    if variant_id:
        return ByVariantId(variant_id)
    if line_item.get("sku"):
        return BySku(line_item["sku"])
    return None


def variant_join_key(record: VariantRecord) -> Optional[JoinKey]:
    if record.variant_id:
        return ByVariantId(record.variant_id)
    if record.sku:
        return BySku(record.sku)
    return None


def fold_orders(sales: SalesAggregate, orders: Iterable[dict[str, Any]]) -> tuple[int, int]:
    """
    Adds every line item of one page of orders into `sales` in place.
    Returns (orders seen, line items seen) for progress logging.
    """
    order_count = 0
    line_count = 0
    for order in orders:
        order_count += 1
        for line_item in _edges(order.get("lineItems")):
            line_count += 1
            key = line_item_join_key(line_item)
            if key is None:
                continue
            sales[key] = sales.get(key, 0) + (line_item.get("quantity") or 0)
    return order_count, line_count


def snapshot_quantities(records: Iterable[VariantRecord]) -> SnapshotQuantities:
    """
    Collapses catalog records into {variant_id: quantity}.
    Records without a variant id cannot be looked up later and are left out.
    """
    quantities: SnapshotQuantities = {}
    for record in records:
        if not record.variant_id:
            continue
        quantities[record.variant_id] = quantities.get(record.variant_id, 0) + record.ending_qty
    return quantities
