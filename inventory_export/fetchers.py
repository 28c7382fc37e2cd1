import logging
from datetime import date, datetime

from .aggregation import fold_orders, variant_records_from_products
from .schemas import SalesAggregate, VariantRecord
from .shopify_client import ORDERS_PAGE_QUERY, PRODUCTS_PAGE_QUERY, ShopifyClient
from .utils import to_date_only

logger = logging.getLogger(__name__)


def fetch_catalog_and_inventory(client: ShopifyClient) -> list[VariantRecord]:
    """
    Scans the whole catalog (no time filter: quantity on hand is always "now")
    and returns one record per tracked variant.
    """
    logger.info("--- Fetching products & inventory ---")
    records: list[VariantRecord] = []
    product_count = 0

    for products in client.paginate(PRODUCTS_PAGE_QUERY, "products", {"qtyNames": ["available"]}):
        product_count += len(products)
        records.extend(variant_records_from_products(products))

    logger.info(f"✅ Catalog done. products={product_count} tracked variants={len(records)}")
    return records


def orders_search_query(since: datetime | date | str, until: datetime | date | str) -> str:
    """
    Builds the orders search string for paid, non-cancelled orders created in
    [since, until]. Only the calendar date of each bound is used.
    """
    since_date = to_date_only(since).isoformat()
    until_date = to_date_only(until).isoformat()
    return f"created_at:{since_date}..{until_date} financial_status:paid -status:cancelled"


def fetch_sales(
    client: ShopifyClient, since: datetime | date | str, until: datetime | date | str
) -> SalesAggregate:
    """Sums units sold per join key over every matching order line item."""
    search = orders_search_query(since, until)
    logger.info(f"--- Fetching sales: {search} ---")

    sales: SalesAggregate = {}
    total_orders = 0
    total_lines = 0
    for orders in client.paginate(ORDERS_PAGE_QUERY, "orders", {"query": search}):
        order_count, line_count = fold_orders(sales, orders)
        total_orders += order_count
        total_lines += line_count

    logger.info(
        f"✅ Sales done. orders={total_orders} lines={total_lines} variants with sales={len(sales)}"
    )
    return sales
