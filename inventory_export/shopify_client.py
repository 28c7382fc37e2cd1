"""
Thin Shopify Admin GraphQL client.

Every call either returns the `data` object or raises ShopifyAPIError. There is
no retry: a failed page aborts the whole fetch it belongs to, so callers never
see a partially paginated result.
"""

import json
import logging
import re
import time
from typing import Any, Callable, Iterator, Optional

import requests

from . import settings
from .exceptions import ShopifyAPIError
from .utils import truncate

logger = logging.getLogger(__name__)

# --- Queries ---
# Batch sizes are fixed per level: products -> variants -> inventory levels.
PRODUCTS_PAGE_QUERY = """
query ProductsPage($cursor: String, $qtyNames: [String!]!) {
  products(first: 50, after: $cursor) {
    pageInfo { hasNextPage endCursor }
    edges {
      node {
        id
        title
        vendor
        vendorInvoiceDate: metafield(namespace: "custom", key: "vendor_invoice_date") { value }
        vendorInvoiceNumber: metafield(namespace: "custom", key: "vendor_invoice_number") { value }
        variants(first: 50) {
          edges {
            node {
              id
              sku
              inventoryItem {
                tracked
                unitCost { amount currencyCode }
                inventoryLevels(first: 50) {
                  edges {
                    node {
                      quantities(names: $qtyNames) { name quantity }
                    }
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

ORDERS_PAGE_QUERY = """
query OrdersPage($cursor: String, $query: String!) {
  orders(first: 100, after: $cursor, query: $query) {
    pageInfo { hasNextPage endCursor }
    edges {
      node {
        id
        createdAt
        lineItems(first: 250) {
          edges {
            node {
              quantity
              sku
              variant { id sku }
            }
          }
        }
      }
    }
  }
}
"""

_OPERATION_NAME = re.compile(r"\b(query|mutation)\s+([A-Za-z0-9_]+)")


def operation_name(query: str) -> str:
    match = _OPERATION_NAME.search(query)
    return match.group(2) if match else "UnknownOp"


class ShopifyClient:
    """Posts GraphQL documents to one store's Admin API with a static access token."""

    def __init__(
        self,
        shop: str,
        token: str,
        api_version: str = "2024-10",
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.shop = shop
        self.token = token
        self.api_version = api_version
        self.timeout = timeout
        self.session_factory = session_factory
        self.session = session or session_factory()

    def with_new_session(self) -> "ShopifyClient":
        """Same store and credentials over a fresh HTTP session, for use from another thread."""
        return type(self)(
            shop=self.shop,
            token=self.token,
            api_version=self.api_version,
            timeout=self.timeout,
            session_factory=self.session_factory,
        )

    @classmethod
    def from_settings(cls) -> "ShopifyClient":
        if not settings.SHOPIFY_SHOP or not settings.SHOPIFY_ADMIN_TOKEN:
            logger.warning("⚠️ SHOPIFY_SHOP or SHOPIFY_ADMIN_TOKEN not set. API calls will fail!")
        return cls(
            shop=settings.SHOPIFY_SHOP or "",
            token=settings.SHOPIFY_ADMIN_TOKEN or "",
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.SHOPIFY_TIMEOUT,
        )

    @property
    def url(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    def execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Runs one GraphQL document and returns its `data` object."""
        op_name = operation_name(query)
        variables = variables or {}
        logger.debug(f"[GQL→] {op_name} vars={variables}")
        started = time.monotonic()

        try:
            response = self.session.post(
                self.url,
                json={"query": query, "variables": variables},
                headers={
                    "Content-Type": "application/json",
                    "X-Shopify-Access-Token": self.token,
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ [GQL] {op_name} transport error: {e}")
            raise ShopifyAPIError(f"GraphQL request {op_name} failed: {e}") from e

        elapsed_ms = int((time.monotonic() - started) * 1000)
        body = response.text

        if not response.ok:
            logger.error(
                f"❌ [GQL] {op_name} HTTP {response.status_code} in {elapsed_ms}ms body={truncate(body, 1000)}"
            )
            raise ShopifyAPIError(f"GraphQL HTTP {response.status_code}: {truncate(body, 1000)}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ShopifyAPIError(f"GraphQL {op_name} returned a non-JSON body: {truncate(body, 200)}") from e

        if payload.get("errors"):
            logger.error(f"❌ [GQL] {op_name} errors={payload['errors']}")
            raise ShopifyAPIError(f"GraphQL errors: {json.dumps(payload['errors'])}")

        cost = (payload.get("extensions") or {}).get("cost")
        if cost:
            logger.debug(f"[GQL$] {op_name} cost={cost}")

        logger.debug(f"[GQL✓] {op_name} in {elapsed_ms}ms")
        return payload.get("data") or {}

    def paginate(
        self, query: str, connection: str, variables: Optional[dict[str, Any]] = None
    ) -> Iterator[list[dict[str, Any]]]:
        """
        Page iterator over a top-level connection.

        Yields the node list of each page in order, threading `endCursor` into
        the next request while `hasNextPage` is true. Cursors are opaque and only
        ever passed back as received. The iterator is lazy and cannot be
        restarted; call paginate() again for a fresh scan.
        """
        cursor = None
        page = 0
        op_name = operation_name(query)

        while True:
            page += 1
            data = self.execute(query, {**(variables or {}), "cursor": cursor})
            conn = data.get(connection)
            if not conn or "pageInfo" not in conn:
                raise ShopifyAPIError(f"GraphQL {op_name} response has no '{connection}' connection")

            nodes = [edge["node"] for edge in conn.get("edges") or []]
            page_info = conn["pageInfo"]
            logger.info(
                f"  > {op_name} page {page}: {connection}={len(nodes)} hasNext={page_info.get('hasNextPage')}"
            )
            yield nodes

            if not page_info.get("hasNextPage"):
                return
            cursor = page_info.get("endCursor")
            if not cursor:
                raise ShopifyAPIError(f"GraphQL {op_name} reported a next page without an endCursor")
