"""Pytest configuration and shared builders for GraphQL-shaped test data."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    # Ensure tests can import `inventory_export` without package installation.
    sys.path.insert(0, project_root_str)

from inventory_export.db import make_engine  # noqa: E402
from inventory_export.snapshot_store import FileSnapshotStore, IndexedSnapshotStore, SnapshotStore  # noqa: E402


def connection(nodes: list[dict[str, Any]], has_next: bool = False, cursor: str | None = None) -> dict[str, Any]:
    """Wrap nodes in a Relay-style connection object."""
    return {
        "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
        "edges": [{"node": node} for node in nodes],
    }


def variant_node(
    variant_id: str | None,
    sku: str | None = None,
    tracked: bool = True,
    levels: list[int | None] | None = None,
    cost: str | None = "12.50",
    currency: str | None = "EUR",
) -> dict[str, Any]:
    """A variant node; each entry of `levels` is one location (None = no 'available' entry)."""
    level_nodes = []
    for qty in levels if levels is not None else [0]:
        quantities = [] if qty is None else [{"name": "available", "quantity": qty}]
        level_nodes.append({"quantities": quantities})
    return {
        "id": variant_id,
        "sku": sku,
        "inventoryItem": {
            "tracked": tracked,
            "unitCost": {"amount": cost, "currencyCode": currency} if cost is not None else None,
            "inventoryLevels": connection(level_nodes),
        },
    }


def product_node(
    product_id: str,
    variants: list[dict[str, Any]],
    title: str = "Linen Shirt",
    vendor: str = "Acme",
    invoice_date: str | None = None,
    invoice_number: str | None = None,
) -> dict[str, Any]:
    return {
        "id": product_id,
        "title": title,
        "vendor": vendor,
        "vendorInvoiceDate": {"value": invoice_date} if invoice_date else None,
        "vendorInvoiceNumber": {"value": invoice_number} if invoice_number else None,
        "variants": connection(variants),
    }


def line_item(quantity: int | None, variant_id: str | None = None, sku: str | None = None) -> dict[str, Any]:
    return {
        "quantity": quantity,
        "sku": sku,
        "variant": {"id": variant_id, "sku": sku} if variant_id else None,
    }


def order_node(order_id: str, line_items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"id": order_id, "createdAt": "2024-05-02T10:00:00Z", "lineItems": connection(line_items)}


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: str | None = None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self._payload = payload

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Stands in for requests.Session; answers posts from a queue and records them."""

    def __init__(self, responses: list[FakeResponse | Exception]):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClient:
    """Stands in for ShopifyClient.paginate with canned pages per connection."""

    def __init__(self, pages: dict[str, list[list[dict[str, Any]]]], errors: dict[str, Exception] | None = None):
        self.pages = pages
        self.errors = errors or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def with_new_session(self) -> "FakeClient":
        return self

    def paginate(self, query: str, connection: str, variables: dict[str, Any] | None = None):
        self.calls.append((connection, dict(variables or {})))
        for page in self.pages.get(connection, [[]]):
            yield page
        if connection in self.errors:
            raise self.errors[connection]


@pytest.fixture
def catalog_pages() -> list[list[dict[str, Any]]]:
    """Two product pages: three tracked variants and one untracked one."""
    return [
        [
            product_node(
                "gid://shopify/Product/1",
                [
                    variant_node("gid://shopify/ProductVariant/11", sku="SHIRT-S", levels=[3, 5, 0]),
                    variant_node("gid://shopify/ProductVariant/12", sku="SHIRT-M", levels=[2]),
                ],
                invoice_date="2024-04-15",
                invoice_number="INV-0042",
            ),
        ],
        [
            product_node(
                "gid://shopify/Product/2",
                [
                    variant_node("gid://shopify/ProductVariant/21", sku="CAP", levels=[7], cost=None),
                    variant_node("gid://shopify/ProductVariant/22", sku="GIFT", tracked=False, levels=[99]),
                ],
                title="Cap",
                vendor="Hatters",
            ),
        ],
    ]


@pytest.fixture
def order_pages() -> list[list[dict[str, Any]]]:
    return [
        [
            order_node("gid://shopify/Order/1", [line_item(2, "gid://shopify/ProductVariant/11", "SHIRT-S")]),
            order_node("gid://shopify/Order/2", [line_item(1, "gid://shopify/ProductVariant/22", "GIFT")]),
        ],
        [
            order_node(
                "gid://shopify/Order/3",
                [line_item(3, "gid://shopify/ProductVariant/11", "SHIRT-S"), line_item(4, None, None)],
            ),
        ],
    ]


@pytest.fixture
def fake_client(catalog_pages, order_pages) -> FakeClient:
    return FakeClient({"products": catalog_pages, "orders": order_pages})


@pytest.fixture
def file_store(tmp_path: Path) -> FileSnapshotStore:
    return FileSnapshotStore(tmp_path / "snapshots")


@pytest.fixture
def indexed_store(tmp_path: Path) -> IndexedSnapshotStore:
    return IndexedSnapshotStore(make_engine(f"sqlite:///{tmp_path / 'snapshots.db'}"))


@pytest.fixture
def file_only_store(file_store: FileSnapshotStore) -> SnapshotStore:
    return SnapshotStore(file_store)


@pytest.fixture
def two_tier_store(file_store: FileSnapshotStore, indexed_store: IndexedSnapshotStore) -> SnapshotStore:
    return SnapshotStore(file_store, indexed_store)
