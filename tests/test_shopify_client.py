"""Tests for the GraphQL transport and the cursor page iterator."""

from __future__ import annotations

import pytest
import requests

from conftest import FakeResponse, FakeSession, connection
from inventory_export.exceptions import ShopifyAPIError
from inventory_export.shopify_client import (
    ORDERS_PAGE_QUERY,
    PRODUCTS_PAGE_QUERY,
    ShopifyClient,
    operation_name,
)


def _client(responses) -> tuple[ShopifyClient, FakeSession]:
    session = FakeSession(responses)
    client = ShopifyClient("demo.myshopify.com", "shpat_test", api_version="2024-10", timeout=5, session=session)
    return client, session


def test_operation_name_is_read_from_the_query_text() -> None:
    assert operation_name(PRODUCTS_PAGE_QUERY) == "ProductsPage"
    assert operation_name(ORDERS_PAGE_QUERY) == "OrdersPage"
    assert operation_name("{ shop { name } }") == "UnknownOp"


def test_execute_posts_query_with_token_and_timeout() -> None:
    client, session = _client([FakeResponse({"data": {"shop": {"name": "Demo"}}})])

    data = client.execute("query Shop { shop { name } }", {"a": 1})

    assert data == {"shop": {"name": "Demo"}}
    call = session.calls[0]
    assert call["url"] == "https://demo.myshopify.com/admin/api/2024-10/graphql.json"
    assert call["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    assert call["json"] == {"query": "query Shop { shop { name } }", "variables": {"a": 1}}
    assert call["timeout"] == 5


def test_execute_raises_on_http_error_status() -> None:
    client, _ = _client([FakeResponse(status_code=401, text='{"errors":"Invalid API key"}')])

    with pytest.raises(ShopifyAPIError, match="HTTP 401"):
        client.execute("query Shop { shop { name } }")


def test_execute_raises_on_graphql_error_list() -> None:
    client, _ = _client([FakeResponse({"data": None, "errors": [{"message": "Throttled"}]})])

    with pytest.raises(ShopifyAPIError, match="Throttled"):
        client.execute("query Shop { shop { name } }")


def test_execute_wraps_transport_failures() -> None:
    client, _ = _client([requests.exceptions.ConnectTimeout("timed out")])

    with pytest.raises(ShopifyAPIError, match="timed out"):
        client.execute("query Shop { shop { name } }")


def test_execute_rejects_non_json_body() -> None:
    client, _ = _client([FakeResponse(status_code=200, text="<html>maintenance</html>")])

    with pytest.raises(ShopifyAPIError, match="non-JSON"):
        client.execute("query Shop { shop { name } }")


def test_paginate_threads_cursor_until_last_page() -> None:
    client, session = _client(
        [
            FakeResponse({"data": {"orders": connection([{"id": "o1"}], has_next=True, cursor="c1")}}),
            FakeResponse({"data": {"orders": connection([{"id": "o2"}, {"id": "o3"}], has_next=True, cursor="c2")}}),
            FakeResponse({"data": {"orders": connection([], has_next=False, cursor=None)}}),
        ]
    )

    pages = list(client.paginate(ORDERS_PAGE_QUERY, "orders", {"query": "financial_status:paid"}))

    assert pages == [[{"id": "o1"}], [{"id": "o2"}, {"id": "o3"}], []]
    sent_cursors = [call["json"]["variables"]["cursor"] for call in session.calls]
    assert sent_cursors == [None, "c1", "c2"]
    assert all(call["json"]["variables"]["query"] == "financial_status:paid" for call in session.calls)


def test_paginate_is_lazy() -> None:
    client, session = _client(
        [FakeResponse({"data": {"orders": connection([{"id": "o1"}], has_next=True, cursor="c1")}})]
    )

    pages = client.paginate(ORDERS_PAGE_QUERY, "orders", {"query": "x"})
    assert session.calls == []
    assert next(pages) == [{"id": "o1"}]
    assert len(session.calls) == 1


def test_paginate_aborts_on_failed_page() -> None:
    client, _ = _client(
        [
            FakeResponse({"data": {"orders": connection([{"id": "o1"}], has_next=True, cursor="c1")}}),
            FakeResponse(status_code=502, text="Bad Gateway"),
        ]
    )

    with pytest.raises(ShopifyAPIError, match="HTTP 502"):
        list(client.paginate(ORDERS_PAGE_QUERY, "orders", {"query": "x"}))


def test_paginate_rejects_missing_connection() -> None:
    client, _ = _client([FakeResponse({"data": {}})])

    with pytest.raises(ShopifyAPIError, match="no 'products' connection"):
        list(client.paginate(PRODUCTS_PAGE_QUERY, "products"))


def test_paginate_rejects_next_page_without_cursor() -> None:
    client, _ = _client([FakeResponse({"data": {"products": connection([], has_next=True, cursor=None)}})])

    with pytest.raises(ShopifyAPIError, match="without an endCursor"):
        list(client.paginate(PRODUCTS_PAGE_QUERY, "products"))
