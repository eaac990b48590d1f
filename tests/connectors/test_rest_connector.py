"""Tests for the generic REST connector."""

import httpx
import pytest

from semspine.connectors.base import Describable, Sampleable
from semspine.connectors.rest import DEFAULT_ENDPOINTS, RestConnector
from semspine.core.errors import ConnectorQueryError, ConnectorUnavailableError
from semspine.core.models import NativeQuery, WhereClause


def make_rest(handler, **kwargs) -> RestConnector:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RestConnector("catalog", base_url="https://api.example.com/", client=client, **kwargs)


class TestDiscoveryHooks:
    @pytest.mark.asyncio
    async def test_protocols(self):
        conn = make_rest(lambda request: httpx.Response(200, json=[]))
        assert isinstance(conn, Sampleable)
        assert not isinstance(conn, Describable)

    @pytest.mark.asyncio
    async def test_default_and_configured_endpoints(self):
        assert await make_rest(lambda r: httpx.Response(200)).list_endpoints() == DEFAULT_ENDPOINTS
        conn = make_rest(lambda r: httpx.Response(200), endpoints=["/widgets"])
        assert await conn.list_endpoints() == ["/widgets"]

    @pytest.mark.asyncio
    async def test_sample_sends_limit(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=[{"id": 1}, {"id": 2}])

        rows = await make_rest(handler).sample("/items", 2)
        assert rows == [{"id": 1}, {"id": 2}]
        assert seen[0].path == "/items"
        assert seen[0].params["limit"] == "2"


class TestExecute:
    @pytest.mark.asyncio
    async def test_filter_values_are_percent_encoded(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[{"id": 7}])

        conn = make_rest(handler)
        result = await conn.execute(
            NativeQuery(
                object="Customer",
                select=["id"],
                where=[WhereClause(field="name", op="=", value="a&b=c d")],
                limit=5,
            )
        )
        request = seen[0]
        assert request.url.path == "/customers"
        assert request.url.params["filter[0][name]"] == "=:a&b=c d"
        assert "a&b=c d" not in str(request.url)
        assert result.rows == [{"id": 7}]
        assert result.step.query == str(request.url)

    @pytest.mark.asyncio
    async def test_object_endpoint_override(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={"id": 1})

        conn = make_rest(handler, object_endpoints={"Customer": "/v2/clients"})
        result = await conn.execute(NativeQuery(object="Customer", limit=1))
        assert seen == ["/v2/clients"]
        assert result.rows == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_empty_body_returns_no_rows(self):
        conn = make_rest(lambda r: httpx.Response(204))
        result = await conn.execute(NativeQuery(object="item", limit=1))
        assert result.rows == []

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        conn = make_rest(lambda r: httpx.Response(503))
        with pytest.raises(ConnectorUnavailableError) as exc_info:
            await conn.execute(NativeQuery(object="item", limit=1))
        assert exc_info.value.context.http_status == 503

    @pytest.mark.asyncio
    async def test_client_error_is_query_error(self):
        conn = make_rest(lambda r: httpx.Response(400, json={"error": "bad filter"}))
        with pytest.raises(ConnectorQueryError):
            await conn.execute(NativeQuery(object="item", limit=1))

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ConnectorUnavailableError):
            await make_rest(handler).execute(NativeQuery(object="item", limit=1))

    @pytest.mark.asyncio
    async def test_non_json_body_is_query_error(self):
        conn = make_rest(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(ConnectorQueryError):
            await conn.execute(NativeQuery(object="item", limit=1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [[1, 2, 3], [{"id": 1}, "two"], 5])
    async def test_non_object_rows_are_query_error(self, payload):
        conn = make_rest(lambda r: httpx.Response(200, json=payload))
        with pytest.raises(ConnectorQueryError, match="did not return JSON objects"):
            await conn.execute(NativeQuery(object="item", limit=1))
