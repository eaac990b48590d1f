"""Tests for schema discovery."""

import pytest

from semspine.core.errors import ConnectorUnavailableError, DiscoveryError
from semspine.core.result import Err, Ok
from semspine.discovery import discover, discover_all, guess_type, infer_fields


class SampledApi:
    """Sampleable connector with canned rows per endpoint."""

    def __init__(self, samples, failing=(), error=ConnectorUnavailableError):
        self.samples = samples
        self.failing = set(failing)
        self.error = error
        self.sizes = []

    @property
    def id(self):
        return "api"

    async def list_endpoints(self):
        return list(self.samples) + sorted(self.failing)

    async def sample(self, endpoint, n=25):
        self.sizes.append(n)
        if endpoint in self.failing:
            raise self.error(f"{endpoint} down")
        return self.samples[endpoint]


class TestDiscover:
    @pytest.mark.asyncio
    async def test_describable_connector_is_asked_directly(self, make_describable, customers_summary):
        conn = make_describable("pg", customers_summary)
        assert await discover(conn) == customers_summary
        assert conn.describe_calls == 1

    @pytest.mark.asyncio
    async def test_sampled_connector(self):
        api = SampledApi({"/users": [{"id": 1, "email": "a@b.co"}, {"id": 2, "email": None, "active": True}]})
        summary = await discover(api, sample_size=5)
        assert api.sizes == [5]
        users = summary.find("/users")
        assert [(f.name, f.type) for f in users.fields] == [
            ("id", "number"),
            ("email", "string"),
            ("active", "boolean"),
        ]
        assert all(f.nullable for f in users.fields)

    @pytest.mark.asyncio
    async def test_failed_endpoint_skipped(self):
        api = SampledApi({"/items": [{"sku": "x"}]}, failing=["/broken"])
        summary = await discover(api)
        assert [o.name for o in summary.objects] == ["/items"]

    @pytest.mark.asyncio
    async def test_unexpected_sampler_error_skips_endpoint(self):
        api = SampledApi({"/ok": [{"id": 1}]}, failing=["/bad"], error=ValueError)
        summary = await discover(api)
        assert [o.name for o in summary.objects] == ["/ok"]

    @pytest.mark.asyncio
    async def test_malformed_sample_skips_endpoint(self):
        api = SampledApi({"/ok": [{"id": 1}], "/numbers": [1, 2, 3]})
        summary = await discover(api)
        assert [o.name for o in summary.objects] == ["/ok"]

    @pytest.mark.asyncio
    async def test_unsupported_connector(self, make_connector):
        with pytest.raises(DiscoveryError):
            await discover(make_connector("plain"))

    @pytest.mark.asyncio
    async def test_discover_all_keyed_by_source(self, make_describable, customers_summary):
        results = await discover_all(
            {"pg": make_describable("pg", customers_summary), "api": SampledApi({"/items": []})}
        )
        assert results["pg"] == Ok(customers_summary)
        assert results["api"].value.find("/items").fields == []

    @pytest.mark.asyncio
    async def test_failing_source_does_not_hide_others(self, make_describable, make_connector, customers_summary):
        down = ConnectorUnavailableError("connection refused")
        results = await discover_all(
            {
                "crm": make_describable("crm", describe_error=down),
                "plain": make_connector("plain"),
                "pg": make_describable("pg", customers_summary),
            }
        )
        assert list(results) == ["crm", "plain", "pg"]
        assert results["crm"] == Err(down)
        assert isinstance(results["plain"], Err)
        assert isinstance(results["plain"].error, DiscoveryError)
        assert results["pg"] == Ok(customers_summary)


class TestInference:
    def test_empty_rows(self):
        assert infer_fields([]) == []

    def test_only_first_rows_contribute_keys(self):
        rows = [{"a": 1}] * 10 + [{"a": 1, "late": "x"}]
        assert [f.name for f in infer_fields(rows)] == ["a"]

    @pytest.mark.parametrize(
        "values,expected",
        [
            ([None, True], "boolean"),
            ([3], "number"),
            ([2.5], "number"),
            (["2024-01-05T10:00:00Z"], "timestamp"),
            (["hello"], "string"),
            ([None, None], "string"),
            ([{"nested": 1}], "string"),
        ],
    )
    def test_guess_type(self, values, expected):
        assert guess_type(values) == expected
