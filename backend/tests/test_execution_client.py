"""Tests for the HTTP execution client using httpx's mock transport."""

import json

import httpx
import pytest

from udv.client.http import ExecutionClient
from udv.errors import CollaboratorError, MutationError, SchemaLoadError
from udv.query.compiler import compile_query

MODELS_BODY = [
    {
        "name": "orders",
        "table": "orders",
        "primary_key": "id",
        "fields": [
            {"name": "id", "type": "integer"},
            {"name": "status", "type": "varchar"},
        ],
    }
]


def make_client(handler):
    return ExecutionClient("http://collaborator", transport=httpx.MockTransport(handler))


class TestFetchModels:
    @pytest.mark.asyncio
    async def test_fetch_models(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/models"
            return httpx.Response(200, json=MODELS_BODY)

        async with make_client(handler) as client:
            catalog = await client.fetch_models()
        assert catalog.list_models() == ["orders"]
        assert catalog.get("orders").searchable_fields == ["status"]

    @pytest.mark.asyncio
    async def test_http_error_is_schema_error(self):
        async with make_client(lambda request: httpx.Response(500, text="db down")) as client:
            with pytest.raises(SchemaLoadError, match="db down"):
                await client.fetch_models()

    @pytest.mark.asyncio
    async def test_connection_error_is_schema_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(SchemaLoadError):
                await client.fetch_models()

    @pytest.mark.asyncio
    async def test_non_mapping_fields_are_schema_error(self):
        body = [{"name": "x", "fields": ["id"]}]
        async with make_client(lambda request: httpx.Response(200, json=body)) as client:
            with pytest.raises(SchemaLoadError, match="field definition must be a mapping"):
                await client.fetch_models()

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        async with make_client(lambda request: httpx.Response(200, json={"models": []})) as client:
            with pytest.raises(SchemaLoadError):
                await client.fetch_models()


class TestExecuteQuery:
    @pytest.mark.asyncio
    async def test_posts_descriptor(self, orders):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"sql": "SELECT 1", "params": [], "data": [{"id": 1}], "meta": {"total": 40}},
            )

        descriptor = compile_query(orders, page=2, page_size=10)
        async with make_client(handler) as client:
            response = await client.execute_query(descriptor)

        assert seen["path"] == "/query"
        assert seen["body"] == {"model": "orders", "pagination": {"limit": 10, "offset": 10}}
        assert response.rows == [{"id": 1}]
        assert response.exact_total == 40

    @pytest.mark.asyncio
    async def test_error_body_is_returned(self):
        async with make_client(lambda request: httpx.Response(200, json={"error": "bad field"})) as client:
            response = await client.execute_query({"model": "orders"})
        assert response.error == "bad field"
        assert response.rows == []

    @pytest.mark.asyncio
    async def test_http_status_raises(self):
        async with make_client(lambda request: httpx.Response(502, text="upstream")) as client:
            with pytest.raises(CollaboratorError) as exc_info:
                await client.execute_query({"model": "orders"})
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_malformed_body_is_collaborator_error(self):
        async with make_client(lambda request: httpx.Response(200, json={"data": "oops"})) as client:
            with pytest.raises(CollaboratorError, match="Malformed response"):
                await client.execute_query({"model": "orders"})

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with make_client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(CollaboratorError, match="Invalid JSON"):
                await client.execute_query({"model": "orders"})


class TestMutations:
    @pytest.mark.asyncio
    async def test_malformed_body(self):
        async with make_client(lambda request: httpx.Response(200, json=["unexpected"])) as client:
            with pytest.raises(MutationError, match="Malformed response") as exc_info:
                await client.update_record("orders", 1, {"status": "x"})
        assert exc_info.value.operation == "update"

    @pytest.mark.asyncio
    async def test_create(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"data": {"id": 9}})

        async with make_client(handler) as client:
            result = await client.create_record("orders", {"status": "new"})
        assert seen == {"method": "POST", "path": "/models/orders/records", "body": {"data": {"status": "new"}}}
        assert result.data == {"id": 9}

    @pytest.mark.asyncio
    async def test_update(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(200, json={})

        async with make_client(handler) as client:
            await client.update_record("orders", 9, {"status": "shipped"})
        assert seen == {"method": "PATCH", "path": "/models/orders/records/9"}

    @pytest.mark.asyncio
    async def test_delete_with_empty_body(self):
        async with make_client(lambda request: httpx.Response(204)) as client:
            result = await client.delete_record("orders", 9)
        assert result.error is None

    @pytest.mark.asyncio
    async def test_rejected_mutation(self):
        async with make_client(lambda request: httpx.Response(409, text="duplicate key")) as client:
            with pytest.raises(MutationError) as exc_info:
                await client.create_record("orders", {"id": 1})
        assert exc_info.value.operation == "create"
        assert "duplicate key" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_error_in_body(self):
        async with make_client(lambda request: httpx.Response(200, json={"error": "not allowed"})) as client:
            with pytest.raises(MutationError, match="not allowed"):
                await client.delete_record("orders", 1)
