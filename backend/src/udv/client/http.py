"""HTTP client for the execution collaborator."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from udv.config import ClientConfig
from udv.errors import CollaboratorError, MutationError, QueryExecutionError, SchemaLoadError
from udv.metadata.loader import ModelCatalog
from udv.query.compiler import QueryDescriptor

logger = logging.getLogger(__name__)


class ResultMeta(BaseModel):
    total: int | None = None
    limit: int | None = None
    offset: int | None = None


class QueryResponse(BaseModel):
    """Body returned by ``POST /query``."""

    sql: str | None = None
    params: list[Any] | None = None
    data: list[dict[str, Any]] | None = None
    error: str | None = None
    total: int | None = None
    meta: ResultMeta | None = None

    @property
    def rows(self) -> list[dict[str, Any]]:
        return self.data or []

    @property
    def exact_total(self) -> int | None:
        """The authoritative row count, when the collaborator sent one."""
        if self.total is not None:
            return self.total
        if self.meta is not None:
            return self.meta.total
        return None

    def raise_for_error(self) -> QueryResponse:
        if self.error:
            raise QueryExecutionError(self.error)
        return self


class MutationResponse(BaseModel):
    error: str | None = None
    data: dict[str, Any] | None = None


class ExecutionClient:
    """Async client for ``/models``, ``/query`` and record mutations."""

    def __init__(
        self,
        api_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, config: ClientConfig) -> ExecutionClient:
        return cls(config.api_url, timeout=config.timeout)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise CollaboratorError(f"Request to {path} failed: {exc}") from exc

        if response.is_error:
            message = response.text.strip() or response.reason_phrase
            logger.error("%s %s returned %d: %s", method, path, response.status_code, message)
            raise CollaboratorError(message, status_code=response.status_code)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise CollaboratorError(f"Invalid JSON from {path}", status_code=response.status_code) from exc

    async def fetch_models(self) -> ModelCatalog:
        """Load the model catalog. Any failure is a SchemaLoadError."""
        try:
            payload = await self._request("GET", "/models")
        except CollaboratorError as exc:
            raise SchemaLoadError(f"Failed to fetch models: {exc}") from exc
        return ModelCatalog.from_wire(payload)

    async def execute_query(self, descriptor: QueryDescriptor | dict[str, Any]) -> QueryResponse:
        """Send a descriptor. An ``error`` in the body is left for the caller."""
        body = descriptor.to_dict() if isinstance(descriptor, QueryDescriptor) else descriptor
        payload = await self._request("POST", "/query", json=body)
        try:
            return QueryResponse.model_validate(payload)
        except ValidationError as exc:
            logger.error("Malformed /query response: %s", exc)
            raise CollaboratorError(f"Malformed response from /query: {exc}") from exc

    async def _mutate(self, operation: str, method: str, path: str, json: Any = None) -> MutationResponse:
        try:
            payload = await self._request(method, path, json=json)
        except CollaboratorError as exc:
            raise MutationError(str(exc), operation=operation) from exc
        try:
            result = MutationResponse.model_validate(payload or {})
        except ValidationError as exc:
            raise MutationError(f"Malformed response from {path}: {exc}", operation=operation) from exc
        if result.error:
            raise MutationError(result.error, operation=operation)
        return result

    async def create_record(self, model: str, data: dict[str, Any]) -> MutationResponse:
        return await self._mutate("create", "POST", f"/models/{model}/records", json={"data": data})

    async def update_record(self, model: str, record_id: Any, diff: dict[str, Any]) -> MutationResponse:
        return await self._mutate(
            "update", "PATCH", f"/models/{model}/records/{record_id}", json={"data": diff}
        )

    async def delete_record(self, model: str, record_id: Any) -> MutationResponse:
        return await self._mutate("delete", "DELETE", f"/models/{model}/records/{record_id}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> ExecutionClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
