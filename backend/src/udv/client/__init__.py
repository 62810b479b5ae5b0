"""Client for the execution collaborator."""

from udv.client.http import ExecutionClient, MutationResponse, QueryResponse

__all__ = ["ExecutionClient", "MutationResponse", "QueryResponse"]
