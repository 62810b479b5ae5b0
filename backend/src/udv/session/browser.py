"""Browsing session: drives the execution collaborator from query state.

One session owns one ``QueryState``. Each state change issues exactly one
query; requests carry a sequence number and only the response to the most
recently issued request is applied. Recoverable failures are caught here
and kept on ``status`` instead of propagating.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from udv.client.http import ExecutionClient
from udv.coercion.engine import SubmissionMode, build_submission, edit_values
from udv.config import ClientConfig
from udv.errors import (
    CollaboratorError,
    MutationError,
    NoChangesError,
    QueryExecutionError,
    SchemaLoadError,
)
from udv.metadata.loader import Model, ModelCatalog
from udv.query.search import SearchMode
from udv.session.state import QueryState

logger = logging.getLogger(__name__)


@dataclass
class SessionStatus:
    """What the display layer needs besides the state itself."""

    loading: bool = False
    schema_error: str | None = None
    query_error: str | None = None
    mutation_error: str | None = None
    message: str | None = None
    rows: list[dict[str, Any]] = field(default_factory=list)
    sql: str | None = None
    coercion_failures: list[str] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return self.schema_error is not None


class BrowsingSession:
    def __init__(self, client: ExecutionClient, config: ClientConfig | None = None):
        self.client = client
        self.config = config or ClientConfig()
        self.catalog = ModelCatalog()
        self.state = QueryState.initial(self.config.page_size)
        self.status = SessionStatus()
        self.search_input = ""
        self._sequence = itertools.count(1)
        self._latest_issued = 0
        self._search_task: asyncio.Task | None = None

    # --- schema ---

    async def load_models(self) -> bool:
        """Load the catalog once. Failure leaves the session blocked."""
        self.status.loading = True
        try:
            if self.config.models_path is not None:
                self.catalog = ModelCatalog.from_yaml_dir(self.config.models_path)
            else:
                self.catalog = await self.client.fetch_models()
        except SchemaLoadError as exc:
            logger.error("Schema load failed: %s", exc)
            self.status.schema_error = str(exc)
            return False
        finally:
            self.status.loading = False
        self.status.schema_error = None
        return True

    @property
    def model(self) -> Model | None:
        return self.state.model

    # --- state transitions ---

    async def dispatch(self, transition: Callable[[QueryState], QueryState]) -> bool:
        """Apply a transition and run the resulting query."""
        new_state = transition(self.state)
        if new_state == self.state:
            return False
        self.state = new_state
        return await self.refresh()

    async def select_model(self, name: str) -> bool:
        model = self.catalog.get(name)
        if model is None:
            raise KeyError(f"Unknown model: {name}")
        self._cancel_pending_search()
        self.search_input = ""
        self.status.query_error = None
        return await self.dispatch(lambda s: s.select_model(model))

    async def add_filter(self, field_name: str, operator: str, value: Any) -> bool:
        return await self.dispatch(lambda s: s.add_filter(field_name, operator, value))

    async def remove_filter(self, filter_id: str) -> bool:
        return await self.dispatch(lambda s: s.remove_filter(filter_id))

    async def click_sort(self, column: str) -> bool:
        return await self.dispatch(lambda s: s.click_sort(column))

    async def set_group_by(self, field_name: str | None) -> bool:
        return await self.dispatch(lambda s: s.set_group_by(field_name))

    async def set_page_size(self, size: int) -> bool:
        return await self.dispatch(lambda s: s.set_page_size(size))

    async def go_to_page(self, page: int) -> bool:
        return await self.dispatch(lambda s: s.go_to_page(page))

    # --- search ---

    async def set_search_mode(self, mode: SearchMode | str) -> bool:
        self._cancel_pending_search()
        self.search_input = ""
        return await self.dispatch(lambda s: s.set_search_mode(mode))

    async def set_search_column(self, column: str | None) -> bool:
        self._cancel_pending_search()
        self.search_input = ""
        return await self.dispatch(lambda s: s.set_search_column(column))

    def set_search_input(self, term: str) -> None:
        """Record a keystroke; the term is applied after the debounce delay."""
        self.search_input = term
        self._cancel_pending_search()
        self._search_task = asyncio.get_running_loop().create_task(self._debounced_search(term))

    async def flush_search(self) -> bool:
        """Apply the typed term now instead of waiting for the debounce."""
        self._cancel_pending_search()
        return await self.dispatch(lambda s: s.set_search_term(self.search_input))

    async def _debounced_search(self, term: str) -> None:
        await asyncio.sleep(self.config.search_debounce)
        self._search_task = None
        if term.strip() == self.state.search.term.strip():
            return
        await self.dispatch(lambda s: s.set_search_term(term))

    def _cancel_pending_search(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None

    # --- query execution ---

    async def refresh(self) -> bool:
        """Run the query for the current state.

        Returns True when the response was applied, False when there was
        nothing to run or a newer request superseded this one.
        """
        descriptor = self.state.compile()
        if descriptor is None:
            return False

        seq = next(self._sequence)
        self._latest_issued = seq
        self.status.loading = True

        error: str | None = None
        response = None
        try:
            response = await self.client.execute_query(descriptor)
            response.raise_for_error()
        except (CollaboratorError, QueryExecutionError) as exc:
            error = str(exc)

        if seq != self._latest_issued:
            logger.debug("Dropping stale response #%d (latest is #%d)", seq, self._latest_issued)
            return False

        self.status.loading = False
        if error is not None:
            logger.warning("Query failed for model '%s': %s", descriptor.model, error)
            self.status.query_error = error
            self.status.rows = []
            return True

        self.status.query_error = None
        self.status.rows = response.rows
        self.status.sql = response.sql
        self.state = self.state.apply_result(len(response.rows), response.exact_total)
        return True

    # --- mutations ---

    def edit_form(self, record: dict[str, Any]) -> dict[str, Any]:
        """Values to pre-fill an edit form with."""
        if self.model is None:
            return {}
        return edit_values(record, self.model)

    def _record_id(self, record: dict[str, Any]) -> Any:
        return record.get(self.model.primary_key, record.get("id"))

    async def create(self, values: dict[str, Any]) -> bool:
        return await self._submit(SubmissionMode.CREATE, values)

    async def update(self, record: dict[str, Any], values: dict[str, Any]) -> bool:
        return await self._submit(SubmissionMode.UPDATE, values, original=record)

    async def _submit(
        self,
        mode: SubmissionMode,
        values: dict[str, Any],
        original: dict[str, Any] | None = None,
    ) -> bool:
        if self.model is None:
            raise RuntimeError("No model selected")
        self.status.mutation_error = None
        self.status.message = None

        submission = build_submission(values, self.model, mode, original=original)
        self.status.coercion_failures = list(submission.coercion_failures)
        try:
            if mode is SubmissionMode.CREATE:
                await self.client.create_record(self.model.name, submission.data)
            else:
                if submission.is_empty:
                    raise NoChangesError()
                await self.client.update_record(
                    self.model.name, self._record_id(original or {}), submission.data
                )
        except (NoChangesError, MutationError) as exc:
            self.status.mutation_error = str(exc)
            return False

        verb = "created" if mode is SubmissionMode.CREATE else "updated"
        self.status.message = f"Record {verb} successfully!"
        await self.refresh()
        return True

    async def delete(self, record: dict[str, Any]) -> bool:
        if self.model is None:
            raise RuntimeError("No model selected")
        self.status.mutation_error = None
        self.status.message = None
        try:
            await self.client.delete_record(self.model.name, self._record_id(record))
        except MutationError as exc:
            self.status.mutation_error = str(exc)
            return False
        self.status.message = "Record deleted successfully!"
        await self.refresh()
        return True

    async def close(self) -> None:
        self._cancel_pending_search()
        await self.client.close()
