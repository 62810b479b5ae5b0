"""FastAPI application exposing the query compiler and coercion engine to a UI."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Literal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from udv.client.http import ExecutionClient
from udv.coercion.engine import build_submission, edit_values
from udv.config import ClientConfig
from udv.errors import CollaboratorError, SchemaLoadError
from udv.metadata.loader import Model, ModelCatalog
from udv.query.compiler import GroupSpec, QueryDescriptor, SortDirection, SortSpec, compile_query
from udv.query.filters import FilterList
from udv.query.pagination import DEFAULT_PAGE_SIZE, validate_page_size
from udv.query.search import SearchMode, build_search

logger = logging.getLogger(__name__)

# Global instances (initialized on startup)
config: ClientConfig | None = None
catalog: ModelCatalog | None = None
execution_client: ExecutionClient | None = None
schema_error: str | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the model catalog on startup, close the collaborator client on shutdown."""
    global config, catalog, execution_client, schema_error

    config = ClientConfig.from_env()
    execution_client = ExecutionClient.from_config(config)

    try:
        if config.models_path is not None:
            catalog = ModelCatalog.from_yaml_dir(config.models_path)
        else:
            catalog = await execution_client.fetch_models()
        schema_error = None
        logger.info("Loaded %d model(s)", len(catalog))
    except SchemaLoadError as exc:
        logger.error("Schema load failed: %s", exc)
        catalog = ModelCatalog()
        schema_error = str(exc)

    yield

    if execution_client:
        await execution_client.close()


app = FastAPI(title="UDV Query API", lifespan=lifespan)

# CORS for frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_model(name: str) -> Model:
    if schema_error:
        raise HTTPException(503, schema_error)
    if catalog is None:
        raise HTTPException(500, "Model catalog not initialized")
    model = catalog.get(name)
    if not model:
        raise HTTPException(404, f"Model '{name}' not found")
    return model


# --- Metadata Endpoints ---


@app.get("/api/models")
async def list_models() -> dict[str, Any]:
    """List all models with their field categories."""
    if schema_error:
        raise HTTPException(503, schema_error)
    if catalog is None:
        raise HTTPException(500, "Model catalog not initialized")

    models = []
    for model in catalog:
        body = model.to_dict()
        for field_body, f in zip(body["fields"], model.fields):
            field_body["category"] = f.category.value
        body["searchableFields"] = model.searchable_fields
        models.append(body)
    return {"data": models}


# --- Compile Endpoint ---


class FilterInput(BaseModel):
    field: str
    operator: str
    value: Any


class SearchInput(BaseModel):
    mode: Literal["global", "column"] = "global"
    term: str = ""
    column: str | None = None


class SortInput(BaseModel):
    field: str
    direction: Literal["asc", "desc"] = "asc"


class CompileRequest(BaseModel):
    model: str
    filters: list[FilterInput] = []
    search: SearchInput | None = None
    sort: SortInput | None = None
    groupBy: str | None = None
    page: int = 1
    pageSize: int = DEFAULT_PAGE_SIZE
    fields: list[str] | None = None


def _compile(request: CompileRequest) -> QueryDescriptor:
    model = _get_model(request.model)

    try:
        page_size = validate_page_size(request.pageSize)
        filters = FilterList()
        for f in request.filters:
            filters = filters.add_leaf(f.field, f.operator, f.value)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if request.page < 1:
        raise HTTPException(400, "page must be at least 1")

    search = None
    if request.search is not None:
        search = build_search(
            request.search.term,
            model.searchable_fields,
            SearchMode(request.search.mode),
            request.search.column,
        )

    sort = None
    if request.sort is not None:
        sort = SortSpec(field=request.sort.field, direction=SortDirection(request.sort.direction))

    return compile_query(
        model,
        filter_leaves=filters.leaves,
        search=search,
        sort=sort,
        group=GroupSpec(field=request.groupBy) if request.groupBy else None,
        page=request.page,
        page_size=page_size,
        fields=request.fields,
    )


@app.post("/api/compile")
async def compile_descriptor(request: CompileRequest) -> dict[str, Any]:
    """Compile UI query state into a descriptor without running it."""
    return {"data": _compile(request).to_dict()}


@app.post("/api/query")
async def run_query(request: CompileRequest) -> dict[str, Any]:
    """Compile and forward to the execution collaborator."""
    descriptor = _compile(request)
    if not execution_client:
        raise HTTPException(500, "Execution client not initialized")

    try:
        response = await execution_client.execute_query(descriptor)
    except CollaboratorError as e:
        raise HTTPException(502, str(e))
    if response.error:
        raise HTTPException(502, response.error)

    return {
        "data": response.rows,
        "descriptor": descriptor.to_dict(),
        "sql": response.sql,
        "total": response.exact_total,
    }


# --- Form Endpoints ---


class SubmissionRequest(BaseModel):
    mode: Literal["create", "update"]
    values: dict[str, Any]
    original: dict[str, Any] | None = None


@app.post("/api/submission/{model_name}")
async def prepare_submission(model_name: str, request: SubmissionRequest) -> dict[str, Any]:
    """Filter and coerce form values into the record to submit."""
    model = _get_model(model_name)
    submission = build_submission(request.values, model, request.mode, original=request.original)
    if request.mode == "update" and submission.is_empty:
        raise HTTPException(422, "No changes to save")
    return {"data": submission.data, "coercionFailures": submission.coercion_failures}


class EditFormRequest(BaseModel):
    record: dict[str, Any]


@app.post("/api/edit-form/{model_name}")
async def prepare_edit_form(model_name: str, request: EditFormRequest) -> dict[str, Any]:
    """Format a stored record for the edit form."""
    model = _get_model(model_name)
    return {"data": edit_values(request.record, model)}
