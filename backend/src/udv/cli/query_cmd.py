"""Model listing, descriptor compilation and query commands."""

import asyncio
import json

import click

from udv.client.http import ExecutionClient
from udv.config import ClientConfig
from udv.errors import CollaboratorError, QueryExecutionError, SchemaLoadError
from udv.metadata.loader import Model, ModelCatalog
from udv.query.compiler import GroupSpec, QueryDescriptor, SortDirection, SortSpec, compile_query
from udv.query.filters import FilterList
from udv.query.pagination import PAGE_SIZE_OPTIONS
from udv.query.search import SearchMode, build_search


async def _load_catalog(config: ClientConfig) -> ModelCatalog:
    if config.models_path is not None:
        return ModelCatalog.from_yaml_dir(config.models_path)
    async with ExecutionClient.from_config(config) as client:
        return await client.fetch_models()


def _catalog_or_exit(config: ClientConfig) -> ModelCatalog:
    try:
        return asyncio.run(_load_catalog(config))
    except SchemaLoadError as exc:
        click.echo(click.style(f"Error: {exc}", fg="red"), err=True)
        raise SystemExit(1)


def _model_or_exit(catalog: ModelCatalog, name: str) -> Model:
    model = catalog.get(name)
    if model is None:
        click.echo(f"Error: Unknown model '{name}'", err=True)
        raise SystemExit(1)
    return model


def _parse_filter(spec: str) -> tuple[str, str, str]:
    parts = spec.split(":", 2)
    if len(parts) != 3 or not all(parts):
        raise click.BadParameter(f"Expected field:operator:value, got '{spec}'", param_hint="--filter")
    return parts[0], parts[1], parts[2]


def _parse_sort(spec: str) -> SortSpec:
    name, _, direction = spec.partition(":")
    try:
        return SortSpec(field=name, direction=SortDirection(direction or "asc"))
    except ValueError:
        raise click.BadParameter(f"Sort direction must be asc or desc, got '{direction}'", param_hint="--sort")


def _build_descriptor(model: Model, options: dict) -> QueryDescriptor:
    filters = FilterList()
    for spec in options["filters"]:
        name, operator, value = _parse_filter(spec)
        try:
            filters = filters.add_leaf(name, operator, value)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--filter")

    search = None
    if options["search"]:
        mode = SearchMode.COLUMN if options["column"] else SearchMode.GLOBAL
        search = build_search(options["search"], model.searchable_fields, mode, options["column"])

    return compile_query(
        model,
        filter_leaves=filters.leaves,
        search=search,
        sort=_parse_sort(options["sort"]) if options["sort"] else None,
        group=GroupSpec(field=options["group_by"]) if options["group_by"] else None,
        page=options["page"],
        page_size=options["page_size"],
        fields=list(options["fields"]) or None,
    )


def query_options(fn):
    """Options shared by ``compile`` and ``query``."""
    decorators = [
        click.option("--model", "-m", "model_name", required=True, help="Model to query."),
        click.option(
            "--filter",
            "-f",
            "filters",
            multiple=True,
            help="Filter as field:operator:value (operators: equals, contains, "
            "startswith, endswith, gt, lt, gte, lte). Repeatable.",
        ),
        click.option("--search", "-s", default=None, help="Search term."),
        click.option("--column", default=None, help="Search only this column."),
        click.option("--sort", default=None, help="Sort as field or field:desc."),
        click.option("--group-by", default=None, help="Group by this field."),
        click.option("--page", default=1, type=click.IntRange(min=1), show_default=True),
        click.option(
            "--page-size",
            default="25",
            type=click.Choice([str(s) for s in PAGE_SIZE_OPTIONS]),
            callback=lambda ctx, param, value: int(value),
            show_default=True,
        ),
        click.option("--field", "fields", multiple=True, help="Project only these fields. Repeatable."),
    ]
    for decorator in reversed(decorators):
        fn = decorator(fn)
    return fn


@click.command()
@click.pass_obj
def models(config: ClientConfig):
    """List models and the category of each field."""
    catalog = _catalog_or_exit(config)
    if not len(catalog):
        click.echo("No models defined.")
        return

    for model in catalog:
        click.echo(click.style(model.name, bold=True) + f"  (table: {model.table}, pk: {model.primary_key})")
        for f in model.fields:
            marker = "  [search]" if f.name in model.searchable_fields else ""
            click.echo(f"  {f.name:<24} {f.type:<16} {f.category.value}{marker}")


@click.command("compile")
@query_options
@click.pass_obj
def compile_cmd(config: ClientConfig, model_name: str, **options):
    """Print the query descriptor for the given options."""
    catalog = _catalog_or_exit(config)
    model = _model_or_exit(catalog, model_name)
    descriptor = _build_descriptor(model, options)
    click.echo(json.dumps(descriptor.to_dict(), indent=2))


@click.command()
@query_options
@click.pass_obj
def query(config: ClientConfig, model_name: str, **options):
    """Compile and execute a query against the collaborator."""
    catalog = _catalog_or_exit(config)
    model = _model_or_exit(catalog, model_name)
    descriptor = _build_descriptor(model, options)

    async def _run():
        async with ExecutionClient.from_config(config) as client:
            response = await client.execute_query(descriptor)
            return response.raise_for_error()

    try:
        response = asyncio.run(_run())
    except (CollaboratorError, QueryExecutionError) as exc:
        click.echo(click.style(f"Query failed: {exc}", fg="red"), err=True)
        raise SystemExit(1)

    if response.sql:
        click.echo(click.style(response.sql, fg="cyan"))
    for row in response.rows:
        click.echo(json.dumps(row, default=str))
    total = response.exact_total
    click.echo(f"{len(response.rows)} row(s)" + (f" of {total}" if total is not None else ""))
