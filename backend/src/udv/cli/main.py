"""UDV CLI entry point."""

import logging
from pathlib import Path

import click

from udv.config import ClientConfig


@click.group()
@click.option("--api-url", default=None, help="Execution collaborator base URL.")
@click.option(
    "--models-path",
    default=None,
    type=click.Path(exists=True, file_okay=False),
    help="Load model definitions from a YAML directory instead of the collaborator.",
)
@click.pass_context
def cli(ctx: click.Context, api_url: str | None, models_path: str | None):
    """UDV: universal data viewer query tools."""
    config = ClientConfig.from_env()
    if api_url:
        config.api_url = api_url.rstrip("/")
    if models_path:
        config.models_path = Path(models_path)
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = config


# Register subcommands
from udv.cli.query_cmd import compile_cmd, models, query  # noqa: E402
from udv.cli.serve_cmd import serve  # noqa: E402

cli.add_command(models)
cli.add_command(compile_cmd)
cli.add_command(query)
cli.add_command(serve)
