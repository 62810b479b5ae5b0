"""HTTP facade CLI command."""

import os

import click


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
@click.pass_obj
def serve(config, host: str, port: int, reload: bool):
    """Start the UDV query API."""
    import uvicorn

    # The app reads its config from the environment at startup.
    os.environ["UDV_API_URL"] = config.api_url
    if config.models_path is not None:
        os.environ["UDV_MODELS_PATH"] = str(config.models_path)

    uvicorn.run(
        "udv.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=config.log_level.lower(),
    )
