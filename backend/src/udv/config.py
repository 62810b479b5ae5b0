"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from udv.query.pagination import DEFAULT_PAGE_SIZE, validate_page_size

DEFAULT_API_URL = "http://localhost:8080"


@dataclass
class ClientConfig:
    """Where the execution collaborator lives and how sessions behave."""

    api_url: str = DEFAULT_API_URL
    timeout: float = 30.0
    search_debounce: float = 0.5
    page_size: int = DEFAULT_PAGE_SIZE
    models_path: Path | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Create config from environment variables.

        UDV_API_URL, UDV_API_TIMEOUT (seconds), UDV_SEARCH_DEBOUNCE_MS,
        UDV_PAGE_SIZE, UDV_MODELS_PATH (YAML model directory, optional),
        UDV_LOG_LEVEL.
        """
        models_path = os.environ.get("UDV_MODELS_PATH")
        return cls(
            api_url=os.environ.get("UDV_API_URL", DEFAULT_API_URL).rstrip("/"),
            timeout=float(os.environ.get("UDV_API_TIMEOUT", "30")),
            search_debounce=int(os.environ.get("UDV_SEARCH_DEBOUNCE_MS", "500")) / 1000,
            page_size=validate_page_size(int(os.environ.get("UDV_PAGE_SIZE", str(DEFAULT_PAGE_SIZE)))),
            models_path=Path(models_path) if models_path else None,
            log_level=os.environ.get("UDV_LOG_LEVEL", "INFO").upper(),
        )
