"""HTTP facade for UI collaborators."""

from udv.api.app import app

__all__ = ["app"]
