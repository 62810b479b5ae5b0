"""Per-model browsing session: query state and the collaborator loop."""

from udv.session.browser import BrowsingSession, SessionStatus
from udv.session.state import QueryState

__all__ = ["BrowsingSession", "QueryState", "SessionStatus"]
