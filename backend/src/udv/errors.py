"""Error taxonomy for the query core and its collaborators."""

from __future__ import annotations


class UDVError(Exception):
    """Base class for all errors raised by udv."""


class SchemaLoadError(UDVError):
    """Model metadata could not be loaded. Fatal to the current view."""


class CollaboratorError(UDVError):
    """The execution collaborator answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class QueryExecutionError(UDVError):
    """The collaborator reported an error for a query. Recoverable."""


class MutationError(UDVError):
    """A create, update or delete was rejected. Recoverable."""

    def __init__(self, message: str, operation: str):
        super().__init__(message)
        self.operation = operation


class NoChangesError(UDVError):
    """An update was submitted with an empty diff; nothing is sent."""

    def __init__(self, message: str = "No changes to save"):
        super().__init__(message)
