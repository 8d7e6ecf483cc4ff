"""Error types surfaced to the user."""

from __future__ import annotations


class Core2Error(Exception):
    """Base class for all core2 errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreError(Core2Error):
    """A call to the entity store failed."""


class AuthError(StoreError):
    """The store's session API rejected a request."""


class NotFoundError(StoreError):
    """A requested row does not exist."""

    def __init__(self, table: str, row_id: str) -> None:
        super().__init__(f"{table} not found: {row_id}")
        self.table = table
        self.row_id = row_id


class ValidationError(Core2Error):
    """Input rejected before reaching the store."""


class CascadeDeleteError(StoreError):
    """Epic cascade stopped part way.

    Rows removed before the failure stay removed.
    """
