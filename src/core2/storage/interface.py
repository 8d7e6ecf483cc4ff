"""Entity store interface (abstract base) for core2."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

from core2.models import Pagination, Session

# (column, ascending)
OrderKey = tuple[str, bool]
Row = dict[str, Any]
AuthListener = Callable[[str, "Session | None"], None]


class AuthEvent:
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class EntityStore(ABC):
    """Query/command interface of the backing store.

    The store owns identifiers, timestamps, credentials and sessions.
    """

    @abstractmethod
    def path(self) -> str:
        """Return the store location."""

    @abstractmethod
    def close(self) -> None:
        """Close the store connection."""

    # --- Rows ---

    @abstractmethod
    def select(self, table: str, eq: dict[str, Any] | None = None,
               gte: dict[str, Any] | None = None,
               lte: dict[str, Any] | None = None,
               order: Sequence[OrderKey] = (),
               page: Pagination | None = None) -> list[Row]:
        """Select rows matching equality/range predicates.

        A None value in eq matches NULL.
        """

    @abstractmethod
    def insert(self, table: str, values: Row) -> Row:
        """Insert a row and return it with id and timestamps assigned."""

    @abstractmethod
    def update(self, table: str, row_id: str, patch: Row) -> Row | None:
        """Patch a row by id. Returns the updated row, or None if absent."""

    @abstractmethod
    def delete(self, table: str, row_id: str) -> Row | None:
        """Delete a row by id. Returns the deleted row, or None if absent."""

    @abstractmethod
    def resolve_id(self, table: str, partial: str) -> str | None:
        """Resolve a unique id prefix to a full id."""

    # --- Session API ---

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Session:
        """Register a user."""

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> Session:
        """Start a session for the user."""

    @abstractmethod
    def reset_password_for_email(self, email: str) -> None:
        """Request a password-reset message for the address."""

    @abstractmethod
    def sign_out(self) -> None:
        """End the current session."""

    @abstractmethod
    def get_session(self) -> Session | None:
        """Return the current session, if any."""

    @abstractmethod
    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a session-change listener. Returns an unsubscribe callable."""
