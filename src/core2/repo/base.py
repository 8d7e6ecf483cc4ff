"""Shared passthrough for per-table repositories."""

from __future__ import annotations

from typing import Any, ClassVar, Generic, Sequence, TypeVar

from core2.errors import NotFoundError
from core2.models import Pagination
from core2.storage.interface import EntityStore, OrderKey

T = TypeVar("T")


class TableRepository(Generic[T]):
    """One table, fixed ordering, one store round trip per call.

    No validation happens here; callers validate before calling.
    """

    table: ClassVar[str]
    model: ClassVar[Any]
    order: ClassVar[Sequence[OrderKey]]

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def _list(self, eq: dict[str, Any], page: Pagination | None = None,
              gte: dict[str, Any] | None = None,
              lte: dict[str, Any] | None = None) -> list[T]:
        rows = self.store.select(
            self.table, eq=eq, gte=gte, lte=lte, order=self.order, page=page
        )
        return [self.model.from_row(row) for row in rows]

    def get_by_id(self, row_id: str) -> T:
        rows = self.store.select(self.table, eq={"id": row_id})
        if not rows:
            raise NotFoundError(self.table, row_id)
        return self.model.from_row(rows[0])

    def create(self, payload: Any) -> T:
        row = self.store.insert(self.table, payload.to_payload())
        return self.model.from_row(row)

    def update(self, row_id: str, patch: Any) -> T:
        row = self.store.update(self.table, row_id, patch.to_patch())
        if row is None:
            raise NotFoundError(self.table, row_id)
        return self.model.from_row(row)

    def remove(self, row_id: str) -> T:
        row = self.store.delete(self.table, row_id)
        if row is None:
            raise NotFoundError(self.table, row_id)
        return self.model.from_row(row)

    def resolve_id(self, partial: str) -> str | None:
        return self.store.resolve_id(self.table, partial)
