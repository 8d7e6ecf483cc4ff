"""Epic repository."""

from __future__ import annotations

from core2.models import Epic, Pagination
from core2.repo.base import TableRepository


class EpicRepository(TableRepository[Epic]):
    table = "epic"
    model = Epic
    order = (("order_no", True), ("created_at", True))

    def list_by_project(self, project_id: str, page: Pagination | None = None) -> list[Epic]:
        return self._list({"project_id": project_id}, page)
