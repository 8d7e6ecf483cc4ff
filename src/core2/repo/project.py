"""Project repository."""

from __future__ import annotations

from core2.models import Pagination, Project
from core2.repo.base import TableRepository


class ProjectRepository(TableRepository[Project]):
    table = "core_project"
    model = Project
    order = (("created_at", False),)

    def list_by_owner(self, owner_id: str, page: Pagination | None = None) -> list[Project]:
        return self._list({"owner_user_id": owner_id}, page)
