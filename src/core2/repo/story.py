"""Story repository."""

from __future__ import annotations

from core2.models import Pagination, Story
from core2.repo.base import TableRepository


class StoryRepository(TableRepository[Story]):
    table = "story"
    model = Story
    order = (("priority", False), ("created_at", False))

    def list_by_project(self, project_id: str, page: Pagination | None = None) -> list[Story]:
        return self._list({"project_id": project_id}, page)

    def list_by_epic(self, epic_id: str, page: Pagination | None = None) -> list[Story]:
        return self._list({"epic_id": epic_id}, page)
