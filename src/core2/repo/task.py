"""Task repository."""

from __future__ import annotations

from core2.models import Pagination, Task
from core2.repo.base import TableRepository


class TaskRepository(TableRepository[Task]):
    table = "task"
    model = Task
    order = (("order_no", True), ("created_at", True))

    def list_by_story(self, story_id: str, page: Pagination | None = None) -> list[Task]:
        return self._list({"story_id": story_id}, page)
