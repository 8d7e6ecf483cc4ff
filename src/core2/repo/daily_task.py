"""Daily calendar entry repository."""

from __future__ import annotations

from datetime import datetime

from core2.models import DailyTask, Pagination, format_timestamp
from core2.repo.base import TableRepository


class DailyTaskRepository(TableRepository[DailyTask]):
    table = "daily_task"
    model = DailyTask
    order = (("start_at", True), ("created_at", True))

    def list_by_owner(self, owner_id: str, page: Pagination | None = None) -> list[DailyTask]:
        return self._list({"owner_user_id": owner_id}, page)

    def list_by_owner_and_range(self, owner_id: str, start: datetime, end: datetime,
                                page: Pagination | None = None) -> list[DailyTask]:
        """Entries whose start falls within [start, end]."""
        return self._list(
            {"owner_user_id": owner_id}, page,
            gte={"start_at": format_timestamp(start)},
            lte={"start_at": format_timestamp(end)},
        )
