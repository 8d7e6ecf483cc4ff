"""Domain repository."""

from __future__ import annotations

from core2.models import Domain, Pagination
from core2.repo.base import TableRepository


class DomainRepository(TableRepository[Domain]):
    table = "core_domain"
    model = Domain
    order = (("created_at", False),)

    def list_by_owner(self, owner_id: str, page: Pagination | None = None) -> list[Domain]:
        return self._list({"owner_user_id": owner_id}, page)
