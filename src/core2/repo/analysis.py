"""Analysis document repository."""

from __future__ import annotations

from core2.models import AnalysisDocument, Pagination
from core2.repo.base import TableRepository


class AnalysisRepository(TableRepository[AnalysisDocument]):
    table = "analysis_document"
    model = AnalysisDocument
    order = (("created_at", False),)

    def list_by_project(self, project_id: str,
                        page: Pagination | None = None) -> list[AnalysisDocument]:
        return self._list({"project_id": project_id}, page)
