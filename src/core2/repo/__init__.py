"""Per-table repositories over the entity store."""

from __future__ import annotations

from dataclasses import dataclass

from core2.repo.analysis import AnalysisRepository
from core2.repo.daily_task import DailyTaskRepository
from core2.repo.domain import DomainRepository
from core2.repo.epic import EpicRepository
from core2.repo.project import ProjectRepository
from core2.repo.story import StoryRepository
from core2.repo.task import TaskRepository
from core2.repo.test_log import TestLogRepository
from core2.storage.interface import EntityStore


@dataclass
class Repositories:
    domains: DomainRepository
    projects: ProjectRepository
    analyses: AnalysisRepository
    epics: EpicRepository
    stories: StoryRepository
    tasks: TaskRepository
    daily_tasks: DailyTaskRepository
    test_logs: TestLogRepository

    @classmethod
    def for_store(cls, store: EntityStore) -> Repositories:
        return cls(
            domains=DomainRepository(store),
            projects=ProjectRepository(store),
            analyses=AnalysisRepository(store),
            epics=EpicRepository(store),
            stories=StoryRepository(store),
            tasks=TaskRepository(store),
            daily_tasks=DailyTaskRepository(store),
            test_logs=TestLogRepository(store),
        )


__all__ = [
    "AnalysisRepository", "DailyTaskRepository", "DomainRepository",
    "EpicRepository", "ProjectRepository", "Repositories", "StoryRepository",
    "TaskRepository", "TestLogRepository",
]
