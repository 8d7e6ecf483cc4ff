"""Entity rows, insert/update structs and status constants."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


# --- Enumerated values ---

class ProjectType:
    NEW = "new"
    EXISTING = "existing"

    _VALID = {NEW, EXISTING}

    @classmethod
    def is_valid(cls, t: str) -> bool:
        return t in cls._VALID


class ProjectStatus:
    INTEL = "intel"
    DESIGN = "design"
    EXECUTION = "execution"
    TEST = "test"
    PAUSED = "paused"
    ARCHIVED = "archived"

    _VALID = {INTEL, DESIGN, EXECUTION, TEST, PAUSED, ARCHIVED}

    @classmethod
    def is_valid(cls, s: str) -> bool:
        return s in cls._VALID


class StoryStatus:
    START = "start"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    TESTED = "tested"

    ALL = (START, IN_PROGRESS, DONE, TESTED)

    @classmethod
    def is_valid(cls, s: str) -> bool:
        return s in cls.ALL


class TaskStatus:
    ICEBOX = "icebox"
    IN_PROGRESS = "in_progress"
    DISCUSSION = "discussion"
    DONE = "done"

    # Board column order
    ALL = (ICEBOX, IN_PROGRESS, DISCUSSION, DONE)

    @classmethod
    def is_valid(cls, s: str) -> bool:
        return s in cls.ALL


class DailyTaskKind:
    MEETING = "meeting"
    PERSONAL = "personal"
    HEALTH = "health"
    FOCUS = "focus"
    OTHER = "other"

    ALL = (MEETING, PERSONAL, HEALTH, FOCUS, OTHER)

    @classmethod
    def is_valid(cls, k: str) -> bool:
        return k in cls.ALL


MIN_PRIORITY = 1
MAX_PRIORITY = 5


# --- Helper: RFC3339 timestamp handling ---

def parse_timestamp(s: str | None) -> datetime | None:
    """Parse RFC3339 timestamp string to datetime."""
    if not s:
        return None
    s = s.strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass
    # Handle Z suffix
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            pass
    for fmt in ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValueError(f"Cannot parse timestamp: {s}")


def format_timestamp(dt: datetime | None) -> str | None:
    """Format datetime to RFC3339 string."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # Fixed precision keeps stored values ordered as plain text
    dt = dt.astimezone(timezone.utc)
    s = dt.isoformat(timespec="microseconds")
    if s.endswith("+00:00"):
        s = s[:-6] + "Z"
    return s


def now_utc() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def _ts(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    return parse_timestamp(value)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value


# --- Update sentinel ---

class _Unset:
    """Marker for update struct fields that were not set."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class _Payload:
    """Shared serialization for insert and update structs."""

    def to_payload(self) -> dict[str, Any]:
        return {
            f.name: _serialize(getattr(self, f.name))
            for f in dataclasses.fields(self)  # type: ignore[arg-type]
        }

    def to_patch(self) -> dict[str, Any]:
        """Only the fields that were explicitly set. None clears a column."""
        return {
            f.name: _serialize(getattr(self, f.name))
            for f in dataclasses.fields(self)  # type: ignore[arg-type]
            if getattr(self, f.name) is not UNSET
        }


@dataclass
class Pagination:
    offset: int = 0
    limit: int | None = None


# --- Session ---

@dataclass
class Session:
    user_id: str
    email: str
    created_at: datetime = field(default_factory=now_utc)


# --- Domain ---

@dataclass
class Domain:
    id: str
    owner_user_id: str
    name: str
    code: str | None = None
    color: str | None = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> Domain:
        return cls(
            id=row["id"],
            owner_user_id=row["owner_user_id"],
            name=row["name"],
            code=row.get("code"),
            color=row.get("color"),
            created_at=_ts(row.get("created_at")) or now_utc(),
            updated_at=_ts(row.get("updated_at")) or now_utc(),
        )

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


@dataclass
class DomainInsert(_Payload):
    owner_user_id: str
    name: str
    code: str | None = None
    color: str | None = None

    def validate(self) -> str | None:
        if not self.name.strip():
            return "domain name is required"
        return None


@dataclass
class DomainUpdate(_Payload):
    name: str = UNSET
    code: str | None = UNSET
    color: str | None = UNSET


# --- Project ---

@dataclass
class Project:
    id: str
    owner_user_id: str
    name: str
    project_type: str = ProjectType.NEW
    status: str = ProjectStatus.INTEL
    active: bool = True
    domain_id: str | None = None
    drive_folder_url: str | None = None
    primary_doc_url: str | None = None
    pause_condition: str | None = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> Project:
        return cls(
            id=row["id"],
            owner_user_id=row["owner_user_id"],
            name=row["name"],
            project_type=row.get("project_type") or ProjectType.NEW,
            status=row.get("status") or ProjectStatus.INTEL,
            active=bool(row.get("active", True)),
            domain_id=row.get("domain_id"),
            drive_folder_url=row.get("drive_folder_url"),
            primary_doc_url=row.get("primary_doc_url"),
            pause_condition=row.get("pause_condition"),
            created_at=_ts(row.get("created_at")) or now_utc(),
            updated_at=_ts(row.get("updated_at")) or now_utc(),
        )

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


@dataclass
class ProjectInsert(_Payload):
    owner_user_id: str
    name: str
    project_type: str
    status: str = ProjectStatus.INTEL
    active: bool = True
    domain_id: str | None = None
    drive_folder_url: str | None = None
    primary_doc_url: str | None = None
    pause_condition: str | None = None

    def validate(self) -> str | None:
        if not self.name.strip():
            return "project name is required"
        if not self.project_type:
            return "project type is required"
        if not ProjectType.is_valid(self.project_type):
            return f"invalid project type: {self.project_type}"
        if not ProjectStatus.is_valid(self.status):
            return f"invalid project status: {self.status}"
        return None


@dataclass
class ProjectUpdate(_Payload):
    # project_type is fixed at creation
    name: str = UNSET
    status: str = UNSET
    active: bool = UNSET
    domain_id: str | None = UNSET
    drive_folder_url: str | None = UNSET
    primary_doc_url: str | None = UNSET
    pause_condition: str | None = UNSET

    def validate(self) -> str | None:
        if self.name is not UNSET and not (self.name or "").strip():
            return "project name is required"
        if self.status is not UNSET and not ProjectStatus.is_valid(self.status):
            return f"invalid project status: {self.status}"
        return None


# --- Analysis document ---

ANALYSIS_FIELDS = (
    "pain", "knowledge", "context", "existing_system_notes", "scope_in", "scope_out",
)


@dataclass
class AnalysisDocument:
    id: str
    project_id: str
    pain: str | None = None
    knowledge: str | None = None
    context: str | None = None
    existing_system_notes: str | None = None
    scope_in: str | None = None
    scope_out: str | None = None
    is_done: bool = False
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> AnalysisDocument:
        doc = cls(id=row["id"], project_id=row["project_id"])
        for name in ANALYSIS_FIELDS:
            setattr(doc, name, row.get(name))
        doc.is_done = bool(row.get("is_done", False))
        doc.created_at = _ts(row.get("created_at")) or now_utc()
        doc.updated_at = _ts(row.get("updated_at")) or now_utc()
        return doc

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


@dataclass
class AnalysisDocumentInsert(_Payload):
    project_id: str
    pain: str | None = None
    knowledge: str | None = None
    context: str | None = None
    existing_system_notes: str | None = None
    scope_in: str | None = None
    scope_out: str | None = None
    is_done: bool = False


@dataclass
class AnalysisDocumentUpdate(_Payload):
    pain: str | None = UNSET
    knowledge: str | None = UNSET
    context: str | None = UNSET
    existing_system_notes: str | None = UNSET
    scope_in: str | None = UNSET
    scope_out: str | None = UNSET
    is_done: bool = UNSET


# --- Epic ---

@dataclass
class Epic:
    id: str
    project_id: str
    title: str
    description: str | None = None
    order_no: int = 0
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> Epic:
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            title=row["title"],
            description=row.get("description"),
            order_no=row.get("order_no") or 0,
            created_at=_ts(row.get("created_at")) or now_utc(),
            updated_at=_ts(row.get("updated_at")) or now_utc(),
        )

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


@dataclass
class EpicInsert(_Payload):
    """order_no is left to the store unless given explicitly."""
    project_id: str
    title: str
    description: str | None = None
    order_no: int | None = None

    def validate(self) -> str | None:
        if not self.title.strip():
            return "epic title is required"
        return None


@dataclass
class EpicUpdate(_Payload):
    title: str = UNSET
    description: str | None = UNSET
    order_no: int = UNSET

    def validate(self) -> str | None:
        if self.title is not UNSET and not (self.title or "").strip():
            return "epic title is required"
        return None


# --- Story ---

@dataclass
class Story:
    id: str
    project_id: str
    title: str
    user_story: str = ""
    acceptance_criteria: str = ""
    status: str = StoryStatus.START
    priority: int = 3
    epic_id: str | None = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> Story:
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            title=row["title"],
            user_story=row.get("user_story") or "",
            acceptance_criteria=row.get("acceptance_criteria") or "",
            status=row.get("status") or StoryStatus.START,
            priority=row.get("priority") or 3,
            epic_id=row.get("epic_id"),
            created_at=_ts(row.get("created_at")) or now_utc(),
            updated_at=_ts(row.get("updated_at")) or now_utc(),
        )

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


def _priority_error(priority: Any) -> str | None:
    if isinstance(priority, bool) or not isinstance(priority, int):
        return f"priority must be an integer between {MIN_PRIORITY} and {MAX_PRIORITY}"
    if priority < MIN_PRIORITY or priority > MAX_PRIORITY:
        return f"priority must be between {MIN_PRIORITY} and {MAX_PRIORITY} (got {priority})"
    return None


@dataclass
class StoryInsert(_Payload):
    project_id: str
    title: str
    user_story: str
    acceptance_criteria: str = ""
    status: str = StoryStatus.START
    priority: int = 3
    epic_id: str | None = None

    def validate(self) -> str | None:
        if not self.title.strip() or not self.user_story.strip():
            return "title and user story are required"
        err = _priority_error(self.priority)
        if err:
            return err
        if not StoryStatus.is_valid(self.status):
            return f"invalid story status: {self.status}"
        return None


@dataclass
class StoryUpdate(_Payload):
    title: str = UNSET
    user_story: str = UNSET
    acceptance_criteria: str = UNSET
    status: str = UNSET
    priority: int = UNSET
    epic_id: str | None = UNSET

    def validate(self) -> str | None:
        if self.title is not UNSET and not (self.title or "").strip():
            return "story title is required"
        if self.user_story is not UNSET and not (self.user_story or "").strip():
            return "user story is required"
        if self.priority is not UNSET:
            err = _priority_error(self.priority)
            if err:
                return err
        if self.status is not UNSET and not StoryStatus.is_valid(self.status):
            return f"invalid story status: {self.status}"
        return None


# --- Task ---

@dataclass
class Task:
    id: str
    story_id: str
    title: str
    acceptance_note: str | None = None
    status: str = TaskStatus.ICEBOX
    start_at: datetime | None = None
    end_at: datetime | None = None
    order_no: int = 0
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> Task:
        return cls(
            id=row["id"],
            story_id=row["story_id"],
            title=row["title"],
            acceptance_note=row.get("acceptance_note"),
            status=row.get("status") or TaskStatus.ICEBOX,
            start_at=_ts(row.get("start_at")),
            end_at=_ts(row.get("end_at")),
            order_no=row.get("order_no") or 0,
            created_at=_ts(row.get("created_at")) or now_utc(),
            updated_at=_ts(row.get("updated_at")) or now_utc(),
        )

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


@dataclass
class TaskInsert(_Payload):
    story_id: str
    title: str
    end_at: datetime | None
    acceptance_note: str | None = None
    status: str = TaskStatus.ICEBOX
    start_at: datetime | None = None
    order_no: int | None = None

    def validate(self) -> str | None:
        if not self.title.strip():
            return "task title is required"
        if self.end_at is None:
            return "end date is required"
        if not TaskStatus.is_valid(self.status):
            return f"invalid task status: {self.status}"
        return None


@dataclass
class TaskUpdate(_Payload):
    title: str = UNSET
    acceptance_note: str | None = UNSET
    status: str = UNSET
    start_at: datetime | None = UNSET
    end_at: datetime = UNSET
    order_no: int = UNSET

    def validate(self) -> str | None:
        if self.title is not UNSET and not (self.title or "").strip():
            return "task title is required"
        if self.end_at is None:
            return "end date is required"
        if self.status is not UNSET and not TaskStatus.is_valid(self.status):
            return f"invalid task status: {self.status}"
        return None


# --- Daily task ---

@dataclass
class DailyTask:
    id: str
    owner_user_id: str
    title: str
    start_at: datetime
    end_at: datetime
    kind: str = DailyTaskKind.MEETING
    notes: str | None = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> DailyTask:
        return cls(
            id=row["id"],
            owner_user_id=row["owner_user_id"],
            title=row["title"],
            start_at=_ts(row.get("start_at")) or now_utc(),
            end_at=_ts(row.get("end_at")) or now_utc(),
            kind=row.get("kind") or DailyTaskKind.OTHER,
            notes=row.get("notes"),
            created_at=_ts(row.get("created_at")) or now_utc(),
            updated_at=_ts(row.get("updated_at")) or now_utc(),
        )

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


@dataclass
class DailyTaskInsert(_Payload):
    owner_user_id: str
    title: str
    start_at: datetime | None
    end_at: datetime | None
    kind: str = DailyTaskKind.MEETING
    notes: str | None = None

    def validate(self) -> str | None:
        if not self.title.strip():
            return "title is required"
        if self.start_at is None or self.end_at is None:
            return "start and end are required"
        if self.end_at <= self.start_at:
            return "end must be after start"
        if not DailyTaskKind.is_valid(self.kind):
            return f"invalid kind: {self.kind}"
        return None


@dataclass
class DailyTaskUpdate(_Payload):
    title: str = UNSET
    notes: str | None = UNSET
    start_at: datetime = UNSET
    end_at: datetime = UNSET
    kind: str = UNSET

    def validate(self) -> str | None:
        if self.title is not UNSET and not (self.title or "").strip():
            return "title is required"
        if self.start_at is None or self.end_at is None:
            return "start and end are required"
        if self.kind is not UNSET and not DailyTaskKind.is_valid(self.kind):
            return f"invalid kind: {self.kind}"
        return None


# --- Test log ---

@dataclass
class TestLog:
    __test__ = False  # keep pytest from collecting this class

    id: str
    story_id: str
    notes: str
    task_id: str | None = None
    created_at: datetime = field(default_factory=now_utc)

    @classmethod
    def from_row(cls, row: dict) -> TestLog:
        return cls(
            id=row["id"],
            story_id=row["story_id"],
            notes=row.get("notes") or "",
            task_id=row.get("task_id"),
            created_at=_ts(row.get("created_at")) or now_utc(),
        )

    def to_dict(self) -> dict:
        return {k: _serialize(v) for k, v in dataclasses.asdict(self).items()}


@dataclass
class TestLogInsert(_Payload):
    __test__ = False

    story_id: str
    notes: str
    task_id: str | None = None

