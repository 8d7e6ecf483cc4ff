"""SQLite schema for the entity store."""

SCHEMA = """
-- Auth
CREATE TABLE IF NOT EXISTS auth_users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    password_salt TEXT NOT NULL,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS auth_sessions (
    token TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    revoked_at DATETIME,
    FOREIGN KEY (user_id) REFERENCES auth_users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS auth_password_resets (
    token TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    requested_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Domains
CREATE TABLE IF NOT EXISTS core_domain (
    id TEXT PRIMARY KEY,
    owner_user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    code TEXT,
    color TEXT,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_core_domain_owner ON core_domain(owner_user_id);

-- Projects
CREATE TABLE IF NOT EXISTS core_project (
    id TEXT PRIMARY KEY,
    owner_user_id TEXT NOT NULL,
    domain_id TEXT,
    name TEXT NOT NULL,
    project_type TEXT NOT NULL CHECK(project_type IN ('new', 'existing')),
    status TEXT NOT NULL DEFAULT 'intel',
    active INTEGER NOT NULL DEFAULT 1,
    drive_folder_url TEXT,
    primary_doc_url TEXT,
    pause_condition TEXT,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_core_project_owner ON core_project(owner_user_id);
CREATE INDEX IF NOT EXISTS idx_core_project_domain ON core_project(domain_id);

-- Analysis documents (one per project)
CREATE TABLE IF NOT EXISTS analysis_document (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL,
    pain TEXT,
    knowledge TEXT,
    context TEXT,
    existing_system_notes TEXT,
    scope_in TEXT,
    scope_out TEXT,
    is_done INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_analysis_document_project ON analysis_document(project_id);

-- Epics
CREATE TABLE IF NOT EXISTS epic (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    order_no INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_epic_project ON epic(project_id);

-- Stories
CREATE TABLE IF NOT EXISTS story (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL,
    epic_id TEXT,
    title TEXT NOT NULL,
    user_story TEXT NOT NULL DEFAULT '',
    acceptance_criteria TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'start',
    priority INTEGER NOT NULL DEFAULT 3 CHECK(priority >= 1 AND priority <= 5),
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_story_project ON story(project_id);
CREATE INDEX IF NOT EXISTS idx_story_epic ON story(epic_id);

-- Tasks
CREATE TABLE IF NOT EXISTS task (
    id TEXT PRIMARY KEY,
    story_id TEXT NOT NULL,
    title TEXT NOT NULL,
    acceptance_note TEXT,
    status TEXT NOT NULL DEFAULT 'icebox',
    start_at DATETIME,
    end_at DATETIME,
    order_no INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_task_story ON task(story_id);

-- Daily calendar entries
CREATE TABLE IF NOT EXISTS daily_task (
    id TEXT PRIMARY KEY,
    owner_user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    notes TEXT,
    start_at DATETIME NOT NULL,
    end_at DATETIME NOT NULL,
    kind TEXT NOT NULL DEFAULT 'meeting',
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    CHECK (end_at > start_at)
);

CREATE INDEX IF NOT EXISTS idx_daily_task_owner_start ON daily_task(owner_user_id, start_at);

-- Test logs
CREATE TABLE IF NOT EXISTS test_log (
    id TEXT PRIMARY KEY,
    story_id TEXT NOT NULL,
    task_id TEXT,
    notes TEXT NOT NULL,
    created_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_test_log_story ON test_log(story_id);

-- Store metadata
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

INSERT OR IGNORE INTO metadata (key, value) VALUES ('schema_version', '1');
"""

# Columns per data table. Boolean columns come back from SQLite as 0/1.
TABLES: dict[str, tuple[str, ...]] = {
    "core_domain": (
        "id", "owner_user_id", "name", "code", "color", "created_at", "updated_at",
    ),
    "core_project": (
        "id", "owner_user_id", "domain_id", "name", "project_type", "status",
        "active", "drive_folder_url", "primary_doc_url", "pause_condition",
        "created_at", "updated_at",
    ),
    "analysis_document": (
        "id", "project_id", "pain", "knowledge", "context",
        "existing_system_notes", "scope_in", "scope_out", "is_done",
        "created_at", "updated_at",
    ),
    "epic": (
        "id", "project_id", "title", "description", "order_no",
        "created_at", "updated_at",
    ),
    "story": (
        "id", "project_id", "epic_id", "title", "user_story",
        "acceptance_criteria", "status", "priority", "created_at", "updated_at",
    ),
    "task": (
        "id", "story_id", "title", "acceptance_note", "status", "start_at",
        "end_at", "order_no", "created_at", "updated_at",
    ),
    "daily_task": (
        "id", "owner_user_id", "title", "notes", "start_at", "end_at", "kind",
        "created_at", "updated_at",
    ),
    "test_log": (
        "id", "story_id", "task_id", "notes", "created_at",
    ),
}

BOOLEAN_COLUMNS: dict[str, tuple[str, ...]] = {
    "core_project": ("active",),
    "analysis_document": ("is_done",),
}

# Tables whose order_no is assigned by the store as max+1 within the parent.
ORDERED_TABLES: dict[str, str] = {
    "epic": "project_id",
    "task": "story_id",
}
