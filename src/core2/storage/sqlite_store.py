"""SQLite implementation of the entity store."""

from __future__ import annotations

import hashlib
import logging
import secrets
import sqlite3
import threading
import uuid
from typing import Any, Callable, Sequence

from core2.errors import AuthError, StoreError
from core2.models import Pagination, Session, format_timestamp, now_utc, parse_timestamp
from core2.storage.interface import AuthEvent, AuthListener, EntityStore, OrderKey, Row
from core2.storage.schema import BOOLEAN_COLUMNS, ORDERED_TABLES, SCHEMA, TABLES

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
_PBKDF2_ITERATIONS = 100_000


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt), _PBKDF2_ITERATIONS
    ).hex()


class SQLiteEntityStore(EntityStore):
    """SQLite-based entity store.

    One connection shared behind a lock, so list calls may be issued from
    worker threads.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._lock = threading.RLock()
        self._listeners: list[AuthListener] = []
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open store at {db_path}: {e}") from e
        logger.debug("opened store %s", db_path)

    def path(self) -> str:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # --- Helpers ---

    def _columns(self, table: str) -> tuple[str, ...]:
        cols = TABLES.get(table)
        if cols is None:
            raise StoreError(f'relation "{table}" does not exist')
        return cols

    def _check_columns(self, table: str, names: Any) -> None:
        cols = self._columns(table)
        for name in names:
            if name not in cols:
                raise StoreError(f'column {table}.{name} does not exist')

    def _row_to_dict(self, table: str, row: sqlite3.Row) -> Row:
        d = {key: row[key] for key in row.keys()}
        for col in BOOLEAN_COLUMNS.get(table, ()):
            if col in d and d[col] is not None:
                d[col] = bool(d[col])
        return d

    def _to_db(self, value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        return value

    def _fetch(self, table: str, row_id: str) -> Row | None:
        row = self._conn.execute(
            f"SELECT * FROM {table} WHERE id = ?", (row_id,)
        ).fetchone()
        return self._row_to_dict(table, row) if row is not None else None

    def run_in_transaction(self, fn: Callable[[sqlite3.Connection], Any]) -> Any:
        with self._lock:
            try:
                result = fn(self._conn)
                self._conn.commit()
                return result
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(str(e)) from e
            except Exception:
                self._conn.rollback()
                raise

    # --- Rows ---

    def select(self, table: str, eq: dict[str, Any] | None = None,
               gte: dict[str, Any] | None = None,
               lte: dict[str, Any] | None = None,
               order: Sequence[OrderKey] = (),
               page: Pagination | None = None) -> list[Row]:
        eq = eq or {}
        gte = gte or {}
        lte = lte or {}
        self._check_columns(table, list(eq) + list(gte) + list(lte) + [c for c, _ in order])

        clauses = ["1=1"]
        params: list[Any] = []
        for col, value in eq.items():
            if value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} = ?")
                params.append(self._to_db(value))
        for col, value in gte.items():
            clauses.append(f"{col} >= ?")
            params.append(self._to_db(value))
        for col, value in lte.items():
            clauses.append(f"{col} <= ?")
            params.append(self._to_db(value))

        sql = f"SELECT * FROM {table} WHERE {' AND '.join(clauses)}"
        terms = [f"{col} {'ASC' if asc else 'DESC'}" for col, asc in order]
        # Insertion order breaks ties, following the last key's direction
        last_asc = order[-1][1] if order else True
        terms.append(f"rowid {'ASC' if last_asc else 'DESC'}")
        sql += " ORDER BY " + ", ".join(terms)
        if page is not None and page.limit:
            sql += " LIMIT ? OFFSET ?"
            params.extend([page.limit, page.offset or 0])

        with self._lock:
            try:
                rows = self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e
        return [self._row_to_dict(table, row) for row in rows]

    def insert(self, table: str, values: Row) -> Row:
        cols = self._columns(table)
        self._check_columns(table, values)
        record = {k: self._to_db(v) for k, v in values.items()}
        record["id"] = str(uuid.uuid4())
        now = format_timestamp(now_utc())
        record["created_at"] = now
        if "updated_at" in cols:
            record["updated_at"] = now

        def do_insert(conn: sqlite3.Connection) -> Row | None:
            scope = ORDERED_TABLES.get(table)
            if scope is not None and record.get("order_no") is None:
                row = conn.execute(
                    f"SELECT COALESCE(MAX(order_no), 0) + 1 FROM {table} WHERE {scope} = ?",
                    (record.get(scope),)
                ).fetchone()
                record["order_no"] = row[0]
            names = list(record)
            conn.execute(
                f"INSERT INTO {table} ({', '.join(names)}) "
                f"VALUES ({', '.join('?' * len(names))})",
                [record[n] for n in names]
            )
            return self._fetch(table, record["id"])

        created = self.run_in_transaction(do_insert)
        logger.debug("inserted %s %s", table, record["id"])
        if created is None:
            raise StoreError(f"insert into {table} returned no row")
        return created

    def update(self, table: str, row_id: str, patch: Row) -> Row | None:
        cols = self._columns(table)
        self._check_columns(table, patch)
        for key in ("id", "created_at", "updated_at"):
            if key in patch:
                raise StoreError(f"column {table}.{key} is managed by the store")

        def do_update(conn: sqlite3.Connection) -> Row | None:
            if self._fetch(table, row_id) is None:
                return None
            set_clauses = [f"{col} = ?" for col in patch]
            params = [self._to_db(v) for v in patch.values()]
            if "updated_at" in cols:
                set_clauses.append("updated_at = ?")
                params.append(format_timestamp(now_utc()))
            if set_clauses:
                params.append(row_id)
                conn.execute(
                    f"UPDATE {table} SET {', '.join(set_clauses)} WHERE id = ?", params
                )
            return self._fetch(table, row_id)

        updated = self.run_in_transaction(do_update)
        if updated is not None:
            logger.debug("updated %s %s (%s)", table, row_id, ", ".join(patch) or "touch")
        return updated

    def delete(self, table: str, row_id: str) -> Row | None:
        self._columns(table)

        def do_delete(conn: sqlite3.Connection) -> Row | None:
            row = self._fetch(table, row_id)
            if row is None:
                return None
            conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
            return row

        deleted = self.run_in_transaction(do_delete)
        if deleted is not None:
            logger.debug("deleted %s %s", table, row_id)
        return deleted

    def resolve_id(self, table: str, partial: str) -> str | None:
        """Resolve a partial ID to a full ID."""
        self._columns(table)
        with self._lock:
            row = self._conn.execute(
                f"SELECT id FROM {table} WHERE id = ?", (partial,)
            ).fetchone()
            if row:
                return row["id"]
            rows = self._conn.execute(
                f"SELECT id FROM {table} WHERE id LIKE ?", (f"{partial}%",)
            ).fetchall()
        if len(rows) == 1:
            return rows[0]["id"]
        return None

    # --- Metadata ---

    def get_metadata(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM metadata WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    # --- Session API ---

    def _notify(self, event: str, session: Session | None) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    def _start_session(self, conn: sqlite3.Connection, user_id: str, email: str) -> Session:
        now = now_utc()
        conn.execute(
            "INSERT INTO auth_sessions (token, user_id, created_at) VALUES (?, ?, ?)",
            (secrets.token_hex(32), user_id, format_timestamp(now))
        )
        return Session(user_id=user_id, email=email, created_at=now)

    def sign_up(self, email: str, password: str) -> Session:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise AuthError("a valid email is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"password should be at least {MIN_PASSWORD_LENGTH} characters")

        def do_sign_up(conn: sqlite3.Connection) -> Session:
            existing = conn.execute(
                "SELECT id FROM auth_users WHERE email = ?", (email,)
            ).fetchone()
            if existing:
                raise AuthError("user already registered")
            user_id = str(uuid.uuid4())
            salt = secrets.token_hex(16)
            conn.execute(
                "INSERT INTO auth_users (id, email, password_hash, password_salt, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (user_id, email, _hash_password(password, salt), salt,
                 format_timestamp(now_utc()))
            )
            return self._start_session(conn, user_id, email)

        session = self.run_in_transaction(do_sign_up)
        logger.info("signed up %s", email)
        self._notify(AuthEvent.SIGNED_IN, session)
        return session

    def sign_in_with_password(self, email: str, password: str) -> Session:
        email = email.strip().lower()

        def do_sign_in(conn: sqlite3.Connection) -> Session:
            row = conn.execute(
                "SELECT id, password_hash, password_salt FROM auth_users WHERE email = ?",
                (email,)
            ).fetchone()
            if row is None or not secrets.compare_digest(
                _hash_password(password, row["password_salt"]), row["password_hash"]
            ):
                raise AuthError("invalid login credentials")
            return self._start_session(conn, row["id"], email)

        session = self.run_in_transaction(do_sign_in)
        logger.info("signed in %s", email)
        self._notify(AuthEvent.SIGNED_IN, session)
        return session

    def reset_password_for_email(self, email: str) -> None:
        email = email.strip().lower()
        if not email:
            raise AuthError("email is required")

        def do_request(conn: sqlite3.Connection) -> None:
            conn.execute(
                "INSERT INTO auth_password_resets (token, email, requested_at) VALUES (?, ?, ?)",
                (secrets.token_urlsafe(24), email, format_timestamp(now_utc()))
            )

        self.run_in_transaction(do_request)
        logger.info("password reset requested for %s", email)

    def sign_out(self) -> None:
        def do_sign_out(conn: sqlite3.Connection) -> None:
            conn.execute(
                "UPDATE auth_sessions SET revoked_at = ? WHERE revoked_at IS NULL",
                (format_timestamp(now_utc()),)
            )

        self.run_in_transaction(do_sign_out)
        self._notify(AuthEvent.SIGNED_OUT, None)

    def get_session(self) -> Session | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT s.user_id, s.created_at, u.email FROM auth_sessions s "
                "JOIN auth_users u ON u.id = s.user_id "
                "WHERE s.revoked_at IS NULL ORDER BY s.created_at DESC, s.rowid DESC LIMIT 1"
            ).fetchone()
        if row is None:
            return None
        return Session(
            user_id=row["user_id"],
            email=row["email"],
            created_at=parse_timestamp(row["created_at"]) or now_utc(),
        )

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


def open_store(db_path: str) -> SQLiteEntityStore:
    """Open or create a SQLite entity store at the given path."""
    return SQLiteEntityStore(db_path)
