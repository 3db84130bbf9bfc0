"""
SQLite-backed LocalStore.

Tables: accounts, calendars (ordered by position), tasks, tags,
pending_deletions and a single-row ui_state. Each call opens its own
connection, commits on success and rolls back on error.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from tasksync.exceptions import NotFoundError, StoreError
from tasksync.models import Account, Calendar, PendingDeletion, Tag, Task, UIState

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY NOT NULL,
    name TEXT NOT NULL,
    server_url TEXT NOT NULL DEFAULT '',
    username TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS calendars (
    id TEXT PRIMARY KEY NOT NULL,
    account_id TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    display_name TEXT NOT NULL,
    url TEXT NOT NULL DEFAULT '',
    ctag TEXT,
    sync_token TEXT,
    color TEXT,
    FOREIGN KEY (account_id) REFERENCES accounts(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY NOT NULL,
    uid TEXT NOT NULL UNIQUE,
    etag TEXT,
    href TEXT,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    completed INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    priority TEXT NOT NULL DEFAULT 'none',
    start_date TEXT,
    due_date TEXT,
    created_at TEXT NOT NULL,
    modified_at TEXT NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0,
    account_id TEXT,
    calendar_id TEXT,
    synced INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS tags (
    id TEXT PRIMARY KEY NOT NULL,
    name TEXT NOT NULL,
    color TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS pending_deletions (
    uid TEXT PRIMARY KEY NOT NULL,
    href TEXT NOT NULL,
    account_id TEXT NOT NULL,
    calendar_id TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ui_state (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    active_account_id TEXT,
    active_calendar_id TEXT,
    active_tag_id TEXT,
    selected_task_id TEXT
);

INSERT OR IGNORE INTO ui_state (id) VALUES (1);

CREATE INDEX IF NOT EXISTS idx_tasks_calendar_id ON tasks(calendar_id);
CREATE INDEX IF NOT EXISTS idx_tasks_account_id ON tasks(account_id);
CREATE INDEX IF NOT EXISTS idx_tasks_uid ON tasks(uid);
CREATE INDEX IF NOT EXISTS idx_calendars_account_id ON calendars(account_id);
"""

_TASK_COLUMNS = (
    "id", "uid", "etag", "href", "title", "description", "completed",
    "completed_at", "tags", "priority", "start_date", "due_date",
    "created_at", "modified_at", "sort_order", "account_id", "calendar_id",
    "synced",
)
_ACCOUNT_COLUMNS = ("name", "server_url", "username")
_UI_COLUMNS = ("active_account_id", "active_calendar_id", "active_tag_id", "selected_task_id")


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStore:
    """Local store persisted in a SQLite database file."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)
        logger.debug("Opened local store at %s", self.db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits or rolls back."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"SQLite error: {e}", {"path": str(self.db_path)}) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Row Conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _task_from_row(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            uid=row["uid"],
            account_id=row["account_id"],
            calendar_id=row["calendar_id"],
            href=row["href"],
            etag=row["etag"],
            title=row["title"],
            description=row["description"],
            completed=bool(row["completed"]),
            completed_at=_from_iso(row["completed_at"]),
            priority=row["priority"],
            start_date=_from_iso(row["start_date"]),
            due_date=_from_iso(row["due_date"]),
            sort_order=row["sort_order"],
            tags=json.loads(row["tags"] or "[]"),
            synced=bool(row["synced"]),
            created_at=_from_iso(row["created_at"]),
            modified_at=_from_iso(row["modified_at"]),
        )

    @staticmethod
    def _task_to_row(task: Task) -> tuple:
        return (
            task.id,
            task.uid,
            task.etag,
            task.href,
            task.title,
            task.description,
            int(task.completed),
            _to_iso(task.completed_at),
            json.dumps(task.tags),
            task.priority,
            _to_iso(task.start_date),
            _to_iso(task.due_date),
            _to_iso(task.created_at),
            _to_iso(task.modified_at),
            task.sort_order,
            task.account_id,
            task.calendar_id,
            int(task.synced),
        )

    def _load_calendars(self, conn: sqlite3.Connection, account_id: str) -> list[Calendar]:
        rows = conn.execute(
            "SELECT * FROM calendars WHERE account_id = ? ORDER BY position",
            (account_id,),
        ).fetchall()
        return [
            Calendar(
                id=row["id"],
                account_id=row["account_id"],
                display_name=row["display_name"],
                url=row["url"],
                color=row["color"],
                ctag=row["ctag"],
                sync_token=row["sync_token"],
            )
            for row in rows
        ]

    def _account_from_row(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Account:
        return Account(
            id=row["id"],
            name=row["name"],
            server_url=row["server_url"],
            username=row["username"],
            calendars=self._load_calendars(conn, row["id"]),
        )

    @staticmethod
    def _replace_calendars(
        conn: sqlite3.Connection,
        account_id: str,
        calendars: list[Calendar],
    ) -> None:
        conn.execute("DELETE FROM calendars WHERE account_id = ?", (account_id,))
        conn.executemany(
            "INSERT INTO calendars (id, account_id, position, display_name, url, ctag, sync_token, color) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (c.id, account_id, position, c.display_name, c.url, c.ctag, c.sync_token, c.color)
                for position, c in enumerate(calendars)
            ],
        )

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def add_account(self, account: Account) -> Account:
        """Register an account together with its calendars."""
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO accounts (id, name, server_url, username) VALUES (?, ?, ?, ?)",
                (account.id, account.name, account.server_url, account.username),
            )
            self._replace_calendars(conn, account.id, account.calendars)
        return account

    def get_all_accounts(self) -> list[Account]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM accounts ORDER BY rowid").fetchall()
            return [self._account_from_row(conn, row) for row in rows]

    def get_account(self, account_id: str) -> Account | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,)).fetchone()
            return self._account_from_row(conn, row) if row else None

    def update_account(self, account_id: str, **changes: Any) -> Account:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,)).fetchone()
            if row is None:
                raise NotFoundError(f"Account not found: {account_id}")

            columns = {k: v for k, v in changes.items() if k in _ACCOUNT_COLUMNS}
            if columns:
                assignments = ", ".join(f"{name} = ?" for name in columns)
                conn.execute(
                    f"UPDATE accounts SET {assignments} WHERE id = ?",
                    (*columns.values(), account_id),
                )

            if "calendars" in changes:
                calendars = [Calendar.model_validate(c) for c in changes["calendars"]]
                self._replace_calendars(conn, account_id, calendars)

            row = conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,)).fetchone()
            return self._account_from_row(conn, row)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            return self._task_from_row(row) if row else None

    def get_tasks_by_calendar(self, calendar_id: str) -> list[Task]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM tasks WHERE calendar_id = ? ORDER BY sort_order, rowid",
                (calendar_id,),
            ).fetchall()
            return [self._task_from_row(row) for row in rows]

    def create_task(self, task: Task) -> Task:
        placeholders = ", ".join("?" for _ in _TASK_COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO tasks ({', '.join(_TASK_COLUMNS)}) VALUES ({placeholders})",
                self._task_to_row(task),
            )
        return task

    def update_task(self, task_id: str, **changes: Any) -> Task:
        current = self.get_task(task_id)
        if current is None:
            raise NotFoundError(f"Task not found: {task_id}")

        changes.pop("id", None)
        data = current.model_dump()
        data.update(changes)
        updated = Task.model_validate(data)

        row = self._task_to_row(updated)
        assignments = ", ".join(f"{name} = ?" for name in _TASK_COLUMNS[1:])
        with self._connect() as conn:
            conn.execute(f"UPDATE tasks SET {assignments} WHERE id = ?", (*row[1:], task_id))
        return updated

    def delete_task(self, task_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def get_all_tags(self) -> list[Tag]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM tags ORDER BY rowid").fetchall()
            return [Tag(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    def create_tag(self, name: str, color: str) -> Tag:
        tag = Tag(name=name, color=color)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO tags (id, name, color) VALUES (?, ?, ?)",
                (tag.id, tag.name, tag.color),
            )
        return tag

    # -------------------------------------------------------------------------
    # Pending Deletions
    # -------------------------------------------------------------------------

    def get_pending_deletions(self) -> list[PendingDeletion]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM pending_deletions ORDER BY rowid").fetchall()
            return [PendingDeletion(**dict(row)) for row in rows]

    def add_pending_deletion(self, deletion: PendingDeletion) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO pending_deletions (uid, href, account_id, calendar_id) "
                "VALUES (?, ?, ?, ?)",
                (deletion.uid, deletion.href, deletion.account_id, deletion.calendar_id),
            )

    def clear_pending_deletion(self, uid: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM pending_deletions WHERE uid = ?", (uid,))

    # -------------------------------------------------------------------------
    # UI State
    # -------------------------------------------------------------------------

    def get_ui_state(self) -> UIState:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM ui_state WHERE id = 1").fetchone()
            return UIState(**{name: row[name] for name in _UI_COLUMNS})

    def update_ui_state(self, **changes: Any) -> UIState:
        columns = {k: v for k, v in changes.items() if k in _UI_COLUMNS}
        if columns:
            assignments = ", ".join(f"{name} = ?" for name in columns)
            with self._connect() as conn:
                conn.execute(f"UPDATE ui_state SET {assignments} WHERE id = 1", tuple(columns.values()))
        return self.get_ui_state()
