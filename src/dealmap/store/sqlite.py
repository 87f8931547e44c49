from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any

from dealmap.domain.models import Activity, Stakeholder, Workspace
from dealmap.services.utils import utc_now_iso
from dealmap.store.migrations import apply_schema

_LOCKS: dict[tuple[str, str], threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


class NotFoundError(LookupError):
    pass


class DuplicateWorkspaceError(RuntimeError):
    pass


class SqliteSession:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def execute(self, query: str, params: Iterable[Any] | None = None) -> None:
        self._conn.execute(query, params or [])

    def fetch_all(self, query: str, params: Iterable[Any] | None = None) -> list[sqlite3.Row]:
        cur = self._conn.execute(query, params or [])
        return cur.fetchall()

    def fetch_one(self, query: str, params: Iterable[Any] | None = None) -> sqlite3.Row | None:
        cur = self._conn.execute(query, params or [])
        return cur.fetchone()

    def begin_immediate(self) -> None:
        if not self._conn.in_transaction:
            self._conn.execute("BEGIN IMMEDIATE")

    def create_workspace(self, workspace: Workspace) -> Workspace:
        existing = self.fetch_one(
            "SELECT workspace_id FROM workspaces WHERE workspace_id = ?", (workspace.id,)
        )
        if existing:
            raise DuplicateWorkspaceError(f"Workspace already exists: {workspace.id}")
        self.execute(
            "INSERT INTO workspaces (workspace_id, name, description, deal_context, deal_summary, "
            "renewal_info, teams, color, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                workspace.id,
                workspace.name,
                workspace.description,
                workspace.deal_context,
                workspace.deal_summary,
                workspace.renewal_info,
                json.dumps(list(workspace.teams)),
                workspace.color,
                utc_now_iso(),
            ),
        )
        return workspace

    def get_workspace(self, workspace_id: str) -> Workspace:
        row = self.fetch_one("SELECT * FROM workspaces WHERE workspace_id = ?", (workspace_id,))
        if row is None:
            raise NotFoundError(f"Workspace not found: {workspace_id}")
        return _workspace_from_row(row)

    def list_workspaces(self) -> list[Workspace]:
        rows = self.fetch_all("SELECT * FROM workspaces ORDER BY created_at, workspace_id")
        return [_workspace_from_row(row) for row in rows]

    def load_stakeholders(self, workspace_id: str) -> list[Stakeholder]:
        self.get_workspace(workspace_id)
        rows = self.fetch_all(
            "SELECT * FROM stakeholders WHERE workspace_id = ? ORDER BY position",
            (workspace_id,),
        )
        return [_stakeholder_from_row(row) for row in rows]

    def load_activities(self, workspace_id: str) -> list[Activity]:
        self.get_workspace(workspace_id)
        rows = self.fetch_all(
            "SELECT * FROM activities WHERE workspace_id = ? ORDER BY position",
            (workspace_id,),
        )
        return [_activity_from_row(row) for row in rows]

    def replace_stakeholders(self, workspace_id: str, stakeholders: list[Stakeholder]) -> None:
        self.get_workspace(workspace_id)
        self.execute("DELETE FROM stakeholders WHERE workspace_id = ?", (workspace_id,))
        for position, s in enumerate(stakeholders):
            self.execute(
                "INSERT INTO stakeholders (workspace_id, stakeholder_id, position, name, title, team, role, "
                "priority, last_contact_date, relationship_strength, key_priorities, notes, email) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    workspace_id,
                    s.id,
                    position,
                    s.name,
                    s.title,
                    s.team,
                    s.role,
                    s.priority,
                    s.last_contact_date.isoformat() if s.last_contact_date else None,
                    s.relationship_strength,
                    json.dumps(list(s.key_priorities)),
                    s.notes,
                    s.email,
                ),
            )

    def replace_activities(self, workspace_id: str, activities: list[Activity]) -> None:
        self.get_workspace(workspace_id)
        self.execute("DELETE FROM activities WHERE workspace_id = ?", (workspace_id,))
        for position, a in enumerate(activities):
            self.execute(
                "INSERT INTO activities (workspace_id, activity_id, position, activity_date, activity_type, "
                "stakeholder_ids, summary) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    workspace_id,
                    a.id,
                    position,
                    a.date.isoformat(),
                    a.type,
                    json.dumps(list(a.stakeholder_ids)),
                    a.summary,
                ),
            )

    def load_counters(self, workspace_id: str) -> dict[str, int]:
        rows = self.fetch_all(
            "SELECT kind, last_value FROM id_counters WHERE workspace_id = ?", (workspace_id,)
        )
        return {row["kind"]: int(row["last_value"]) for row in rows}

    def save_counters(self, workspace_id: str, counters: dict[str, int]) -> None:
        for kind, last_value in counters.items():
            self.execute(
                "INSERT INTO id_counters (workspace_id, kind, last_value) VALUES (?, ?, ?) "
                "ON CONFLICT(workspace_id, kind) DO UPDATE SET last_value=excluded.last_value",
                (workspace_id, kind, last_value),
            )


class SqliteStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def connect(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def session(self) -> Iterator[SqliteSession]:
        with self.connect() as conn:
            yield SqliteSession(conn)

    @contextmanager
    def workspace_lock(self, workspace_id: str) -> Iterator[None]:
        key = (str(self.db_path.resolve()), workspace_id)
        with _LOCKS_GUARD:
            lock = _LOCKS.setdefault(key, threading.Lock())
        with lock:
            yield

    def apply_schema(self, schema_path: Path) -> None:
        with self.connect() as conn:
            apply_schema(conn, schema_path)

    def execute(self, query: str, params: Iterable[Any] | None = None) -> None:
        with self.connect() as conn:
            conn.execute(query, params or [])

    def fetch_all(self, query: str, params: Iterable[Any] | None = None) -> list[sqlite3.Row]:
        with self.connect() as conn:
            cur = conn.execute(query, params or [])
            return cur.fetchall()

    def fetch_one(self, query: str, params: Iterable[Any] | None = None) -> sqlite3.Row | None:
        with self.connect() as conn:
            cur = conn.execute(query, params or [])
            return cur.fetchone()

    def create_workspace(self, workspace: Workspace) -> Workspace:
        with self.session() as session:
            return session.create_workspace(workspace)

    def get_workspace(self, workspace_id: str) -> Workspace:
        with self.session() as session:
            return session.get_workspace(workspace_id)

    def list_workspaces(self) -> list[Workspace]:
        with self.session() as session:
            return session.list_workspaces()

    def load_stakeholders(self, workspace_id: str) -> list[Stakeholder]:
        with self.session() as session:
            return session.load_stakeholders(workspace_id)

    def load_activities(self, workspace_id: str) -> list[Activity]:
        with self.session() as session:
            return session.load_activities(workspace_id)

    def replace_stakeholders(self, workspace_id: str, stakeholders: list[Stakeholder]) -> None:
        with self.workspace_lock(workspace_id), self.session() as session:
            session.replace_stakeholders(workspace_id, stakeholders)

    def replace_activities(self, workspace_id: str, activities: list[Activity]) -> None:
        with self.workspace_lock(workspace_id), self.session() as session:
            session.replace_activities(workspace_id, activities)


def _workspace_from_row(row: sqlite3.Row) -> Workspace:
    return Workspace(
        id=row["workspace_id"],
        name=row["name"],
        description=row["description"] or "",
        deal_context=row["deal_context"] or "",
        deal_summary=row["deal_summary"] or "",
        renewal_info=row["renewal_info"] or "",
        teams=tuple(json.loads(row["teams"] or "[]")),
        color=row["color"] or "emerald",
    )


def _stakeholder_from_row(row: sqlite3.Row) -> Stakeholder:
    return Stakeholder(
        id=row["stakeholder_id"],
        name=row["name"],
        title=row["title"] or "",
        team=row["team"] or "",
        role=row["role"],
        priority=row["priority"],
        last_contact_date=_parse_date(row["last_contact_date"]),
        relationship_strength=row["relationship_strength"],
        key_priorities=tuple(json.loads(row["key_priorities"] or "[]")),
        notes=row["notes"] or "",
        email=row["email"],
    )


def _activity_from_row(row: sqlite3.Row) -> Activity:
    return Activity(
        id=row["activity_id"],
        date=date.fromisoformat(row["activity_date"]),
        type=row["activity_type"],
        stakeholder_ids=tuple(json.loads(row["stakeholder_ids"])),
        summary=row["summary"] or "",
    )


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value)
