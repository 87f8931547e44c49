from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace

from dealmap.domain.models import Activity, Stakeholder
from dealmap.store.sqlite import NotFoundError, SqliteStore

STAKEHOLDER_PREFIX = "s"
ACTIVITY_PREFIX = "a"
ID_RE = re.compile(r"^[a-z](\d+)$")


def id_suffix(record_id: str) -> int:
    match = ID_RE.match(record_id)
    return int(match.group(1)) if match else 0


@dataclass
class WorkspaceSnapshot:
    """In-memory copy of one workspace's collections for a single reconciliation pass."""

    workspace_id: str
    stakeholders: list[Stakeholder]
    activities: list[Activity]
    counters: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Counters persisted before win; otherwise seed from the highest suffix on record.
        seeds = {
            STAKEHOLDER_PREFIX: max((id_suffix(s.id) for s in self.stakeholders), default=0),
            ACTIVITY_PREFIX: max((id_suffix(a.id) for a in self.activities), default=0),
        }
        for kind, seed in seeds.items():
            self.counters[kind] = max(self.counters.get(kind, 0), seed)

    def _next_id(self, kind: str) -> str:
        self.counters[kind] += 1
        return f"{kind}{self.counters[kind]}"

    def next_stakeholder_id(self) -> str:
        return self._next_id(STAKEHOLDER_PREFIX)

    def next_activity_id(self) -> str:
        return self._next_id(ACTIVITY_PREFIX)

    def find_stakeholder(self, stakeholder_id: str) -> Stakeholder | None:
        for s in self.stakeholders:
            if s.id == stakeholder_id:
                return s
        return None

    def get_stakeholder(self, stakeholder_id: str) -> Stakeholder:
        found = self.find_stakeholder(stakeholder_id)
        if found is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        return found

    def add_stakeholder(self, stakeholder: Stakeholder) -> Stakeholder:
        if not stakeholder.id:
            stakeholder = replace(stakeholder, id=self.next_stakeholder_id())
        self.stakeholders.append(stakeholder)
        return stakeholder

    def replace_stakeholder(self, stakeholder: Stakeholder) -> Stakeholder:
        for index, s in enumerate(self.stakeholders):
            if s.id == stakeholder.id:
                self.stakeholders[index] = stakeholder
                return stakeholder
        raise NotFoundError(f"Stakeholder not found: {stakeholder.id}")

    def delete_stakeholder(self, stakeholder_id: str) -> list[str]:
        """Remove a stakeholder and cascade; returns IDs of activities deleted as a result."""
        self.get_stakeholder(stakeholder_id)
        self.stakeholders = [s for s in self.stakeholders if s.id != stakeholder_id]
        kept: list[Activity] = []
        dropped: list[str] = []
        for a in self.activities:
            if stakeholder_id not in a.stakeholder_ids:
                kept.append(a)
                continue
            remaining = tuple(sid for sid in a.stakeholder_ids if sid != stakeholder_id)
            if remaining:
                kept.append(replace(a, stakeholder_ids=remaining))
            else:
                dropped.append(a.id)
        self.activities = kept
        return dropped

    def add_activity(self, activity: Activity) -> Activity:
        if not activity.id:
            activity = replace(activity, id=self.next_activity_id())
        self.activities.append(activity)
        return activity


@contextmanager
def reconciliation_pass(store: SqliteStore, workspace_id: str) -> Iterator[WorkspaceSnapshot]:
    """Load, mutate in memory, and write back a workspace's collections atomically.

    Holds the per-workspace lock and a single SQLite transaction for the whole
    pass; any exception inside the block rolls back every write.
    """
    with store.workspace_lock(workspace_id), store.session() as session:
        session.begin_immediate()
        snapshot = WorkspaceSnapshot(
            workspace_id=workspace_id,
            stakeholders=session.load_stakeholders(workspace_id),
            activities=session.load_activities(workspace_id),
            counters=session.load_counters(workspace_id),
        )
        yield snapshot
        session.replace_stakeholders(workspace_id, snapshot.stakeholders)
        session.replace_activities(workspace_id, snapshot.activities)
        session.save_counters(workspace_id, snapshot.counters)
