from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

SYNC_STATE_FILE = ".sync_state.json"


@dataclass
class SyncState:
    last_sync_at: dict[str, str] = field(default_factory=dict)
    last_results: dict[str, dict[str, Any]] = field(default_factory=dict)


def load_sync_state(state_dir: Path) -> SyncState:
    path = state_dir / SYNC_STATE_FILE
    if not path.exists():
        return SyncState()
    data = json.loads(path.read_text(encoding="utf-8"))
    last_sync_at = data.get("last_sync_at") or {}
    last_results = data.get("last_results") or {}
    if not isinstance(last_sync_at, dict):
        last_sync_at = {}
    if not isinstance(last_results, dict):
        last_results = {}
    return SyncState(
        last_sync_at={str(k): str(v) for k, v in last_sync_at.items()},
        last_results={str(k): v for k, v in last_results.items() if isinstance(v, dict)},
    )


def save_sync_state(state_dir: Path, state: SyncState) -> None:
    state_dir.mkdir(parents=True, exist_ok=True)
    path = state_dir / SYNC_STATE_FILE
    payload: dict[str, Any] = {
        "last_sync_at": state.last_sync_at,
        "last_results": state.last_results,
    }
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def record_sync(state_dir: Path, source: str, synced_at: str, result: dict[str, Any]) -> SyncState:
    state = load_sync_state(state_dir)
    state.last_sync_at = {**state.last_sync_at, source: synced_at}
    state.last_results = {**state.last_results, source: result}
    save_sync_state(state_dir, state)
    return state


def is_stale(state: SyncState, source: str, max_age: timedelta, now: datetime | None = None) -> bool:
    raw = state.last_sync_at.get(source)
    if not raw:
        return True
    try:
        last = datetime.fromisoformat(raw)
    except ValueError:
        return True
    if last.tzinfo is None:
        last = last.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    return now - last > max_age
