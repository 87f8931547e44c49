from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

EVENT_TYPES = ("created", "updated", "deleted", "skipped")


@dataclass
class EventLogger:
    """Append-only NDJSON trail of stakeholder and activity changes."""

    path: Path
    workspace: str
    enabled: bool = True

    def log(
        self,
        *,
        event_type: str,
        entity_type: str,
        entity_id: str,
        source: str | None = None,
        changed_fields: Iterable[str] | None = None,
        detail: str | None = None,
    ) -> None:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        if not self.enabled:
            return
        record: dict[str, Any] = {
            "ts": datetime.now(UTC).replace(microsecond=0).isoformat(),
            "workspace": self.workspace,
            "event_type": event_type,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "source": source,
        }
        fields = sorted(set(changed_fields or []))
        if fields:
            record["changed_fields"] = fields
        if detail:
            record["detail"] = detail
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


def read_events(path: Path, entity_id: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
    """Newest first. Lines that fail to parse are skipped."""
    if not path.exists():
        return []
    records = []
    for line in path.read_text(encoding="utf-8").splitlines():
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if entity_id is None or record.get("entity_id") == entity_id:
            records.append(record)
    records.reverse()
    return records[:limit] if limit else records
