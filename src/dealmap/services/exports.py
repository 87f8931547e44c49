from __future__ import annotations

import csv
import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from openpyxl import Workbook

from dealmap.domain.models import Activity, Stakeholder, to_dict
from dealmap.store.sqlite import SqliteStore

LIST_SEPARATOR = "; "
STAKEHOLDER_COLUMNS = [
    "id",
    "name",
    "title",
    "team",
    "role",
    "priority",
    "last_contact_date",
    "relationship_strength",
    "key_priorities",
    "notes",
    "email",
]
ACTIVITY_COLUMNS = ["id", "date", "type", "stakeholder_ids", "summary"]


def _rows(records: Iterable[Stakeholder | Activity], columns: list[str]) -> list[list[Any]]:
    rows = []
    for record in records:
        payload = to_dict(record)
        row = []
        for column in columns:
            value = payload[column]
            if isinstance(value, list):
                value = LIST_SEPARATOR.join(value)
            row.append(value)
        rows.append(row)
    return rows


def _tables(store: SqliteStore, workspace_id: str) -> dict[str, tuple[list[str], list[list[Any]]]]:
    return {
        "stakeholders": (
            STAKEHOLDER_COLUMNS,
            _rows(store.load_stakeholders(workspace_id), STAKEHOLDER_COLUMNS),
        ),
        "activities": (
            ACTIVITY_COLUMNS,
            _rows(store.load_activities(workspace_id), ACTIVITY_COLUMNS),
        ),
    }


def export_excel(store: SqliteStore, workspace_id: str, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    wb.remove(wb.active)

    for table, (headers, rows) in _tables(store, workspace_id).items():
        ws = wb.create_sheet(title=table)
        _write_sheet(ws, headers, rows)

    wb.save(out_path)


def export_csv_tables(store: SqliteStore, workspace_id: str, out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for table, (headers, rows) in _tables(store, workspace_id).items():
        csv_path = out_dir / f"{table}.csv"
        with csv_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(headers)
            writer.writerows(rows)
        written.append(csv_path)
    return written


def export_snapshot(store: SqliteStore, workspace_id: str, out_path: Path) -> Path:
    """Write the workspace and both collections as one JSON document."""
    payload = {
        "workspace": to_dict(store.get_workspace(workspace_id)),
        "stakeholders": [to_dict(s) for s in store.load_stakeholders(workspace_id)],
        "activities": [to_dict(a) for a in store.load_activities(workspace_id)],
    }
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = out_path.with_suffix(out_path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    os.replace(tmp_path, out_path)
    return out_path


def _write_sheet(ws, headers: list[str], rows: list[list[Any]]) -> None:
    ws.append(headers)
    for row in rows:
        ws.append(row)
