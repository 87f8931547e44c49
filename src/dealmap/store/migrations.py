from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

COLUMN_TYPES = {
    "id": "TEXT",
    "text": "TEXT",
    "integer": "INTEGER",
    "date": "TEXT",
    "datetime": "TEXT",
    "enum": "TEXT",
    "json": "TEXT",
}


class SchemaError(RuntimeError):
    pass


@dataclass(frozen=True)
class TableSpec:
    name: str
    primary_key: tuple[str, ...]
    fields: dict[str, dict[str, Any]]
    indexes: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class CanonicalSchema:
    version: int
    enums: dict[str, tuple[str, ...]]
    tables: list[TableSpec] = field(default_factory=list)


def load_schema(schema_path: Path) -> CanonicalSchema:
    data = yaml.safe_load(Path(schema_path).read_text(encoding="utf-8")) or {}
    raw_tables = data.get("tables")
    if not isinstance(raw_tables, dict) or not raw_tables:
        raise SchemaError(f"Schema {schema_path} defines no tables.")
    enums = {name: tuple(values) for name, values in (data.get("enums") or {}).items()}

    tables = []
    for name, table_def in raw_tables.items():
        fields = table_def.get("fields") if isinstance(table_def, dict) else None
        if not isinstance(fields, dict):
            raise SchemaError(f"Table {name} fields must be a mapping.")
        key = table_def.get("primary_key")
        primary_key = tuple(key) if isinstance(key, list) else (key,)
        if not all(col in fields for col in primary_key):
            raise SchemaError(f"Table {name} primary key must name declared fields.")
        tables.append(
            TableSpec(
                name=name,
                primary_key=primary_key,
                fields=fields,
                indexes=tuple(tuple(cols) for cols in table_def.get("indexes") or [] if cols),
            )
        )
    return CanonicalSchema(version=int(data.get("version", 1)), enums=enums, tables=tables)


def apply_schema(conn: sqlite3.Connection, schema_path: Path) -> CanonicalSchema:
    """Create missing tables and indexes. Existing tables are left as they are."""
    schema = load_schema(schema_path)
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)"
    )
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    if row and row[0] is not None and row[0] > schema.version:
        raise SchemaError(
            f"Database schema version {row[0]} is newer than {schema_path} (version {schema.version})."
        )

    for table in schema.tables:
        conn.execute(table_sql(table, schema.enums))
        for columns in table.indexes:
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{table.name}_{'_'.join(columns)} "
                f"ON {table.name} ({', '.join(columns)});"
            )

    conn.execute(
        "INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, datetime('now'))",
        (schema.version,),
    )
    conn.commit()
    return schema


def table_sql(table: TableSpec, enums: dict[str, tuple[str, ...]]) -> str:
    definitions = [_column(name, spec, enums) for name, spec in table.fields.items()]
    definitions.append(f"PRIMARY KEY ({', '.join(table.primary_key)})")
    for name, spec in table.fields.items():
        ref = spec.get("ref")
        if not ref:
            continue
        ref_table, ref_field = ref.split(".")
        clause = f"FOREIGN KEY ({name}) REFERENCES {ref_table}({ref_field})"
        if spec.get("cascade"):
            clause += " ON DELETE CASCADE"
        definitions.append(clause)
    return f"CREATE TABLE IF NOT EXISTS {table.name} ({', '.join(definitions)});"


def _column(name: str, spec: dict[str, Any], enums: dict[str, tuple[str, ...]]) -> str:
    kind = spec.get("type")
    if kind not in COLUMN_TYPES:
        raise SchemaError(f"Unknown field type {kind} for {name}.")
    sql = f"{name} {COLUMN_TYPES[kind]}"
    if spec.get("required"):
        sql += " NOT NULL"
    if kind == "enum":
        values = enums.get(spec.get("enum", ""))
        if not values:
            raise SchemaError(f"Field {name} references an unknown enum.")
        quoted = ", ".join("'" + v.replace("'", "''") + "'" for v in values)
        sql += f" CHECK ({name} IN ({quoted}))"
    return sql
