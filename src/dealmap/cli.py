from __future__ import annotations

import json
import shutil
from dataclasses import asdict
from datetime import timedelta
from pathlib import Path
from typing import Annotated

import typer

from dealmap import __version__
from dealmap.adapters.anthropic import AnthropicClient, OracleError
from dealmap.adapters.google import GoogleClient, GoogleError, calendar_candidates, gmail_candidates
from dealmap.config import (
    WorkspaceConfig,
    WorkspaceError,
    ensure_workspaces_dir,
    load_workspace,
    set_current_workspace,
    workspace_config_path,
    write_workspace_config,
)
from dealmap.domain import rules
from dealmap.domain.extraction import OracleParseError, parse_import_payload
from dealmap.domain.models import Workspace, to_dict
from dealmap.domain.rules import UpstreamAuthError, ValidationError
from dealmap.domain.stages import DEFAULT_TEAMS, SyncSource
from dealmap.services import (
    activities,
    alerts,
    briefs,
    exports,
    gaps,
    scoring,
    smart_import,
    stakeholders,
    sync,
)
from dealmap.services.events import EventLogger, read_events
from dealmap.services.sync_state import is_stale, load_sync_state
from dealmap.services.utils import today_iso
from dealmap.store.sqlite import DuplicateWorkspaceError, NotFoundError, SqliteStore

app = typer.Typer(help="Dealmap CLI")
workspace_app = typer.Typer(help="Workspace management")
schema_app = typer.Typer(help="Schema operations")
stakeholder_app = typer.Typer(help="Stakeholder records")
activity_app = typer.Typer(help="Activity timeline")
sync_app = typer.Typer(help="Mail and calendar sync")
import_app = typer.Typer(help="Smart import from transcripts and emails")
brief_app = typer.Typer(help="AI briefs")
export_app = typer.Typer(help="Exports")

app.add_typer(workspace_app, name="workspace")
app.add_typer(schema_app, name="schema")
app.add_typer(stakeholder_app, name="stakeholder")
app.add_typer(activity_app, name="activity")
app.add_typer(sync_app, name="sync")
app.add_typer(import_app, name="import")
app.add_typer(brief_app, name="brief")
app.add_typer(export_app, name="export")

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "resources" / "schema" / "canonical.yaml"
SYNC_MAX_AGE = timedelta(hours=24)
EVENTS_FILENAME = "events.ndjson"
CORE_ERRORS = (ValidationError, NotFoundError, OracleParseError, OracleError, GoogleError)

WorkspaceOption = Annotated[
    str | None, typer.Option("--workspace", "-w", help="Workspace id (defaults to the active one).")
]
EventsOption = Annotated[
    bool, typer.Option("--events/--no-events", help="Write events to the workspace log.")
]
JsonOption = Annotated[bool, typer.Option("--json", help="Emit JSON output.")]


@app.callback()
def version_callback(version: bool = typer.Option(False, "--version", help="Show version and exit.")):
    if version:
        typer.echo(__version__)
        raise typer.Exit()


@app.command("init")
def init() -> None:
    """Initialize directories for workspaces and outputs."""
    ensure_workspaces_dir()
    Path("data").mkdir(exist_ok=True)
    Path("exports").mkdir(exist_ok=True)
    typer.echo("Initialized dealmap directories.")


@workspace_app.command("add")
def workspace_add(
    name: str = typer.Argument(..., help="Company name."),
    description: str = typer.Option("", "--description"),
    deal_context: str = typer.Option("", "--deal-context"),
    deal_summary: str = typer.Option("", "--deal-summary"),
    renewal_info: str = typer.Option("", "--renewal"),
    team: list[str] | None = typer.Option(None, "--team", help="Team name (repeatable)."),
    domain: list[str] | None = typer.Option(
        None, "--domain", help="Internal account email domain (repeatable)."
    ),
    color: str = typer.Option("emerald", "--color"),
    use: bool = typer.Option(True, "--use/--no-use", help="Set as current workspace."),
) -> None:
    try:
        rules.require(name, "Company name")
    except ValidationError:
        _exit_with_error("Company name is required")
    workspace_id = rules.slugify(name)
    if not workspace_id:
        _exit_with_error("Company name must contain letters or digits")
    if not workspace_config_path(workspace_id).exists():
        write_workspace_config(workspace_id, domain)
    ws = _load_workspace(workspace_id)
    store = _store(ws)
    try:
        store.create_workspace(
            Workspace(
                id=workspace_id,
                name=name.strip(),
                description=description,
                deal_context=deal_context,
                deal_summary=deal_summary,
                renewal_info=renewal_info,
                teams=tuple(team or DEFAULT_TEAMS),
                color=color,
            )
        )
    except DuplicateWorkspaceError as exc:
        _exit_with_error(str(exc))
    if use:
        set_current_workspace(workspace_id)
    typer.echo(f"Workspace created: {workspace_id}")


@workspace_app.command("use")
def workspace_use(workspace_id: str = typer.Argument(...)) -> None:
    if not workspace_config_path(workspace_id).exists():
        raise typer.BadParameter(f"Workspace config not found: {workspace_config_path(workspace_id)}")
    set_current_workspace(workspace_id)
    typer.echo(f"Active workspace: {workspace_id}")


@workspace_app.command("list")
def workspace_list(workspace: WorkspaceOption = None, json_output: JsonOption = False) -> None:
    ws = _load_workspace(workspace)
    items = _store(ws).list_workspaces()
    if json_output:
        typer.echo(json.dumps([to_dict(item) for item in items], indent=2))
        return
    for item in items:
        typer.echo(f"{item.id} | {item.name} | {len(item.teams)} teams")


@schema_app.command("apply")
def schema_apply(workspace: WorkspaceOption = None) -> None:
    ws = _load_workspace(workspace)
    SqliteStore(ws.store.sqlite_path).apply_schema(SCHEMA_PATH)
    typer.echo("Applied schema to local SQLite.")


@stakeholder_app.command("add")
def stakeholder_add(
    name: str = typer.Argument(...),
    title: str = typer.Option("", "--title"),
    team: str = typer.Option("", "--team"),
    role: str = typer.Option("Influencer", "--role"),
    priority: str = typer.Option("P2", "--priority"),
    last_contact: str | None = typer.Option(None, "--last-contact"),
    strength: str = typer.Option("Unknown", "--strength"),
    key_priority: list[str] | None = typer.Option(None, "--key-priority"),
    notes: str = typer.Option("", "--notes"),
    email: str | None = typer.Option(None, "--email"),
    workspace: WorkspaceOption = None,
    events: EventsOption = True,
) -> None:
    ws = _load_workspace(workspace)
    try:
        created = stakeholders.add_stakeholder(
            _store(ws),
            ws.name,
            logger=_event_logger(ws, enabled=events),
            name=name,
            title=title,
            team=team,
            role=role,
            priority=priority,
            last_contact_date=rules.parse_date(last_contact, "last_contact"),
            relationship_strength=strength,
            key_priorities=key_priority or [],
            notes=notes,
            email=email,
        )
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Created stakeholder: {created.id}")


@stakeholder_app.command("list")
def stakeholder_list(
    team: str | None = typer.Option(None, "--team"),
    role: str | None = typer.Option(None, "--role"),
    priority: str | None = typer.Option(None, "--priority"),
    workspace: WorkspaceOption = None,
    json_output: JsonOption = False,
) -> None:
    ws = _load_workspace(workspace)
    try:
        rows = stakeholders.list_stakeholders(_store(ws), ws.name, team, role, priority)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    if json_output:
        typer.echo(json.dumps([to_dict(s) for s in rows], indent=2))
        return
    for s in rows:
        last = s.last_contact_date.isoformat() if s.last_contact_date else "never"
        typer.echo(f"{s.id} | {s.name} | {s.team} | {s.role} | {s.priority} | {s.relationship_strength} | {last}")


@stakeholder_app.command("show")
def stakeholder_show(
    stakeholder_id: str = typer.Argument(...),
    workspace: WorkspaceOption = None,
) -> None:
    ws = _load_workspace(workspace)
    try:
        found = stakeholders.get_stakeholder(_store(ws), ws.name, stakeholder_id)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(json.dumps(to_dict(found), indent=2))


@stakeholder_app.command("update")
def stakeholder_update(
    stakeholder_id: str = typer.Argument(...),
    name: str | None = typer.Option(None, "--name"),
    title: str | None = typer.Option(None, "--title"),
    team: str | None = typer.Option(None, "--team"),
    role: str | None = typer.Option(None, "--role"),
    priority: str | None = typer.Option(None, "--priority"),
    last_contact: str | None = typer.Option(None, "--last-contact"),
    strength: str | None = typer.Option(None, "--strength"),
    key_priority: list[str] | None = typer.Option(None, "--key-priority"),
    notes: str | None = typer.Option(None, "--notes"),
    email: str | None = typer.Option(None, "--email"),
    workspace: WorkspaceOption = None,
    events: EventsOption = True,
) -> None:
    ws = _load_workspace(workspace)
    changes: dict[str, object] = {
        key: value
        for key, value in {
            "name": name,
            "title": title,
            "team": team,
            "role": role,
            "priority": priority,
            "relationship_strength": strength,
            "key_priorities": key_priority,
            "notes": notes,
            "email": email,
        }.items()
        if value is not None
    }
    try:
        if last_contact is not None:
            changes["last_contact_date"] = rules.parse_date(last_contact, "last_contact")
        if not changes:
            raise ValidationError("Nothing to update.")
        updated = stakeholders.update_stakeholder(
            _store(ws), ws.name, stakeholder_id, changes, logger=_event_logger(ws, enabled=events)
        )
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Updated stakeholder: {updated.id}")


@stakeholder_app.command("delete")
def stakeholder_delete(
    stakeholder_id: str = typer.Argument(...),
    workspace: WorkspaceOption = None,
    events: EventsOption = True,
) -> None:
    ws = _load_workspace(workspace)
    try:
        dropped = stakeholders.delete_stakeholder(
            _store(ws), ws.name, stakeholder_id, logger=_event_logger(ws, enabled=events)
        )
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Deleted stakeholder: {stakeholder_id}")
    if dropped:
        typer.echo(f"Removed activities with no remaining participants: {', '.join(dropped)}")


@activity_app.command("log")
def activity_log(
    activity_type: str = typer.Option(..., "--type", help="Meeting, Email, Call or Slack."),
    participant: list[str] = typer.Option(..., "--with", help="Stakeholder id (repeatable)."),
    summary: str = typer.Option("", "--summary"),
    on: str | None = typer.Option(None, "--date", help="YYYY-MM-DD (defaults to today)."),
    touch_contacts: bool = typer.Option(
        True, "--touch/--no-touch", help="Advance participants' last contact date."
    ),
    workspace: WorkspaceOption = None,
    events: EventsOption = True,
) -> None:
    ws = _load_workspace(workspace)
    try:
        activity = activities.log_activity(
            _store(ws),
            ws.name,
            rules.parse_date(on or today_iso(), "date"),
            activity_type,
            participant,
            summary,
            touch_contacts=touch_contacts,
            logger=_event_logger(ws, enabled=events),
        )
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Logged activity: {activity.id}")


@activity_app.command("list")
def activity_list(
    stakeholder_id: str | None = typer.Option(None, "--stakeholder"),
    limit: int | None = typer.Option(None, "--limit"),
    workspace: WorkspaceOption = None,
    json_output: JsonOption = False,
) -> None:
    ws = _load_workspace(workspace)
    try:
        rows = activities.list_activities(_store(ws), ws.name, stakeholder_id, limit)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    if json_output:
        typer.echo(json.dumps([to_dict(a) for a in rows], indent=2))
        return
    for a in rows:
        typer.echo(f"{a.id} | {a.date.isoformat()} | {a.type} | {', '.join(a.stakeholder_ids)} | {a.summary}")


@sync_app.command("gmail")
def sync_gmail(
    workspace: WorkspaceOption = None,
    events: EventsOption = True,
    json_output: JsonOption = False,
) -> None:
    """Reconcile recent mail senders into stakeholders and activities."""
    ws = _load_workspace(workspace)
    try:
        client = GoogleClient.from_token_file(ws.google.token_path)
        threads = client.recent_threads(ws.sync.lookback_days, ws.sync.max_threads)
        result = sync.sync_email(
            _store(ws),
            ws.name,
            gmail_candidates(threads),
            ws.sync,
            state_dir=ws.path,
            events=_event_logger(ws, enabled=events),
        )
    except UpstreamAuthError as exc:
        _exit_with_auth_error(exc)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    _echo_sync_result(result, json_output)


@sync_app.command("calendar")
def sync_calendar(
    workspace: WorkspaceOption = None,
    events: EventsOption = True,
    json_output: JsonOption = False,
) -> None:
    """Reconcile calendar attendees into stakeholders and meetings."""
    ws = _load_workspace(workspace)
    try:
        client = GoogleClient.from_token_file(ws.google.token_path)
        items = client.events_window(ws.sync.lookback_days, ws.sync.lookahead_days)
        result = sync.sync_calendar(
            _store(ws),
            ws.name,
            calendar_candidates(items),
            ws.sync,
            state_dir=ws.path,
            events=_event_logger(ws, enabled=events),
        )
    except UpstreamAuthError as exc:
        _exit_with_auth_error(exc)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    _echo_sync_result(result, json_output)


@sync_app.command("status")
def sync_status(workspace: WorkspaceOption = None, json_output: JsonOption = False) -> None:
    ws = _load_workspace(workspace)
    state = load_sync_state(ws.path)
    connected = ws.google.token_path is not None and ws.google.token_path.exists()
    sources = {
        source.value: {
            "last_sync_at": state.last_sync_at.get(source.value),
            "stale": is_stale(state, source.value, SYNC_MAX_AGE),
            "last_result": state.last_results.get(source.value),
        }
        for source in (SyncSource.EMAIL, SyncSource.CALENDAR)
    }
    if json_output:
        typer.echo(json.dumps({"connected": connected, "sources": sources}, indent=2))
        return
    typer.echo(f"Google connected: {'yes' if connected else 'no'}")
    for name, info in sources.items():
        flag = " (stale)" if info["stale"] else ""
        typer.echo(f"{name}: {info['last_sync_at'] or 'never'}{flag}")


@import_app.command("parse")
def import_parse(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Transcript or email text."),
    source_type: str = typer.Option("Meeting", "--type", help="Meeting, Email, Call or Slack."),
    out: Path | None = typer.Option(None, "--out", help="Write the review payload to this file."),
    workspace: WorkspaceOption = None,
) -> None:
    """Extract stakeholders and a proposed activity for review."""
    ws = _load_workspace(workspace)
    store = _store(ws)
    try:
        info = store.get_workspace(ws.name)
        result = smart_import.analyze_transcript(
            AnthropicClient.from_config(ws.oracle),
            source.read_text(encoding="utf-8"),
            source_type,
            store.load_stakeholders(ws.name),
            list(info.teams),
        )
    except UpstreamAuthError as exc:
        _exit_with_auth_error(exc)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    text = json.dumps(smart_import.review_payload(result), indent=2)
    if out is None:
        typer.echo(text)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text + "\n", encoding="utf-8")
    typer.echo(f"Review payload written to {out}")


@import_app.command("confirm")
def import_confirm(
    payload_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    workspace: WorkspaceOption = None,
    events: EventsOption = True,
) -> None:
    """Write a reviewed import payload to the workspace."""
    ws = _load_workspace(workspace)
    try:
        payload = parse_import_payload(json.loads(payload_path.read_text(encoding="utf-8")))
        result = smart_import.confirm_import(
            _store(ws), ws.name, payload, logger=_event_logger(ws, enabled=events)
        )
    except json.JSONDecodeError as exc:
        _exit_with_error(f"Invalid JSON in {payload_path}: {exc}")
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Created stakeholders: {len(result.created_stakeholders)}")
    typer.echo(f"Updated stakeholders: {len(result.updated_stakeholders)}")
    if result.activity is not None:
        typer.echo(f"Logged activity: {result.activity.id}")
    else:
        typer.echo(f"Skipped duplicate activity: {result.decision.duplicate_of}")


@app.command("health")
def health(workspace: WorkspaceOption = None, json_output: JsonOption = False) -> None:
    """Deal health score with its contributing factors."""
    ws = _load_workspace(workspace)
    try:
        result = scoring.score_health(_store(ws).load_stakeholders(ws.name))
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    if json_output:
        typer.echo(json.dumps(asdict(result), indent=2))
        return
    typer.echo(f"Deal health: {result.score}/100")
    for factor in result.factors:
        typer.echo(f"{factor.impact:+d} | {factor.label} | {factor.detail}")


@app.command("gaps")
def meeting_gaps(workspace: WorkspaceOption = None, json_output: JsonOption = False) -> None:
    """P0/P1 stakeholders without a recent meeting."""
    ws = _load_workspace(workspace)
    store = _store(ws)
    try:
        rows = gaps.detect_meeting_gaps(store.load_stakeholders(ws.name), store.load_activities(ws.name))
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    if json_output:
        payload = [
            {
                "stakeholder_id": gap.stakeholder.id,
                "name": gap.stakeholder.name,
                "days_since_last_meeting": gap.days_since_last_meeting,
                "last_meeting_date": gap.last_meeting_date.isoformat() if gap.last_meeting_date else None,
            }
            for gap in rows
        ]
        typer.echo(json.dumps(payload, indent=2))
        return
    if not rows:
        typer.echo("No meeting gaps.")
        return
    for gap in rows:
        days = "never met" if gap.days_since_last_meeting is None else f"{gap.days_since_last_meeting} days"
        typer.echo(f"{gap.stakeholder.id} | {gap.stakeholder.name} | {gap.stakeholder.priority} | {days}")


@app.command("alerts")
def critical_alerts(
    limit: int = typer.Option(alerts.MAX_ALERTS, "--limit"),
    workspace: WorkspaceOption = None,
    json_output: JsonOption = False,
) -> None:
    ws = _load_workspace(workspace)
    try:
        rows = alerts.generate_alerts(_store(ws).load_stakeholders(ws.name), limit=limit)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    if json_output:
        typer.echo(json.dumps([asdict(a) for a in rows], indent=2))
        return
    for alert in rows or []:
        typer.echo(f"[{alert.severity}] {alert.message}")
    if not rows:
        typer.echo("No alerts.")


@app.command("stats")
def stats(workspace: WorkspaceOption = None, json_output: JsonOption = False) -> None:
    ws = _load_workspace(workspace)
    try:
        result = alerts.quick_stats(_store(ws).load_stakeholders(ws.name))
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    payload = asdict(result)
    if json_output:
        typer.echo(json.dumps(payload, indent=2))
        return
    for key, value in payload.items():
        typer.echo(f"{key}: {value}")


@app.command("events")
def events_history(
    entity_id: str | None = typer.Option(None, "--entity", help="Only events for this stakeholder or activity id."),
    limit: int = typer.Option(20, "--limit"),
    workspace: WorkspaceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Recent change events for the workspace, newest first."""
    ws = _load_workspace(workspace)
    rows = read_events(ws.path / EVENTS_FILENAME, entity_id, limit)
    if json_output:
        typer.echo(json.dumps(rows, indent=2))
        return
    for row in rows:
        fields = f" ({', '.join(row['changed_fields'])})" if row.get("changed_fields") else ""
        typer.echo(
            f"{row['ts']} | {row['event_type']} {row['entity_type']} {row['entity_id']} | "
            f"{row.get('source') or '-'}{fields}"
        )


@brief_app.command("prep")
def brief_prep(
    participant: list[str] = typer.Option(..., "--with", help="Stakeholder id (repeatable)."),
    context: str | None = typer.Option(None, "--context", help="What the meeting is about."),
    workspace: WorkspaceOption = None,
) -> None:
    """Generate a markdown meeting brief for the selected attendees."""
    ws = _load_workspace(workspace)
    store = _store(ws)
    try:
        text = briefs.meeting_prep(
            AnthropicClient.from_config(ws.oracle),
            store.get_workspace(ws.name),
            store.load_stakeholders(ws.name),
            store.load_activities(ws.name),
            participant,
            context,
        )
    except UpstreamAuthError as exc:
        _exit_with_auth_error(exc)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(text)


@brief_app.command("insights")
def brief_insights(workspace: WorkspaceOption = None) -> None:
    """Generate AI insights for the account as JSON."""
    ws = _load_workspace(workspace)
    store = _store(ws)
    try:
        payload = briefs.insights(
            AnthropicClient.from_config(ws.oracle),
            store.get_workspace(ws.name),
            store.load_stakeholders(ws.name),
            store.load_activities(ws.name),
        )
    except UpstreamAuthError as exc:
        _exit_with_auth_error(exc)
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(json.dumps(payload, indent=2))


@export_app.command("excel")
def export_excel(out: str = typer.Option(..., "--out"), workspace: WorkspaceOption = None) -> None:
    ws = _load_workspace(workspace)
    try:
        exports.export_excel(_store(ws), ws.name, Path(out))
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Exported Excel to {out}")


@export_app.command("csv")
def export_csv(out: str = typer.Option(..., "--out"), workspace: WorkspaceOption = None) -> None:
    ws = _load_workspace(workspace)
    try:
        exports.export_csv_tables(_store(ws), ws.name, Path(out))
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Exported CSV to {out}")


@app.command("snapshot")
def snapshot(workspace: WorkspaceOption = None) -> None:
    ws = _load_workspace(workspace)
    store = _store(ws)
    snapshot_dir = Path("data") / "snapshots" / ws.name / today_iso()
    snapshot_dir.mkdir(parents=True, exist_ok=True)
    if ws.store.sqlite_path.exists():
        shutil.copy2(ws.store.sqlite_path, snapshot_dir / "local.sqlite")
    try:
        exports.export_csv_tables(store, ws.name, snapshot_dir)
        exports.export_snapshot(store, ws.name, snapshot_dir / "workspace.json")
    except CORE_ERRORS as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Snapshot created at {snapshot_dir}")


def _load_workspace(name: str | None = None) -> WorkspaceConfig:
    try:
        return load_workspace(name)
    except WorkspaceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc


def _store(ws: WorkspaceConfig) -> SqliteStore:
    store = SqliteStore(ws.store.sqlite_path)
    store.apply_schema(SCHEMA_PATH)
    return store


def _echo_sync_result(result: sync.SyncResult, json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps(result.as_dict(), indent=2))
        return
    typer.echo(
        f"New contacts: {result.new_contacts} | New activities: {result.new_activities} | "
        f"Updated: {result.updated_stakeholders} | Skipped duplicates: {result.skipped_activities}"
    )
    for line in result.details:
        typer.echo(f"- {line}")


def _exit_with_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _exit_with_auth_error(exc: UpstreamAuthError) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=2) from exc


def _event_logger(ws: WorkspaceConfig, enabled: bool) -> EventLogger:
    return EventLogger(path=ws.path / EVENTS_FILENAME, workspace=ws.name, enabled=enabled)


if __name__ == "__main__":
    app()
