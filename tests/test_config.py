from pathlib import Path

import pytest

from dealmap.config import WORKSPACES_DIR, WorkspaceError, _resolve_path, parse_workspace_config


def _write(tmp_path: Path, body: str) -> Path:
    ws_dir = tmp_path / WORKSPACES_DIR / "ai-labs"
    ws_dir.mkdir(parents=True)
    config_path = ws_dir / "workspace.yaml"
    config_path.write_text(body)
    return config_path


def test_resolve_path_relative(tmp_path: Path) -> None:
    config_path = _write(tmp_path, "workspace: ai-labs\nstore:\n  sqlite_path: ./local.sqlite\n")
    resolved = _resolve_path("./local.sqlite", config_path)
    assert resolved == (config_path.parent / "local.sqlite").resolve()


def test_resolve_path_repo_relative(tmp_path: Path) -> None:
    config_path = _write(tmp_path, "workspace: ai-labs\nstore:\n  sqlite_path: workspaces/deals.sqlite\n")
    resolved = _resolve_path("workspaces/deals.sqlite", config_path)
    assert resolved == (tmp_path / "workspaces" / "deals.sqlite").resolve()


def test_parse_full_config(tmp_path: Path) -> None:
    config_path = _write(
        tmp_path,
        "workspace: ai-labs\n"
        "store:\n  sqlite_path: workspaces/deals.sqlite\n"
        "sync:\n  internal_domains: [AILabs.com, ' ai-labs.io ']\n  min_threads: 3\n"
        "oracle:\n  model: claude-test\n"
        "google:\n  token_path: google-tokens.json\n",
    )
    ws = parse_workspace_config("ai-labs", config_path)
    assert ws.sync.internal_domains == ("ailabs.com", "ai-labs.io")
    assert ws.sync.min_threads == 3
    assert ws.sync.lookback_days == 30
    assert ws.oracle.model == "claude-test"
    assert ws.oracle.api_key_env == "ANTHROPIC_API_KEY"
    assert ws.google.token_path == (config_path.parent / "google-tokens.json").resolve()


def test_invalid_config_raises(tmp_path: Path) -> None:
    config_path = _write(
        tmp_path,
        "workspace: ai-labs\nstore:\n  sqlite_path: workspaces/deals.sqlite\noracle:\n  provider: other\n",
    )
    with pytest.raises(WorkspaceError):
        parse_workspace_config("ai-labs", config_path)

    config_path.write_text("workspace: ai-labs\nstore: {}\n")
    with pytest.raises(WorkspaceError):
        parse_workspace_config("ai-labs", config_path)

    config_path.write_text(
        "workspace: ai-labs\nstore:\n  sqlite_path: x.sqlite\nsync:\n  min_threads: many\n"
    )
    with pytest.raises(WorkspaceError):
        parse_workspace_config("ai-labs", config_path)
