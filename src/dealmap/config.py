from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

WORKSPACES_DIR = Path("workspaces")
CURRENT_WORKSPACE_FILE = WORKSPACES_DIR / ".current"
WORKSPACE_FILENAME = "workspace.yaml"
DEFAULT_SQLITE_PATH = "workspaces/deals.sqlite"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


@dataclass(frozen=True)
class StoreConfig:
    sqlite_path: Path


@dataclass(frozen=True)
class SyncConfig:
    internal_domains: tuple[str, ...] = ()
    min_threads: int = 2
    lookback_days: int = 30
    lookahead_days: int = 14
    max_threads: int = 30


@dataclass(frozen=True)
class OracleConfig:
    provider: str = "anthropic"
    model: str = DEFAULT_MODEL
    api_key_env: str = "ANTHROPIC_API_KEY"
    max_tokens: int = 3000


@dataclass(frozen=True)
class GoogleConfig:
    token_path: Path | None = None


@dataclass(frozen=True)
class WorkspaceConfig:
    name: str
    store: StoreConfig
    path: Path
    sync: SyncConfig = field(default_factory=SyncConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)


class WorkspaceError(RuntimeError):
    pass


def ensure_workspaces_dir() -> None:
    WORKSPACES_DIR.mkdir(parents=True, exist_ok=True)


def set_current_workspace(name: str) -> None:
    ensure_workspaces_dir()
    CURRENT_WORKSPACE_FILE.write_text(f"{name}\n", encoding="utf-8")


def get_current_workspace_name() -> str:
    if not CURRENT_WORKSPACE_FILE.exists():
        raise WorkspaceError("No active workspace. Run `dealmap workspace use <id>`.")
    return CURRENT_WORKSPACE_FILE.read_text(encoding="utf-8").strip()


def workspace_path(name: str) -> Path:
    return WORKSPACES_DIR / name


def workspace_config_path(name: str) -> Path:
    return workspace_path(name) / WORKSPACE_FILENAME


def load_workspace(name: str | None = None) -> WorkspaceConfig:
    if name is None:
        name = get_current_workspace_name()
    config_path = workspace_config_path(name)
    if not config_path.exists():
        raise WorkspaceError(f"Workspace config not found: {config_path}")
    return parse_workspace_config(name, config_path)


def parse_workspace_config(name: str, config_path: Path) -> WorkspaceConfig:
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise WorkspaceError(f"Workspace config must be a mapping: {config_path}")
    return WorkspaceConfig(
        name=name,
        store=_parse_store(data.get("store"), config_path),
        path=config_path.parent,
        sync=_parse_sync(data.get("sync")),
        oracle=_parse_oracle(data.get("oracle")),
        google=_parse_google(data.get("google"), config_path),
    )


def write_workspace_config(name: str, internal_domains: list[str] | None = None) -> Path:
    ensure_workspaces_dir()
    ws_dir = workspace_path(name)
    ws_dir.mkdir(parents=True, exist_ok=True)
    config = {
        "workspace": name,
        "store": {"sqlite_path": DEFAULT_SQLITE_PATH},
        "sync": {
            "internal_domains": list(internal_domains or []),
            "min_threads": 2,
            "lookback_days": 30,
            "lookahead_days": 14,
        },
        "oracle": {
            "provider": "anthropic",
            "model": DEFAULT_MODEL,
            "api_key_env": "ANTHROPIC_API_KEY",
            "max_tokens": 3000,
        },
        "google": {"token_path": "google-tokens.json"},
    }
    config_path = workspace_config_path(name)
    config_path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return config_path


def _parse_store(store_data: Any, config_path: Path) -> StoreConfig:
    if not isinstance(store_data, dict):
        raise WorkspaceError("Invalid workspace store configuration.")
    sqlite_path_raw = store_data.get("sqlite_path")
    if not sqlite_path_raw:
        raise WorkspaceError("Workspace store.sqlite_path is required.")
    sqlite_path = _resolve_path(sqlite_path_raw, config_path)
    if sqlite_path is None:
        raise WorkspaceError("Workspace store.sqlite_path must be a string.")
    return StoreConfig(sqlite_path=sqlite_path)


def _resolve_path(raw_value: Any, config_path: Path) -> Path | None:
    if not isinstance(raw_value, str):
        return None
    raw_path = Path(raw_value)
    if raw_path.is_absolute():
        return raw_path
    workspace_dir = config_path.parent
    if raw_path.parts and raw_path.parts[0] == WORKSPACES_DIR.name:
        # Paths starting with "workspaces/" are relative to the repo root, so
        # several workspaces can share one database.
        return (workspace_dir.parent.parent / raw_path).resolve()
    return (workspace_dir / raw_path).resolve()


def _parse_sync(sync_data: Any) -> SyncConfig:
    if sync_data is None:
        return SyncConfig()
    if not isinstance(sync_data, dict):
        raise WorkspaceError("Invalid workspace sync configuration.")
    domains = sync_data.get("internal_domains") or []
    if isinstance(domains, str):
        domains = [domains]
    if not isinstance(domains, list):
        raise WorkspaceError("Workspace sync.internal_domains must be a list.")
    try:
        return SyncConfig(
            internal_domains=tuple(str(d).strip().lower() for d in domains if str(d).strip()),
            min_threads=int(sync_data.get("min_threads", 2)),
            lookback_days=int(sync_data.get("lookback_days", 30)),
            lookahead_days=int(sync_data.get("lookahead_days", 14)),
            max_threads=int(sync_data.get("max_threads", 30)),
        )
    except (TypeError, ValueError) as exc:
        raise WorkspaceError(f"Invalid workspace sync configuration: {exc}") from exc


def _parse_oracle(oracle_data: Any) -> OracleConfig:
    if oracle_data is None:
        return OracleConfig()
    if not isinstance(oracle_data, dict):
        raise WorkspaceError("Invalid workspace oracle configuration.")
    provider = oracle_data.get("provider") or "anthropic"
    if provider != "anthropic":
        raise WorkspaceError("Only the anthropic oracle provider is supported.")
    return OracleConfig(
        provider=provider,
        model=oracle_data.get("model") or DEFAULT_MODEL,
        api_key_env=oracle_data.get("api_key_env") or "ANTHROPIC_API_KEY",
        max_tokens=int(oracle_data.get("max_tokens") or 3000),
    )


def _parse_google(google_data: Any, config_path: Path) -> GoogleConfig:
    if google_data is None:
        return GoogleConfig()
    if not isinstance(google_data, dict):
        raise WorkspaceError("Invalid workspace google configuration.")
    token_path = google_data.get("token_path")
    if not token_path:
        return GoogleConfig()
    return GoogleConfig(token_path=_resolve_path(token_path, config_path))
