from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import requests

from dealmap.domain.rules import UpstreamAuthError

GMAIL_URL = "https://gmail.googleapis.com/gmail/v1/users/me"
CALENDAR_URL = "https://www.googleapis.com/calendar/v3/calendars/primary"
METADATA_HEADERS = ["From", "To", "Subject", "Date", "Content-Type"]

logger = logging.getLogger(__name__)


class GoogleError(RuntimeError):
    pass


class GoogleAuthError(UpstreamAuthError):
    pass


def load_access_token(token_path: Path | None) -> str:
    if token_path is None or not token_path.exists():
        raise GoogleAuthError("Not connected to Google. Please authenticate first.")
    try:
        tokens = json.loads(token_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise GoogleAuthError("Not connected to Google. Please authenticate first.") from exc
    access_token = tokens.get("access_token") if isinstance(tokens, dict) else None
    if not access_token:
        raise GoogleAuthError("Not connected to Google. Please authenticate first.")
    return access_token


class GoogleClient:
    def __init__(self, access_token: str, session: requests.Session | None = None) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {access_token}"})

    @classmethod
    def from_token_file(cls, token_path: Path | None) -> GoogleClient:
        return cls(load_access_token(token_path))

    def recent_threads(
        self,
        lookback_days: int = 30,
        max_threads: int = 30,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        now = now or datetime.now(UTC)
        after = int((now - timedelta(days=lookback_days)).timestamp())
        listing = self._request(
            "GET", f"{GMAIL_URL}/threads", params={"maxResults": 50, "q": f"after:{after}"}
        )
        threads: list[dict[str, Any]] = []
        for ref in listing.get("threads", [])[:max_threads]:
            try:
                threads.append(
                    self._request(
                        "GET",
                        f"{GMAIL_URL}/threads/{ref['id']}",
                        params={"format": "metadata", "metadataHeaders": METADATA_HEADERS},
                    )
                )
            except GoogleAuthError:
                raise
            except GoogleError as exc:
                logger.warning("Skipping thread %s: %s", ref.get("id"), exc)
        return threads

    def events_window(
        self,
        lookback_days: int = 30,
        lookahead_days: int = 14,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        now = now or datetime.now(UTC)
        data = self._request(
            "GET",
            f"{CALENDAR_URL}/events",
            params={
                "timeMin": (now - timedelta(days=lookback_days)).isoformat(),
                "timeMax": (now + timedelta(days=lookahead_days)).isoformat(),
                "maxResults": 100,
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        )
        return data.get("items", [])

    def _request(self, method: str, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self.session.request(method, url, params=params, timeout=30)
        except requests.RequestException as exc:
            raise GoogleError(f"Google request failed: {exc}") from exc
        if response.status_code in (401, 403):
            raise GoogleAuthError("Google authentication expired. Please reconnect.")
        if response.status_code >= 400:
            raise GoogleError(f"Google error {response.status_code}: {response.text}")
        return response.json()
