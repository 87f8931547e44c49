from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from email.utils import parsedate_to_datetime
from typing import Any

from dealmap.domain.stages import ActivityType
from dealmap.services.sync import Candidate
from dealmap.services.utils import name_from_email, parse_contact

INVITE_MARKERS = ("invite", "accepted:", "declined:")
SNIPPET_LENGTH = 150


def _header(message: dict[str, Any], name: str) -> str:
    for header in message.get("payload", {}).get("headers", []):
        if str(header.get("name", "")).lower() == name.lower():
            return header.get("value") or ""
    return ""


def _message_date(raw: str) -> date | None:
    if not raw:
        return None
    try:
        return parsedate_to_datetime(raw).date()
    except (TypeError, ValueError):
        return None


def is_calendar_invite(subject: str, content_type: str) -> bool:
    lowered = subject.lower()
    return "calendar" in content_type.lower() or any(m in lowered for m in INVITE_MARKERS)


def gmail_candidates(threads: Iterable[dict[str, Any]]) -> list[Candidate]:
    candidates: list[Candidate] = []
    for thread in threads:
        thread_id = thread.get("id", "")
        for message in thread.get("messages", []):
            name, email = parse_contact(_header(message, "From"))
            sent = _message_date(_header(message, "Date"))
            if not email or sent is None:
                continue
            subject = _header(message, "Subject")
            if is_calendar_invite(subject, _header(message, "Content-Type")):
                activity_type = ActivityType.MEETING.value
                summary = f"Meeting invite: {subject}"
            else:
                activity_type = ActivityType.EMAIL.value
                snippet = (message.get("snippet") or "")[:SNIPPET_LENGTH]
                summary = f"Subject: {subject}. {snippet}"
            candidates.append(
                Candidate(
                    name=name,
                    email=email,
                    date=sent,
                    type=activity_type,
                    summary=summary,
                    thread_key=thread_id,
                    title=subject,
                )
            )
    return candidates


def calendar_candidates(events: Iterable[dict[str, Any]]) -> list[Candidate]:
    """One candidate per attendee; attendees of an event share its thread key."""
    candidates: list[Candidate] = []
    for event in events:
        start = event.get("start") or {}
        raw_start = start.get("dateTime") or start.get("date")
        if not raw_start:
            continue
        event_date = date.fromisoformat(raw_start[:10])
        title = event.get("summary") or "Untitled"
        for attendee in event.get("attendees", []):
            email = (attendee.get("email") or "").strip().lower() or None
            name = attendee.get("displayName") or (name_from_email(email) if email else "Unknown")
            candidates.append(
                Candidate(
                    name=name,
                    email=email,
                    date=event_date,
                    type=ActivityType.MEETING.value,
                    summary=title,
                    thread_key=event.get("id", "") or f"{raw_start}:{title}",
                    title=title,
                    location=event.get("location") or "",
                )
            )
    return candidates
