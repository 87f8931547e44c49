from __future__ import annotations

import re
from datetime import UTC, date, datetime

CONTACT_RE = re.compile(r'^"?(?P<name>[^"<]*?)"?\s*<(?P<email>[^>]+@[^>]+)>$')
SEPARATOR_RE = re.compile(r"[._\-]+")


def utc_now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def today_iso() -> str:
    return date.today().isoformat()


def parse_contact(contact: str) -> tuple[str, str | None]:
    """Split a `Name <email>` header value; bare addresses get a name derived from the local part."""
    raw = contact.strip()
    match = CONTACT_RE.match(raw)
    if match:
        email = match.group("email").strip().lower()
        name = match.group("name").strip()
        return name or name_from_email(email), email
    cleaned = raw.strip("<>").strip()
    if "@" in cleaned and " " not in cleaned:
        email = cleaned.lower()
        return name_from_email(email), email
    return raw, None


def name_from_email(email: str) -> str:
    local = email.split("@", 1)[0]
    words = [w for w in SEPARATOR_RE.split(local) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def email_domain(email: str | None) -> str | None:
    if not email or "@" not in email:
        return None
    return email.rsplit("@", 1)[1].strip().lower() or None
