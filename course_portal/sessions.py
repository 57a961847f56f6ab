"""Server-side login sessions.

A session is an opaque random token mapped to a student row with an
expiry. The web layer resolves the token once per request and keeps the
result on ``flask.g``.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from . import config, db

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_session(student_id: int, ttl_hours: Optional[int] = None) -> str:
    ttl_hours = config.SESSION_TTL_HOURS if ttl_hours is None else ttl_hours
    purge_expired()
    token = secrets.token_urlsafe(32)
    expires_at = _now() + timedelta(hours=ttl_hours)
    db.execute(
        "INSERT INTO sessions (token, student_id, expires_at) VALUES (?, ?, ?)",
        (token, student_id, expires_at.isoformat(timespec="microseconds")),
    )
    return token


def resolve(token: Optional[str]) -> Optional[int]:
    """Return the student id behind ``token``, or None if unknown or expired."""
    if not token:
        return None

    row = db.fetch_one(
        "SELECT student_id, expires_at FROM sessions WHERE token = ?", (token,)
    )
    if row is None:
        return None

    if datetime.fromisoformat(row["expires_at"]) <= _now():
        logger.debug("Session expired for student %s", row["student_id"])
        destroy(token)
        return None

    return row["student_id"]


def purge_expired() -> None:
    # ISO timestamps in one timezone sort the same as the instants they name
    db.execute(
        "DELETE FROM sessions WHERE expires_at <= ?",
        (_now().isoformat(timespec="microseconds"),),
    )


def destroy(token: Optional[str]) -> None:
    if token:
        db.execute("DELETE FROM sessions WHERE token = ?", (token,))
