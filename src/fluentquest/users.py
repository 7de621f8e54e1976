"""User accounts and onboarding."""
import logging
import sqlite3
from datetime import datetime

from fluentquest.db import get_connection
from fluentquest.errors import InvalidInputError, InvalidStateError, NotFoundError
from fluentquest.models import User
from fluentquest.settings import LANGUAGES, SKILL_LEVELS

logger = logging.getLogger(__name__)


def create_user(db_path: str, username: str, display_name: str | None = None) -> User:
    username = username.strip()
    if not username:
        raise InvalidInputError("Username is required")
    conn = get_connection(db_path)
    try:
        cur = conn.execute(
            "INSERT INTO users (username, display_name, created_at) VALUES (?, ?, ?)",
            (username, display_name, datetime.now().isoformat()),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        conn.close()
        raise InvalidStateError(f"Username already taken: {username}")
    row = conn.execute("SELECT * FROM users WHERE id = ?", (cur.lastrowid,)).fetchone()
    conn.close()
    logger.info("Created user %s (id=%s)", username, row["id"])
    return User.from_row(row)


def get_user(db_path: str, user_id: int) -> User:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError("User not found", {"user_id": user_id})
    return User.from_row(row)


def get_user_by_username(db_path: str, username: str) -> User | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM users WHERE username = ?", (username.strip(),)).fetchone()
    conn.close()
    return User.from_row(row) if row else None


def complete_onboarding(
    db_path: str,
    user_id: int,
    skill_level: str,
    target_language: str,
    daily_time_minutes: int,
) -> User:
    """Record the onboarding answers that drive content and quiz selection."""
    if skill_level not in SKILL_LEVELS:
        raise InvalidInputError(f"Unknown skill level: {skill_level}")
    if target_language not in LANGUAGES:
        raise InvalidInputError(f"Unsupported language: {target_language}")
    if not isinstance(daily_time_minutes, int) or not 5 <= daily_time_minutes <= 30:
        raise InvalidInputError("Daily time must be between 5 and 30 minutes")
    conn = get_connection(db_path)
    cur = conn.execute(
        """UPDATE users SET skill_level = ?, target_language = ?, daily_time_minutes = ?,
        onboarding_complete = 1 WHERE id = ?""",
        (skill_level, target_language, daily_time_minutes, user_id),
    )
    conn.commit()
    conn.close()
    if cur.rowcount == 0:
        raise NotFoundError("User not found", {"user_id": user_id})
    return get_user(db_path, user_id)
