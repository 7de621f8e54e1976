"""Database initialization and connection management."""
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "FLUENTQUEST_DB", str(Path.home() / ".fluentquest" / "fluentquest.db")
)
DB_TIMEOUT = 10.0

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    display_name TEXT,
    xp INTEGER NOT NULL DEFAULT 0 CHECK (xp >= 0),
    streak INTEGER NOT NULL DEFAULT 0,
    skill_level TEXT,
    target_language TEXT,
    daily_time_minutes INTEGER,
    onboarding_complete INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS lessons (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    difficulty TEXT NOT NULL,
    language TEXT NOT NULL,
    sort_order INTEGER NOT NULL,
    quiz_config TEXT DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS lesson_progress (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    lesson_id INTEGER NOT NULL REFERENCES lessons(id),
    completed INTEGER NOT NULL DEFAULT 0,
    score INTEGER,
    user_answers TEXT,
    completed_at TEXT,
    UNIQUE(user_id, lesson_id)
);

CREATE TABLE IF NOT EXISTS quests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    description TEXT NOT NULL,
    target_count INTEGER NOT NULL CHECK (target_count > 0),
    reward_xp INTEGER NOT NULL,
    criteria TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_quests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    quest_id INTEGER NOT NULL REFERENCES quests(id),
    progress INTEGER NOT NULL DEFAULT 0,
    completed INTEGER NOT NULL DEFAULT 0,
    claimed INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT,
    UNIQUE(user_id, quest_id)
);

CREATE TABLE IF NOT EXISTS daily_quizzes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    quiz_date TEXT NOT NULL,
    difficulty TEXT NOT NULL,
    title TEXT NOT NULL,
    questions TEXT NOT NULL,
    reward_xp INTEGER NOT NULL DEFAULT 25,
    created_at TEXT,
    UNIQUE(quiz_date, difficulty)
);

CREATE TABLE IF NOT EXISTS daily_quiz_progress (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    quiz_id INTEGER NOT NULL REFERENCES daily_quizzes(id),
    completed INTEGER NOT NULL DEFAULT 0,
    score INTEGER,
    user_answers TEXT,
    completed_at TEXT,
    UNIQUE(user_id, quiz_id)
);

CREATE TABLE IF NOT EXISTS xp_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    amount INTEGER NOT NULL,
    source_type TEXT NOT NULL,
    source_id TEXT NOT NULL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS app_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path, timeout=DB_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def write_transaction(db_path: str = DEFAULT_DB_PATH):
    """Yield a connection holding the database write lock until commit.

    BEGIN IMMEDIATE takes the reserved lock up front, so reads made inside
    the block cannot be invalidated by another writer before the commit.
    """
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
