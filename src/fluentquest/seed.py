"""Seed the database with starter lessons, quests and today's daily quizzes."""
import json
from datetime import date
from pathlib import Path

from fluentquest.db import get_connection
from fluentquest.lessons import create_lesson
from fluentquest.quests import create_quest
from fluentquest.quiz import create_daily_quiz, find_daily_quiz
from fluentquest.settings import QUIZ_REWARD_BY_DIFFICULTY, SKILL_LEVELS

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database has already been seeded with lessons."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM lessons").fetchone()[0]
    conn.close()
    return count > 0


def seed_lessons(db_path: str) -> None:
    """Insert the starter lessons from lessons.json."""
    data = json.loads((CONTENT_DIR / "lessons.json").read_text())
    for lesson in data["lessons"]:
        create_lesson(
            db_path,
            title=lesson["title"],
            content=lesson["content"],
            difficulty=lesson["difficulty"],
            language=lesson["language"],
            sort_order=lesson["sort_order"],
            quiz_config=lesson["quiz_config"],
        )


def seed_quests(db_path: str) -> None:
    """Insert the starter quests from quests.json, unless any quest exists."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM quests").fetchone()[0]
    conn.close()
    if count:
        return
    data = json.loads((CONTENT_DIR / "quests.json").read_text())
    for q in data["quests"]:
        create_quest(db_path, q["type"], q["description"], q["target_count"], q["reward_xp"], q["criteria"])


def seed_daily_quizzes(db_path: str, quiz_date: str | None = None) -> int:
    """Create the day's quiz for every skill tier that lacks one. Returns how many were added."""
    quiz_date = quiz_date or date.today().isoformat()
    question_sets = json.loads((CONTENT_DIR / "daily_quizzes.json").read_text())
    added = 0
    for difficulty in SKILL_LEVELS:
        if find_daily_quiz(db_path, quiz_date, difficulty):
            continue
        create_daily_quiz(
            db_path,
            quiz_date=quiz_date,
            difficulty=difficulty,
            title=f"Daily {difficulty.capitalize()} Quiz",
            questions=question_sets.get(difficulty, question_sets["beginner"]),
            reward_xp=QUIZ_REWARD_BY_DIFFICULTY[difficulty],
        )
        added += 1
    return added


def seed_all(db_path: str, quiz_date: str | None = None) -> None:
    """Seed static content once; daily quizzes are topped up on every run."""
    if not is_seeded(db_path):
        seed_lessons(db_path)
    seed_quests(db_path)
    seed_daily_quizzes(db_path, quiz_date)
