"""Lesson catalogue and lesson completion tracking."""
import json
import logging
from datetime import datetime

from fluentquest.db import get_connection, write_transaction
from fluentquest.errors import InvalidInputError, NotFoundError
from fluentquest.models import Lesson, LessonProgress
from fluentquest.quiz import score_answers, validate_questions
from fluentquest.settings import (
    LESSON_BASE_XP, LESSON_BONUS_THRESHOLD, LESSON_BONUS_XP,
    LESSON_XP_FIRST_COMPLETION, get_lesson_xp_policy,
)
from fluentquest.xp import grant_xp

logger = logging.getLogger(__name__)


def list_lessons(db_path: str, difficulty: str | None = None) -> list[Lesson]:
    conn = get_connection(db_path)
    if difficulty:
        rows = conn.execute(
            "SELECT * FROM lessons WHERE difficulty = ? ORDER BY sort_order", (difficulty,)
        ).fetchall()
    else:
        rows = conn.execute("SELECT * FROM lessons ORDER BY sort_order").fetchall()
    conn.close()
    return [Lesson.from_row(r) for r in rows]


def get_lesson(db_path: str, lesson_id: int) -> Lesson:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM lessons WHERE id = ?", (lesson_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError("Lesson not found", {"lesson_id": lesson_id})
    return Lesson.from_row(row)


def create_lesson(
    db_path: str,
    title: str,
    content: str,
    difficulty: str,
    language: str,
    sort_order: int,
    quiz_config: list[dict] | None = None,
) -> Lesson:
    """Admin action: add a lesson with an optional quiz."""
    stored = [q.to_dict() for q in validate_questions(quiz_config or [])]
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO lessons (title, content, difficulty, language, sort_order, quiz_config)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (title, content, difficulty, language, sort_order, json.dumps(stored)),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM lessons WHERE id = ?", (cur.lastrowid,)).fetchone()
    conn.close()
    return Lesson.from_row(row)


def lesson_xp_for_score(score: int) -> int:
    return LESSON_BASE_XP + (LESSON_BONUS_XP if score > LESSON_BONUS_THRESHOLD else 0)


def complete_lesson(
    db_path: str,
    user_id: int,
    lesson_id: int,
    score: int,
    user_answers: list[int] | None = None,
) -> LessonProgress:
    """Record a lesson attempt, keeping the best score, and grant XP.

    XP is granted on every call unless the lesson XP policy is set to
    first completion only.
    """
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
        raise InvalidInputError("Score must be an integer between 0 and 100", {"score": score})
    if user_answers is not None and (
        not isinstance(user_answers, (list, tuple))
        or any(isinstance(a, bool) or not isinstance(a, int) for a in user_answers)
    ):
        raise InvalidInputError("Answers must be a list of option indices")
    policy = get_lesson_xp_policy(db_path)
    now = datetime.now().isoformat()
    answers_json = json.dumps(list(user_answers)) if user_answers is not None else None

    with write_transaction(db_path) as conn:
        if conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is None:
            raise NotFoundError("User not found", {"user_id": user_id})
        if conn.execute("SELECT 1 FROM lessons WHERE id = ?", (lesson_id,)).fetchone() is None:
            raise NotFoundError("Lesson not found", {"lesson_id": lesson_id})

        existing = conn.execute(
            "SELECT * FROM lesson_progress WHERE user_id = ? AND lesson_id = ?",
            (user_id, lesson_id),
        ).fetchone()
        if existing:
            conn.execute(
                """UPDATE lesson_progress
                SET completed = 1, score = MAX(COALESCE(score, 0), ?),
                    user_answers = COALESCE(?, user_answers), completed_at = ?
                WHERE id = ?""",
                (score, answers_json, now, existing["id"]),
            )
        else:
            conn.execute(
                """INSERT INTO lesson_progress (user_id, lesson_id, completed, score, user_answers, completed_at)
                VALUES (?, ?, 1, ?, ?, ?)""",
                (user_id, lesson_id, score, answers_json, now),
            )

        repeat = existing is not None and existing["completed"]
        if not (repeat and policy == LESSON_XP_FIRST_COMPLETION):
            grant_xp(conn, user_id, lesson_xp_for_score(score), "lesson", lesson_id)
        else:
            logger.info("User %s repeated lesson %s; no xp under %s", user_id, lesson_id, policy)

        row = conn.execute(
            "SELECT * FROM lesson_progress WHERE user_id = ? AND lesson_id = ?",
            (user_id, lesson_id),
        ).fetchone()
    return LessonProgress.from_row(row)


def get_lesson_progress(db_path: str, user_id: int, lesson_id: int) -> LessonProgress | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM lesson_progress WHERE user_id = ? AND lesson_id = ?",
        (user_id, lesson_id),
    ).fetchone()
    conn.close()
    return LessonProgress.from_row(row) if row else None


def get_all_lesson_progress(db_path: str, user_id: int) -> list[LessonProgress]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM lesson_progress WHERE user_id = ? ORDER BY lesson_id", (user_id,)
    ).fetchall()
    conn.close()
    return [LessonProgress.from_row(r) for r in rows]


def score_lesson_quiz(lesson: Lesson, answers: list[int]) -> int:
    """Percentage score for a lesson's quiz; lessons without a quiz score 100."""
    if not lesson.quiz_config:
        return 100
    return score_answers(lesson.quiz_config, answers)
