"""Daily quiz engine: selection, answer stripping and server-side scoring."""
import json
import logging
import sqlite3
from datetime import date, datetime

from fluentquest.db import get_connection, write_transaction
from fluentquest.errors import (
    AlreadyCompletedError, InvalidInputError, InvalidStateError, NotFoundError,
)
from fluentquest.models import DailyQuiz, DailyQuizProgress, QuizQuestion
from fluentquest.settings import (
    DEFAULT_QUIZ_REWARD_XP, DEFAULT_SKILL_LEVEL, QUIZ_BONUS_THRESHOLD, QUIZ_BONUS_XP,
    SKILL_LEVELS,
)
from fluentquest.xp import grant_xp

logger = logging.getLogger(__name__)


def score_answers(questions: list[QuizQuestion], answers: list[int]) -> int:
    """Percentage of answers matching the correct index, rounded half up."""
    total = len(questions)
    if total == 0:
        return 0
    correct = sum(1 for q, a in zip(questions, answers) if a == q.correct_index)
    return (200 * correct + total) // (2 * total)


def quiz_xp_for_score(reward_xp: int, score: int) -> int:
    return reward_xp + (QUIZ_BONUS_XP if score >= QUIZ_BONUS_THRESHOLD else 0)


def strip_answers(quiz: DailyQuiz, completed: bool) -> dict:
    """Serialize a quiz, hiding correct indices until the user has completed it."""
    return {
        "id": quiz.id,
        "quiz_date": quiz.quiz_date,
        "difficulty": quiz.difficulty,
        "title": quiz.title,
        "reward_xp": quiz.reward_xp,
        "questions": [q.to_dict(include_answer=completed) for q in quiz.questions],
    }


def validate_questions(questions: list[dict]) -> list[QuizQuestion]:
    """Check question shape before anything is stored; raises InvalidInputError."""
    if not isinstance(questions, list):
        raise InvalidInputError("Questions must be a list")
    validated = []
    for i, q in enumerate(questions):
        if not isinstance(q, dict):
            raise InvalidInputError("Each question must be an object", {"index": i})
        text = q.get("question")
        options = q.get("options")
        index = q.get("correct_index")
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Question text is required", {"index": i})
        if not isinstance(options, list) or not options or not all(isinstance(o, str) for o in options):
            raise InvalidInputError("Options must be a non-empty list of strings", {"index": i})
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(options):
            raise InvalidInputError("Quiz answer index out of range", {"index": i, "question": text})
        validated.append(QuizQuestion.from_dict(q))
    return validated


def create_daily_quiz(
    db_path: str,
    quiz_date: str,
    difficulty: str,
    title: str,
    questions: list[dict],
    reward_xp: int = DEFAULT_QUIZ_REWARD_XP,
) -> DailyQuiz:
    if difficulty not in SKILL_LEVELS:
        raise InvalidInputError(f"Unknown difficulty: {difficulty}")
    if not questions:
        raise InvalidInputError("A daily quiz needs at least one question")
    stored = [q.to_dict() for q in validate_questions(questions)]
    conn = get_connection(db_path)
    try:
        cur = conn.execute(
            """INSERT INTO daily_quizzes (quiz_date, difficulty, title, questions, reward_xp, created_at)
            VALUES (?, ?, ?, ?, ?, ?)""",
            (quiz_date, difficulty, title, json.dumps(stored), reward_xp, datetime.now().isoformat()),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        conn.close()
        raise InvalidStateError(
            "A daily quiz already exists for this date and difficulty",
            {"quiz_date": quiz_date, "difficulty": difficulty},
        )
    row = conn.execute("SELECT * FROM daily_quizzes WHERE id = ?", (cur.lastrowid,)).fetchone()
    conn.close()
    return DailyQuiz.from_row(row)


def find_daily_quiz(db_path: str, quiz_date: str, difficulty: str) -> DailyQuiz | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM daily_quizzes WHERE quiz_date = ? AND difficulty = ?",
        (quiz_date, difficulty),
    ).fetchone()
    conn.close()
    return DailyQuiz.from_row(row) if row else None


def get_daily_quiz_progress(db_path: str, user_id: int, quiz_id: int) -> DailyQuizProgress | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM daily_quiz_progress WHERE user_id = ? AND quiz_id = ?",
        (user_id, quiz_id),
    ).fetchone()
    conn.close()
    return DailyQuizProgress.from_row(row) if row else None


def _quiz_view(db_path: str, user_id: int, quiz: DailyQuiz) -> dict:
    progress = get_daily_quiz_progress(db_path, user_id, quiz.id)
    completed = bool(progress and progress.completed)
    return {
        "quiz": strip_answers(quiz, completed),
        "completed": completed,
        "score": progress.score if progress else None,
        "user_answers": progress.user_answers if progress else None,
    }


def get_daily_quiz(
    db_path: str,
    user_id: int,
    quiz_date: str | None = None,
    difficulty: str | None = None,
) -> dict:
    """Today's quiz for the user's skill tier, with answers hidden until completed."""
    conn = get_connection(db_path)
    row = conn.execute("SELECT skill_level FROM users WHERE id = ?", (user_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError("User not found", {"user_id": user_id})
    if difficulty is None:
        difficulty = row["skill_level"] or DEFAULT_SKILL_LEVEL
    quiz_date = quiz_date or date.today().isoformat()
    quiz = find_daily_quiz(db_path, quiz_date, difficulty)
    if quiz is None:
        raise NotFoundError(
            "No daily quiz available for today",
            {"quiz_date": quiz_date, "difficulty": difficulty},
        )
    return _quiz_view(db_path, user_id, quiz)


def get_daily_quiz_by_id(db_path: str, user_id: int, quiz_id: int) -> dict:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM daily_quizzes WHERE id = ?", (quiz_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError("Quiz not found", {"quiz_id": quiz_id})
    return _quiz_view(db_path, user_id, DailyQuiz.from_row(row))


def submit_daily_quiz(db_path: str, user_id: int, quiz_id: int, answers: list[int]) -> dict:
    """Score a submission server-side and record it; each quiz completes once per user.

    Returns a dict with the score, the stored progress and the XP awarded.
    """
    with write_transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM daily_quizzes WHERE id = ?", (quiz_id,)).fetchone()
        if row is None:
            raise NotFoundError("Quiz not found", {"quiz_id": quiz_id})
        quiz = DailyQuiz.from_row(row)
        if conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is None:
            raise NotFoundError("User not found", {"user_id": user_id})

        existing = conn.execute(
            "SELECT completed FROM daily_quiz_progress WHERE user_id = ? AND quiz_id = ?",
            (user_id, quiz_id),
        ).fetchone()
        if existing and existing["completed"]:
            raise AlreadyCompletedError("Quiz already completed", {"quiz_id": quiz_id})

        if not isinstance(answers, (list, tuple)) or len(answers) != len(quiz.questions):
            raise InvalidInputError("Invalid answers", {"expected": len(quiz.questions)})
        if any(isinstance(a, bool) or not isinstance(a, int) for a in answers):
            raise InvalidInputError("Answers must be option indices")

        score = score_answers(quiz.questions, answers)
        cur = conn.execute(
            """INSERT INTO daily_quiz_progress (user_id, quiz_id, completed, score, user_answers, completed_at)
            VALUES (?, ?, 1, ?, ?, ?)
            ON CONFLICT(user_id, quiz_id) DO UPDATE SET
                completed = 1, score = excluded.score,
                user_answers = excluded.user_answers, completed_at = excluded.completed_at
            WHERE daily_quiz_progress.completed = 0""",
            (user_id, quiz_id, score, json.dumps(list(answers)), datetime.now().isoformat()),
        )
        if cur.rowcount == 0:
            raise AlreadyCompletedError("Quiz already completed", {"quiz_id": quiz_id})

        xp_awarded = quiz_xp_for_score(quiz.reward_xp, score)
        grant_xp(conn, user_id, xp_awarded, "daily_quiz", quiz_id)
        progress = conn.execute(
            "SELECT * FROM daily_quiz_progress WHERE user_id = ? AND quiz_id = ?",
            (user_id, quiz_id),
        ).fetchone()

    logger.info("User %s completed daily quiz %s with score %d", user_id, quiz_id, score)
    return {
        "score": score,
        "progress": DailyQuizProgress.from_row(progress),
        "xp_awarded": xp_awarded,
    }
