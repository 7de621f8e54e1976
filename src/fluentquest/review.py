"""Weak lesson identification for review suggestions."""
from fluentquest.db import get_connection


def get_weak_lessons(db_path: str, user_id: int, threshold: float = 70.0) -> list[dict]:
    """Completed lessons whose best score is below threshold (sorted worst first)."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT l.id, l.title, l.difficulty, p.score
        FROM lesson_progress p
        JOIN lessons l ON p.lesson_id = l.id
        WHERE p.user_id = ? AND p.completed = 1 AND p.score < ?
        ORDER BY p.score ASC, l.sort_order ASC""",
        (user_id, threshold),
    ).fetchall()
    conn.close()
    return [
        {
            "lesson_id": r["id"],
            "title": r["title"],
            "difficulty": r["difficulty"],
            "score": r["score"],
        }
        for r in rows
    ]


def get_next_lesson(db_path: str, user_id: int) -> dict | None:
    """First lesson in course order the user has not completed yet."""
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT l.id, l.title, l.difficulty FROM lessons l
        LEFT JOIN lesson_progress p ON p.lesson_id = l.id AND p.user_id = ? AND p.completed = 1
        WHERE p.id IS NULL
        ORDER BY l.sort_order LIMIT 1""",
        (user_id,),
    ).fetchone()
    conn.close()
    return dict(row) if row else None
