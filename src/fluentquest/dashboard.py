"""Learner dashboard: XP level labels and progress statistics."""
from fluentquest.db import get_connection
from fluentquest.errors import NotFoundError


def get_level_label(xp: int) -> str:
    if xp >= 2000:
        return "MASTER"
    elif xp >= 750:
        return "EXPERT"
    elif xp >= 200:
        return "INTERMEDIATE"
    return "ROOKIE"


def get_level_color(xp: int) -> str:
    if xp >= 2000:
        return "magenta"
    elif xp >= 750:
        return "green"
    elif xp >= 200:
        return "yellow"
    return "cyan"


def get_user_stats(db_path: str, user_id: int) -> dict:
    conn = get_connection(db_path)
    user = conn.execute("SELECT xp, streak FROM users WHERE id = ?", (user_id,)).fetchone()
    if user is None:
        conn.close()
        raise NotFoundError("User not found", {"user_id": user_id})
    lessons = conn.execute(
        """SELECT COUNT(*) as n, AVG(score) as avg FROM lesson_progress
        WHERE user_id = ? AND completed = 1""",
        (user_id,),
    ).fetchone()
    claimed = conn.execute(
        "SELECT COUNT(*) FROM user_quests WHERE user_id = ? AND claimed = 1", (user_id,)
    ).fetchone()[0]
    quizzes = conn.execute(
        """SELECT COUNT(*) as n, AVG(score) as avg FROM daily_quiz_progress
        WHERE user_id = ? AND completed = 1""",
        (user_id,),
    ).fetchone()
    conn.close()
    return {
        "xp": user["xp"],
        "streak": user["streak"],
        "level": get_level_label(user["xp"]),
        "lessons_completed": lessons["n"],
        "avg_lesson_score": round(lessons["avg"], 1) if lessons["avg"] is not None else 0.0,
        "quests_claimed": claimed,
        "daily_quizzes_taken": quizzes["n"],
        "avg_daily_quiz_score": round(quizzes["avg"], 1) if quizzes["avg"] is not None else 0.0,
    }
