# tests/test_dashboard.py
import pytest

from fluentquest.dashboard import get_level_label, get_level_color, get_user_stats
from fluentquest.db import init_db
from fluentquest.errors import NotFoundError
from fluentquest.lessons import create_lesson, complete_lesson
from fluentquest.quests import create_quest, update_quest_progress, claim_quest
from fluentquest.quiz import create_daily_quiz, submit_daily_quiz
from fluentquest.users import create_user

QUESTIONS = [
    {"question": "Hola?", "options": ["Hello", "Bye"], "correct_index": 0},
    {"question": "Adios?", "options": ["Hello", "Bye"], "correct_index": 1},
]


@pytest.mark.parametrize("xp,label,color", [
    (0, "ROOKIE", "cyan"),
    (199, "ROOKIE", "cyan"),
    (200, "INTERMEDIATE", "yellow"),
    (750, "EXPERT", "green"),
    (2000, "MASTER", "magenta"),
])
def test_level_labels(xp, label, color):
    assert get_level_label(xp) == label
    assert get_level_color(xp) == color


def test_stats_empty(tmp_db):
    init_db(tmp_db)
    user = create_user(tmp_db, "ana")
    stats = get_user_stats(tmp_db, user.id)
    assert stats["xp"] == 0
    assert stats["level"] == "ROOKIE"
    assert stats["lessons_completed"] == 0
    assert stats["avg_lesson_score"] == 0.0
    assert stats["quests_claimed"] == 0
    assert stats["daily_quizzes_taken"] == 0


def test_stats_after_activity(tmp_db):
    init_db(tmp_db)
    user = create_user(tmp_db, "ana")
    first = create_lesson(tmp_db, "One", "c", "Beginner", "en", 1)
    second = create_lesson(tmp_db, "Two", "c", "Beginner", "en", 2)
    complete_lesson(tmp_db, user.id, first.id, 90)
    complete_lesson(tmp_db, user.id, second.id, 60)
    quest = create_quest(tmp_db, "Daily", "Complete 1 Lesson", 1, 50, "lesson_completion")
    update_quest_progress(tmp_db, user.id, quest.id, 1)
    claim_quest(tmp_db, user.id, quest.id)
    quiz = create_daily_quiz(tmp_db, "2026-03-01", "beginner", "Quiz", QUESTIONS, 15)
    submit_daily_quiz(tmp_db, user.id, quiz.id, [0, 0])

    stats = get_user_stats(tmp_db, user.id)
    assert stats["xp"] == 15 + 10 + 50 + 15
    assert stats["lessons_completed"] == 2
    assert stats["avg_lesson_score"] == 75.0
    assert stats["quests_claimed"] == 1
    assert stats["daily_quizzes_taken"] == 1
    assert stats["avg_daily_quiz_score"] == 50.0


def test_stats_missing_user(tmp_db):
    init_db(tmp_db)
    with pytest.raises(NotFoundError):
        get_user_stats(tmp_db, 999)
