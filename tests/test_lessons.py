# tests/test_lessons.py
import pytest

from fluentquest.db import init_db, get_connection
from fluentquest.errors import InvalidInputError, NotFoundError
from fluentquest.lessons import (
    create_lesson, list_lessons, get_lesson, complete_lesson,
    get_lesson_progress, get_all_lesson_progress, lesson_xp_for_score, score_lesson_quiz,
)
from fluentquest.settings import set_lesson_xp_policy, LESSON_XP_FIRST_COMPLETION
from fluentquest.users import create_user, get_user

QUIZ = [
    {"question": "Hi?", "options": ["Hello", "Hi", "Bye"], "correct_index": 1},
    {"question": "Eat?", "options": ["Sleep", "Consume food"], "correct_index": 1},
]


def _setup(db_path):
    init_db(db_path)
    user = create_user(db_path, "ana")
    lesson = create_lesson(db_path, "Greetings", "# Hello", "Beginner", "en", 1, QUIZ)
    return user, lesson


def test_list_lessons_ordered_and_filtered(tmp_db):
    init_db(tmp_db)
    create_lesson(tmp_db, "Second", "c", "Beginner", "en", 2)
    create_lesson(tmp_db, "Business", "c", "Intermediate", "en", 3)
    create_lesson(tmp_db, "First", "c", "Beginner", "en", 1)
    assert [l.title for l in list_lessons(tmp_db)] == ["First", "Second", "Business"]
    assert [l.title for l in list_lessons(tmp_db, "Intermediate")] == ["Business"]


def test_get_lesson_not_found(tmp_db):
    init_db(tmp_db)
    with pytest.raises(NotFoundError):
        get_lesson(tmp_db, 42)


def test_create_lesson_rejects_bad_answer_index(tmp_db):
    init_db(tmp_db)
    with pytest.raises(InvalidInputError):
        create_lesson(tmp_db, "Bad", "c", "Beginner", "en", 1,
                      [{"question": "?", "options": ["a"], "correct_index": 3}])


def test_complete_lesson_creates_progress(tmp_db):
    user, lesson = _setup(tmp_db)
    progress = complete_lesson(tmp_db, user.id, lesson.id, 70, [1, 0])
    assert progress.completed is True
    assert progress.score == 70
    assert progress.user_answers == [1, 0]
    assert progress.completed_at is not None


def test_lesson_score_never_regresses(tmp_db):
    user, lesson = _setup(tmp_db)
    for score in [40, 90, 60, 85]:
        complete_lesson(tmp_db, user.id, lesson.id, score)
    assert get_lesson_progress(tmp_db, user.id, lesson.id).score == 90
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM lesson_progress").fetchone()[0] == 1
    conn.close()


def test_latest_answers_overwrite_previous(tmp_db):
    user, lesson = _setup(tmp_db)
    complete_lesson(tmp_db, user.id, lesson.id, 100, [1, 1])
    progress = complete_lesson(tmp_db, user.id, lesson.id, 0, [0, 0])
    assert progress.user_answers == [0, 0]
    assert progress.score == 100


def test_answers_kept_when_not_resubmitted(tmp_db):
    user, lesson = _setup(tmp_db)
    complete_lesson(tmp_db, user.id, lesson.id, 50, [1, 0])
    progress = complete_lesson(tmp_db, user.id, lesson.id, 60)
    assert progress.user_answers == [1, 0]


def test_lesson_xp_base_and_bonus():
    assert lesson_xp_for_score(80) == 10
    assert lesson_xp_for_score(81) == 15
    assert lesson_xp_for_score(0) == 10


def test_complete_lesson_grants_xp(tmp_db):
    user, lesson = _setup(tmp_db)
    complete_lesson(tmp_db, user.id, lesson.id, 90)
    assert get_user(tmp_db, user.id).xp == 15


def test_repeat_completion_grants_xp_again_by_default(tmp_db):
    user, lesson = _setup(tmp_db)
    complete_lesson(tmp_db, user.id, lesson.id, 90)
    complete_lesson(tmp_db, user.id, lesson.id, 50)
    assert get_user(tmp_db, user.id).xp == 25


def test_first_completion_policy_grants_once(tmp_db):
    user, lesson = _setup(tmp_db)
    set_lesson_xp_policy(tmp_db, LESSON_XP_FIRST_COMPLETION)
    complete_lesson(tmp_db, user.id, lesson.id, 90)
    complete_lesson(tmp_db, user.id, lesson.id, 100)
    assert get_user(tmp_db, user.id).xp == 15
    assert get_lesson_progress(tmp_db, user.id, lesson.id).score == 100


def test_unknown_policy_rejected(tmp_db):
    init_db(tmp_db)
    with pytest.raises(InvalidInputError):
        set_lesson_xp_policy(tmp_db, "sometimes")


@pytest.mark.parametrize("score", [-1, 101, 50.5, "90", True])
def test_complete_lesson_rejects_bad_score(tmp_db, score):
    user, lesson = _setup(tmp_db)
    with pytest.raises(InvalidInputError):
        complete_lesson(tmp_db, user.id, lesson.id, score)
    assert get_user(tmp_db, user.id).xp == 0


def test_complete_missing_lesson(tmp_db):
    user, _ = _setup(tmp_db)
    with pytest.raises(NotFoundError):
        complete_lesson(tmp_db, user.id, 999, 50)
    assert get_user(tmp_db, user.id).xp == 0


def test_complete_lesson_missing_user(tmp_db):
    _, lesson = _setup(tmp_db)
    with pytest.raises(NotFoundError):
        complete_lesson(tmp_db, 999, lesson.id, 50)


def test_get_all_lesson_progress(tmp_db):
    user, lesson = _setup(tmp_db)
    other = create_lesson(tmp_db, "Verbs", "c", "Beginner", "en", 2)
    complete_lesson(tmp_db, user.id, lesson.id, 50)
    complete_lesson(tmp_db, user.id, other.id, 60)
    assert [p.lesson_id for p in get_all_lesson_progress(tmp_db, user.id)] == [lesson.id, other.id]


def test_get_lesson_progress_none_before_attempt(tmp_db):
    user, lesson = _setup(tmp_db)
    assert get_lesson_progress(tmp_db, user.id, lesson.id) is None


def test_score_lesson_quiz(tmp_db):
    _, lesson = _setup(tmp_db)
    assert score_lesson_quiz(lesson, [1, 1]) == 100
    assert score_lesson_quiz(lesson, [1, 0]) == 50
    no_quiz = create_lesson(tmp_db, "Reading", "c", "Beginner", "en", 2)
    assert score_lesson_quiz(no_quiz, []) == 100


@pytest.mark.parametrize("question", [
    {"options": ["a", "b"], "correct_index": 0},
    {"question": "?", "options": [], "correct_index": 0},
    {"question": "?", "options": ["a", "b"], "correct_index": "0"},
])
def test_create_lesson_rejects_malformed_question(tmp_db, question):
    init_db(tmp_db)
    with pytest.raises(InvalidInputError):
        create_lesson(tmp_db, "Bad", "c", "Beginner", "en", 1, [question])
    assert list_lessons(tmp_db) == []


@pytest.mark.parametrize("answers", ["1,0", [1, "0"], [1, None], [True, 0], {"a": 1}])
def test_complete_lesson_rejects_bad_answers(tmp_db, answers):
    user, lesson = _setup(tmp_db)
    with pytest.raises(InvalidInputError):
        complete_lesson(tmp_db, user.id, lesson.id, 50, answers)
    assert get_lesson_progress(tmp_db, user.id, lesson.id) is None
    assert get_user(tmp_db, user.id).xp == 0
