"""XP rules, enumerations and persisted app settings."""
from fluentquest.db import get_connection
from fluentquest.errors import InvalidInputError

SKILL_LEVELS = ("beginner", "intermediate", "expert", "master")
DEFAULT_SKILL_LEVEL = "beginner"

LANGUAGES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "hi": "Hindi",
    "de": "German",
    "pt": "Portuguese",
    "zh": "Chinese",
    "ja": "Japanese",
}

LESSON_BASE_XP = 10
LESSON_BONUS_XP = 5
LESSON_BONUS_THRESHOLD = 80  # bonus when score is strictly above

QUIZ_BONUS_XP = 10
QUIZ_BONUS_THRESHOLD = 80  # bonus when score is at or above
DEFAULT_QUIZ_REWARD_XP = 25
QUIZ_REWARD_BY_DIFFICULTY = {
    "beginner": 15,
    "intermediate": 25,
    "expert": 35,
    "master": 50,
}

QUEST_TYPES = ("Daily", "Monthly")

# Repeat lesson completions either keep earning XP or only the first one does.
LESSON_XP_POLICY_KEY = "lesson_xp_policy"
LESSON_XP_EVERY_COMPLETION = "every_completion"
LESSON_XP_FIRST_COMPLETION = "first_completion"
LESSON_XP_POLICIES = (LESSON_XP_EVERY_COMPLETION, LESSON_XP_FIRST_COMPLETION)


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM app_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO app_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_lesson_xp_policy(db_path: str) -> str:
    return get_setting(db_path, LESSON_XP_POLICY_KEY, LESSON_XP_EVERY_COMPLETION)


def set_lesson_xp_policy(db_path: str, policy: str) -> None:
    if policy not in LESSON_XP_POLICIES:
        raise InvalidInputError(f"Unknown lesson XP policy: {policy}")
    set_setting(db_path, LESSON_XP_POLICY_KEY, policy)
