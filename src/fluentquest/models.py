"""Data classes for the progression domain model."""
import json
import sqlite3
from dataclasses import dataclass, field
from typing import Optional


def _load_json(value: Optional[str], default=None):
    if value is None:
        return default
    return json.loads(value)


@dataclass
class User:
    id: int
    username: str
    display_name: Optional[str] = None
    xp: int = 0
    streak: int = 0
    skill_level: Optional[str] = None
    target_language: Optional[str] = None
    daily_time_minutes: Optional[int] = None
    onboarding_complete: bool = False

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "User":
        return cls(
            id=row["id"],
            username=row["username"],
            display_name=row["display_name"],
            xp=row["xp"],
            streak=row["streak"],
            skill_level=row["skill_level"],
            target_language=row["target_language"],
            daily_time_minutes=row["daily_time_minutes"],
            onboarding_complete=bool(row["onboarding_complete"]),
        )


@dataclass
class QuizQuestion:
    question: str
    options: list[str]
    correct_index: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "QuizQuestion":
        return cls(
            question=data["question"],
            options=list(data["options"]),
            correct_index=data.get("correct_index"),
        )

    def to_dict(self, include_answer: bool = True) -> dict:
        data = {"question": self.question, "options": list(self.options)}
        if include_answer:
            data["correct_index"] = self.correct_index
        return data


@dataclass
class Lesson:
    id: int
    title: str
    content: str
    difficulty: str
    language: str
    sort_order: int
    quiz_config: list[QuizQuestion] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Lesson":
        return cls(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            difficulty=row["difficulty"],
            language=row["language"],
            sort_order=row["sort_order"],
            quiz_config=[QuizQuestion.from_dict(q) for q in _load_json(row["quiz_config"], [])],
        )


@dataclass
class LessonProgress:
    id: int
    user_id: int
    lesson_id: int
    completed: bool = False
    score: Optional[int] = None
    user_answers: Optional[list[int]] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "LessonProgress":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            lesson_id=row["lesson_id"],
            completed=bool(row["completed"]),
            score=row["score"],
            user_answers=_load_json(row["user_answers"]),
            completed_at=row["completed_at"],
        )


@dataclass
class Quest:
    id: int
    type: str
    description: str
    target_count: int
    reward_xp: int
    criteria: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Quest":
        return cls(
            id=row["id"],
            type=row["type"],
            description=row["description"],
            target_count=row["target_count"],
            reward_xp=row["reward_xp"],
            criteria=row["criteria"],
        )


@dataclass
class UserQuest:
    id: int
    user_id: int
    quest_id: int
    progress: int = 0
    completed: bool = False
    claimed: bool = False
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "UserQuest":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            quest_id=row["quest_id"],
            progress=row["progress"],
            completed=bool(row["completed"]),
            claimed=bool(row["claimed"]),
            updated_at=row["updated_at"],
        )


@dataclass
class DailyQuiz:
    id: int
    quiz_date: str
    difficulty: str
    title: str
    questions: list[QuizQuestion]
    reward_xp: int = 25
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "DailyQuiz":
        return cls(
            id=row["id"],
            quiz_date=row["quiz_date"],
            difficulty=row["difficulty"],
            title=row["title"],
            questions=[QuizQuestion.from_dict(q) for q in json.loads(row["questions"])],
            reward_xp=row["reward_xp"],
            created_at=row["created_at"],
        )


@dataclass
class DailyQuizProgress:
    id: int
    user_id: int
    quiz_id: int
    completed: bool = False
    score: Optional[int] = None
    user_answers: Optional[list[int]] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "DailyQuizProgress":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            quiz_id=row["quiz_id"],
            completed=bool(row["completed"]),
            score=row["score"],
            user_answers=_load_json(row["user_answers"]),
            completed_at=row["completed_at"],
        )


@dataclass
class XpEvent:
    id: int
    user_id: int
    amount: int
    source_type: str
    source_id: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "XpEvent":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            amount=row["amount"],
            source_type=row["source_type"],
            source_id=row["source_id"],
            created_at=row["created_at"],
        )
