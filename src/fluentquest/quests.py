"""Quest progress tracking and exactly-once reward claims."""
import logging
from datetime import datetime

from fluentquest.db import get_connection, write_transaction
from fluentquest.errors import (
    AlreadyClaimedError, InvalidInputError, InvalidStateError, NotCompletedError, NotFoundError,
)
from fluentquest.models import Quest, UserQuest
from fluentquest.settings import QUEST_TYPES
from fluentquest.xp import grant_xp

logger = logging.getLogger(__name__)

NOT_STARTED = "NOT_STARTED"
IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"
CLAIMED = "CLAIMED"


def quest_state(user_quest: UserQuest | None, quest: Quest) -> str:
    if user_quest is None:
        return NOT_STARTED
    if user_quest.claimed:
        return CLAIMED
    if user_quest.completed or user_quest.progress >= quest.target_count:
        return COMPLETED
    return IN_PROGRESS


def list_quests(db_path: str) -> list[Quest]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM quests ORDER BY id").fetchall()
    conn.close()
    return [Quest.from_row(r) for r in rows]


def get_quest(db_path: str, quest_id: int) -> Quest:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM quests WHERE id = ?", (quest_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError("Quest not found", {"quest_id": quest_id})
    return Quest.from_row(row)


def create_quest(
    db_path: str,
    quest_type: str,
    description: str,
    target_count: int,
    reward_xp: int,
    criteria: str,
) -> Quest:
    if quest_type not in QUEST_TYPES:
        raise InvalidInputError(f"Unknown quest type: {quest_type}")
    if target_count <= 0 or reward_xp < 0:
        raise InvalidInputError("Quest target must be positive and reward non-negative")
    conn = get_connection(db_path)
    cur = conn.execute(
        "INSERT INTO quests (type, description, target_count, reward_xp, criteria) VALUES (?, ?, ?, ?, ?)",
        (quest_type, description, target_count, reward_xp, criteria),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM quests WHERE id = ?", (cur.lastrowid,)).fetchone()
    conn.close()
    return Quest.from_row(row)


def get_user_quest(db_path: str, user_id: int, quest_id: int) -> UserQuest | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM user_quests WHERE user_id = ? AND quest_id = ?", (user_id, quest_id)
    ).fetchone()
    conn.close()
    return UserQuest.from_row(row) if row else None


def get_user_quests(db_path: str, user_id: int) -> list[dict]:
    """Every quest merged with the user's progress, defaulting to untouched."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT q.*, COALESCE(uq.progress, 0) as progress,
            COALESCE(uq.completed, 0) as completed, COALESCE(uq.claimed, 0) as claimed,
            uq.id as user_quest_id
        FROM quests q
        LEFT JOIN user_quests uq ON uq.quest_id = q.id AND uq.user_id = ?
        ORDER BY q.id""",
        (user_id,),
    ).fetchall()
    conn.close()
    results = []
    for r in rows:
        quest = Quest.from_row(r)
        user_quest = None
        if r["user_quest_id"] is not None:
            user_quest = UserQuest(
                id=r["user_quest_id"], user_id=user_id, quest_id=quest.id, progress=r["progress"],
                completed=bool(r["completed"]), claimed=bool(r["claimed"]),
            )
        results.append({
            "quest_id": quest.id,
            "type": quest.type,
            "description": quest.description,
            "target_count": quest.target_count,
            "reward_xp": quest.reward_xp,
            "criteria": quest.criteria,
            "progress": r["progress"],
            "completed": bool(r["completed"]),
            "claimed": bool(r["claimed"]),
            "state": quest_state(user_quest, quest),
        })
    return results


def update_quest_progress(db_path: str, user_id: int, quest_id: int, progress: int) -> UserQuest:
    """Store the latest progress count reported by criteria evaluation.

    Progress never moves backwards and completion is sticky. No XP is granted
    here; that happens on claim.
    """
    if isinstance(progress, bool) or not isinstance(progress, int) or progress < 0:
        raise InvalidInputError("Progress must be a non-negative integer", {"progress": progress})
    with write_transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM quests WHERE id = ?", (quest_id,)).fetchone()
        if row is None:
            raise NotFoundError("Quest not found", {"quest_id": quest_id})
        if conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is None:
            raise NotFoundError("User not found", {"user_id": user_id})
        quest = Quest.from_row(row)
        conn.execute(
            """INSERT INTO user_quests (user_id, quest_id, progress, completed, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, quest_id) DO UPDATE SET
                progress = MAX(user_quests.progress, excluded.progress),
                completed = MAX(user_quests.completed, excluded.completed),
                updated_at = excluded.updated_at""",
            (user_id, quest_id, progress, int(progress >= quest.target_count), datetime.now().isoformat()),
        )
        updated = conn.execute(
            "SELECT * FROM user_quests WHERE user_id = ? AND quest_id = ?", (user_id, quest_id)
        ).fetchone()
    return UserQuest.from_row(updated)


def claim_quest(db_path: str, user_id: int, quest_id: int) -> UserQuest:
    """Claim a completed quest's reward. Succeeds at most once per user and quest."""
    with write_transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM quests WHERE id = ?", (quest_id,)).fetchone()
        if row is None:
            raise NotFoundError("Quest not found", {"quest_id": quest_id})
        quest = Quest.from_row(row)

        existing = conn.execute(
            "SELECT * FROM user_quests WHERE user_id = ? AND quest_id = ?", (user_id, quest_id)
        ).fetchone()
        if existing is None:
            raise InvalidStateError("Quest progress not found", {"quest_id": quest_id})
        if existing["claimed"]:
            raise AlreadyClaimedError("Quest already claimed", {"quest_id": quest_id})
        if existing["progress"] < quest.target_count:
            raise NotCompletedError(
                "Quest not completed yet",
                {"progress": existing["progress"], "target_count": quest.target_count},
            )

        cur = conn.execute(
            """UPDATE user_quests SET claimed = 1, completed = 1, updated_at = ?
            WHERE id = ? AND claimed = 0""",
            (datetime.now().isoformat(), existing["id"]),
        )
        if cur.rowcount != 1:
            raise AlreadyClaimedError("Quest already claimed", {"quest_id": quest_id})

        grant_xp(conn, user_id, quest.reward_xp, "quest", quest_id)
        claimed = conn.execute("SELECT * FROM user_quests WHERE id = ?", (existing["id"],)).fetchone()

    logger.info("User %s claimed quest %s for %d xp", user_id, quest_id, quest.reward_xp)
    return UserQuest.from_row(claimed)
