"""XP ledger: every grant is an event, the user's total is a running sum."""
import logging
import sqlite3
from datetime import datetime

from fluentquest.db import get_connection, write_transaction
from fluentquest.errors import InvalidInputError, XpGrantError
from fluentquest.models import XpEvent

logger = logging.getLogger(__name__)


def grant_xp(
    conn: sqlite3.Connection,
    user_id: int,
    amount: int,
    source_type: str,
    source_id,
) -> int:
    """Append an XP event and bump the user's total on the caller's transaction.

    Must be called after the state write it rewards, on the same connection,
    so both commit or roll back together. Returns the new XP total.
    """
    if amount < 0:
        raise InvalidInputError("XP grants cannot be negative", {"amount": amount})
    cur = conn.execute("UPDATE users SET xp = xp + ? WHERE id = ?", (amount, user_id))
    if cur.rowcount != 1:
        logger.error(
            "XP update touched %d rows for user %s (%s %s, %d xp); rolling back",
            cur.rowcount, user_id, source_type, source_id, amount,
        )
        raise XpGrantError(
            "Could not update XP total",
            {"user_id": user_id, "source_type": source_type, "source_id": str(source_id)},
        )
    conn.execute(
        "INSERT INTO xp_events (user_id, amount, source_type, source_id, created_at) VALUES (?, ?, ?, ?, ?)",
        (user_id, amount, source_type, str(source_id), datetime.now().isoformat()),
    )
    total = conn.execute("SELECT xp FROM users WHERE id = ?", (user_id,)).fetchone()["xp"]
    logger.info("Granted %d xp to user %s for %s %s (total %d)", amount, user_id, source_type, source_id, total)
    return total


def get_xp_events(db_path: str, user_id: int) -> list[XpEvent]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM xp_events WHERE user_id = ? ORDER BY id", (user_id,)
    ).fetchall()
    conn.close()
    return [XpEvent.from_row(r) for r in rows]


def get_ledger_total(db_path: str, user_id: int) -> int:
    conn = get_connection(db_path)
    total = conn.execute(
        "SELECT COALESCE(SUM(amount), 0) FROM xp_events WHERE user_id = ?", (user_id,)
    ).fetchone()[0]
    conn.close()
    return total


def reconcile_xp(db_path: str, user_id: int | None = None) -> list[dict]:
    """Rewrite each user's XP total to the ledger sum, returning the drifts found."""
    query = """SELECT u.id, u.xp, COALESCE(SUM(e.amount), 0) as ledger
        FROM users u LEFT JOIN xp_events e ON e.user_id = u.id"""
    params: tuple = ()
    if user_id is not None:
        query += " WHERE u.id = ?"
        params = (user_id,)
    query += " GROUP BY u.id"
    drifts = []
    with write_transaction(db_path) as conn:
        for row in conn.execute(query, params).fetchall():
            if row["xp"] == row["ledger"]:
                continue
            logger.warning(
                "XP drift for user %s: total %d, ledger %d", row["id"], row["xp"], row["ledger"]
            )
            conn.execute("UPDATE users SET xp = ? WHERE id = ?", (row["ledger"], row["id"]))
            drifts.append({"user_id": row["id"], "recorded": row["xp"], "ledger": row["ledger"]})
    return drifts
