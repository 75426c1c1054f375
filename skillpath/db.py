"""
Reference user-data store backed by SQLite.

Holds the two caller-owned collections the engine reads snapshots of:
``UserSkills`` (one row per user and skill) and ``UserAchievements``
(append-only). The engine never writes here; the CLI and other callers do.
"""

import logging
import os
import sqlite3
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from skillpath.models import UserAchievement, UserSkill

logger = logging.getLogger(__name__)

# =========================================================================
# Schema constants
# =========================================================================

_CREATE_USER_SKILLS = """\
CREATE TABLE IF NOT EXISTS UserSkills (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id        TEXT    NOT NULL,
    skill_id       TEXT    NOT NULL,
    level          INTEGER NOT NULL DEFAULT 0,
    source         TEXT    CHECK(source IN ('self_reported','llm_extracted',
                                            'verified')),
    evidence_type  TEXT    CHECK(evidence_type IS NULL OR evidence_type IN
                                 ('course','project','certification',
                                  'experience')),
    updated_at     TIMESTAMP,
    UNIQUE(user_id, skill_id)
);
"""

_CREATE_USER_ACHIEVEMENTS = """\
CREATE TABLE IF NOT EXISTS UserAchievements (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT    NOT NULL,
    achievement_id  TEXT    NOT NULL,
    earned_at       TIMESTAMP,
    UNIQUE(user_id, achievement_id)
);
"""

_CREATE_IDX_SKILLS_USER = """\
CREATE INDEX IF NOT EXISTS idx_user_skills_user
    ON UserSkills(user_id);
"""


# =========================================================================
# Connection helper
# =========================================================================


def get_connection(db_path: str) -> sqlite3.Connection:
    """Return a new SQLite connection with WAL mode and row-factory enabled."""
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    return conn


# =========================================================================
# Migration
# =========================================================================


def migrate_db(db_path: str) -> None:
    """Create (or verify) the ``UserSkills`` and ``UserAchievements`` tables."""
    conn = get_connection(db_path)
    try:
        conn.execute(_CREATE_USER_SKILLS)
        conn.execute(_CREATE_USER_ACHIEVEMENTS)
        conn.execute(_CREATE_IDX_SKILLS_USER)
        conn.commit()
        logger.info("Migration OK at %s", os.path.abspath(db_path))
    finally:
        conn.close()


# =========================================================================
# Lock-retry helper
# =========================================================================

_SQLITE_LOCK_RETRIES = 5
_SQLITE_LOCK_BASE_DELAY = 0.1


def _retry_on_lock(fn, *args, **kwargs):  # type: ignore[no-untyped-def]
    """Wrap *fn* with SQLite-lock retry."""
    for attempt in range(1, _SQLITE_LOCK_RETRIES + 1):
        try:
            return fn(*args, **kwargs)
        except sqlite3.OperationalError as exc:
            if "locked" in str(exc).lower() and attempt < _SQLITE_LOCK_RETRIES:
                delay = _SQLITE_LOCK_BASE_DELAY * (2 ** (attempt - 1))
                logger.warning(
                    "SQLite locked (attempt %d/%d) — retrying in %.2fs",
                    attempt, _SQLITE_LOCK_RETRIES, delay,
                )
                time.sleep(delay)
            else:
                raise


# =========================================================================
# User skills
# =========================================================================


def upsert_user_skill(conn: sqlite3.Connection, user_id: str, skill: UserSkill) -> None:
    """Insert or replace the user's row for ``skill.skill_id``."""

    def _do_upsert() -> None:
        conn.execute(
            """
            INSERT INTO UserSkills
                (user_id, skill_id, level, source, evidence_type, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, skill_id) DO UPDATE SET
                level = excluded.level,
                source = excluded.source,
                evidence_type = excluded.evidence_type,
                updated_at = excluded.updated_at
            """,
            (user_id, skill.skill_id, skill.level, skill.source,
             skill.evidence_type, skill.updated_at.isoformat()),
        )
        conn.commit()

    _retry_on_lock(_do_upsert)


def load_user_skills(conn: sqlite3.Connection, user_id: str) -> List[UserSkill]:
    """Return the user's skills ordered by insertion."""
    rows = conn.execute(
        """SELECT skill_id, level, source, evidence_type, updated_at
           FROM UserSkills WHERE user_id = ? ORDER BY id""",
        (user_id,),
    ).fetchall()
    return [
        UserSkill(
            skill_id=r["skill_id"],
            level=r["level"],
            source=r["source"] or "self_reported",
            evidence_type=r["evidence_type"],
            updated_at=datetime.fromisoformat(r["updated_at"]),
        )
        for r in rows
    ]


# =========================================================================
# User achievements
# =========================================================================


def record_achievements(
    conn: sqlite3.Connection,
    user_id: str,
    achievement_ids: Iterable[str],
    earned_at: Optional[datetime] = None,
) -> int:
    """Append earned achievements (``INSERT OR IGNORE``). Returns rows inserted."""
    stamp = (earned_at or datetime.now(timezone.utc)).isoformat()
    rows = [(user_id, aid, stamp) for aid in achievement_ids]

    def _do_insert() -> int:
        before = conn.total_changes
        conn.executemany(
            """INSERT OR IGNORE INTO UserAchievements
                   (user_id, achievement_id, earned_at)
               VALUES (?, ?, ?)""",
            rows,
        )
        conn.commit()
        return conn.total_changes - before

    inserted = _retry_on_lock(_do_insert)
    logger.info("Recorded %d achievement(s) for user %s.", inserted, user_id)
    return inserted


def load_user_achievements(conn: sqlite3.Connection, user_id: str) -> List[UserAchievement]:
    rows = conn.execute(
        """SELECT achievement_id, earned_at FROM UserAchievements
           WHERE user_id = ? ORDER BY id""",
        (user_id,),
    ).fetchall()
    return [
        UserAchievement(
            achievement_id=r["achievement_id"],
            earned_at=datetime.fromisoformat(r["earned_at"]),
        )
        for r in rows
    ]
