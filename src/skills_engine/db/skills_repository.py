"""Repository for the skills tree (skills + skill_subskill tables)."""

from __future__ import annotations

from pathlib import Path

import structlog

from skills_engine.core.errors import NotFoundError
from skills_engine.core.models import Skill
from skills_engine.db.database import MAX_HIERARCHY_DEPTH, get_db

logger = structlog.get_logger(__name__)


class SqliteSkillRepository:
    """Read access to skills plus the inserts used by the graph loader."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def insert_skill(
        self,
        skill_id: str,
        skill_name: str,
        parent_skill_id: str | None = None,
        description: str | None = None,
    ) -> None:
        """Insert a skill, optionally attached under a parent.

        Raises:
            sqlite3.IntegrityError: If skill_id or skill_name already exists
        """
        with get_db(self.db_path) as conn:
            conn.execute(
                "INSERT INTO skills (skill_id, skill_name, description) VALUES (?, ?, ?)",
                (skill_id, skill_name, description),
            )
            if parent_skill_id:
                conn.execute(
                    "INSERT OR IGNORE INTO skill_subskill (parent_skill_id, child_skill_id) "
                    "VALUES (?, ?)",
                    (parent_skill_id, skill_id),
                )

        logger.debug("skills.inserted", skill_id=skill_id, parent=parent_skill_id)

    def find_by_id(self, skill_id: str) -> Skill | None:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT skill_id, skill_name FROM skills WHERE skill_id = ?", (skill_id,)
            ).fetchone()

        return _row_to_skill(row) if row else None

    def find_by_name(self, name: str) -> Skill | None:
        """Case-insensitive, trimmed exact match on skill_name."""
        if not name or not name.strip():
            return None

        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT skill_id, skill_name FROM skills "
                "WHERE lower(trim(skill_name)) = lower(trim(?)) "
                "ORDER BY skill_id LIMIT 1",
                (name,),
            ).fetchone()

        return _row_to_skill(row) if row else None

    def is_leaf(self, skill_id: str) -> bool:
        """A leaf (MGS) is a skill with zero children.

        Raises:
            NotFoundError: If the skill does not exist
        """
        with get_db(self.db_path) as conn:
            exists = conn.execute(
                "SELECT 1 FROM skills WHERE skill_id = ?", (skill_id,)
            ).fetchone()
            if exists is None:
                raise NotFoundError("Skill", skill_id)

            child = conn.execute(
                "SELECT 1 FROM skill_subskill WHERE parent_skill_id = ? LIMIT 1",
                (skill_id,),
            ).fetchone()

        return child is None

    def get_parent_skill_ids(self, skill_id: str) -> list[str]:
        """All skill ancestors, nearest first."""
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                WITH RECURSIVE up(skill_id, depth) AS (
                    SELECT parent_skill_id, 1 FROM skill_subskill WHERE child_skill_id = ?
                    UNION
                    SELECT ss.parent_skill_id, up.depth + 1
                    FROM skill_subskill ss JOIN up ON ss.child_skill_id = up.skill_id
                    WHERE up.depth < ?
                )
                SELECT skill_id, MIN(depth) AS depth FROM up
                GROUP BY skill_id ORDER BY depth, skill_id
                """,
                (skill_id, MAX_HIERARCHY_DEPTH),
            ).fetchall()

        return [row["skill_id"] for row in rows]

    def find_leaf_descendants(self, skill_id: str) -> list[Skill]:
        """Leaf skills under skill_id (the skill itself when it is a leaf)."""
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                WITH RECURSIVE down(skill_id, depth) AS (
                    SELECT ?, 0
                    UNION
                    SELECT ss.child_skill_id, down.depth + 1
                    FROM skill_subskill ss JOIN down ON ss.parent_skill_id = down.skill_id
                    WHERE down.depth < ?
                )
                SELECT DISTINCT s.skill_id, s.skill_name
                FROM skills s JOIN down d ON d.skill_id = s.skill_id
                WHERE NOT EXISTS (
                    SELECT 1 FROM skill_subskill c WHERE c.parent_skill_id = s.skill_id
                )
                ORDER BY s.skill_name
                """,
                (skill_id, MAX_HIERARCHY_DEPTH),
            ).fetchall()

        return [_row_to_skill(row) for row in rows]


def _row_to_skill(row) -> Skill:
    """Convert database row to Skill."""
    return Skill(skill_id=row["skill_id"], skill_name=row["skill_name"])
