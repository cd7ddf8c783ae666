"""Repository for the competency DAG.

Tables: competencies, competency_aliases, competency_skill,
competency_subcompetency.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import structlog

from skills_engine.core.models import Competency, ParentLink
from skills_engine.db.database import MAX_HIERARCHY_DEPTH, get_db

logger = structlog.get_logger(__name__)


class SqliteCompetencyRepository:
    """Read access to competencies plus the inserts used by the graph loader."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    # -------------------------------------------------------------------------
    # writes (graph loading only)
    # -------------------------------------------------------------------------

    def insert_competency(
        self,
        competency_id: str,
        competency_name: str,
        description: str | None = None,
        aliases: Iterable[str] = (),
    ) -> None:
        with get_db(self.db_path) as conn:
            conn.execute(
                "INSERT INTO competencies (competency_id, competency_name, description) "
                "VALUES (?, ?, ?)",
                (competency_id, competency_name, description),
            )
            for alias in aliases:
                conn.execute(
                    "INSERT OR REPLACE INTO competency_aliases (alias, competency_id) "
                    "VALUES (?, ?)",
                    (alias.strip().lower(), competency_id),
                )

        logger.debug("competencies.inserted", competency_id=competency_id)

    def link_skill(self, competency_id: str, skill_id: str) -> None:
        with get_db(self.db_path) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO competency_skill (competency_id, skill_id) VALUES (?, ?)",
                (competency_id, skill_id),
            )

    def link_sub_competency(self, parent_id: str, child_id: str) -> None:
        if parent_id == child_id:
            raise ValueError(f"Competency cannot be its own sub-competency: {parent_id}")

        with get_db(self.db_path) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO competency_subcompetency "
                "(parent_competency_id, child_competency_id) VALUES (?, ?)",
                (parent_id, child_id),
            )

    # -------------------------------------------------------------------------
    # reads
    # -------------------------------------------------------------------------

    def find_by_id(self, competency_id: str) -> Competency | None:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM competencies WHERE competency_id = ?", (competency_id,)
            ).fetchone()

        return _row_to_competency(row) if row else None

    def find_by_name(self, name: str) -> Competency | None:
        """Case-insensitive exact match on name, then on aliases."""
        if not name or not name.strip():
            return None

        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM competencies "
                "WHERE lower(trim(competency_name)) = lower(trim(?)) "
                "ORDER BY competency_id LIMIT 1",
                (name,),
            ).fetchone()

            if row is None:
                row = conn.execute(
                    "SELECT c.* FROM competency_aliases a "
                    "JOIN competencies c ON c.competency_id = a.competency_id "
                    "WHERE a.alias = lower(trim(?))",
                    (name,),
                ).fetchone()

        return _row_to_competency(row) if row else None

    def find_by_skills(self, skill_ids: Iterable[str]) -> list[Competency]:
        """Competencies directly linked to any of the given skills."""
        ids = list(dict.fromkeys(skill_ids))
        if not ids:
            return []

        placeholders = ",".join("?" for _ in ids)
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                f"""
                SELECT DISTINCT c.* FROM competency_skill cs
                JOIN competencies c ON c.competency_id = cs.competency_id
                WHERE cs.skill_id IN ({placeholders})
                ORDER BY c.competency_name, c.competency_id
                """,
                ids,
            ).fetchall()

        return [_row_to_competency(row) for row in rows]

    def get_linked_skill_ids(self, competency_id: str) -> list[str]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT skill_id FROM competency_skill WHERE competency_id = ? ORDER BY skill_id",
                (competency_id,),
            ).fetchall()

        return [row["skill_id"] for row in rows]

    def get_sub_competency_links(self, competency_id: str) -> list[Competency]:
        """Direct children of a competency."""
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT c.* FROM competency_subcompetency cs
                JOIN competencies c ON c.competency_id = cs.child_competency_id
                WHERE cs.parent_competency_id = ?
                ORDER BY c.competency_name, c.competency_id
                """,
                (competency_id,),
            ).fetchall()

        return [_row_to_competency(row) for row in rows]

    def get_parent_competencies(self, competency_id: str) -> list[ParentLink]:
        """Every ancestor edge above competency_id in one query, nearest first.

        A parent reachable through several children appears once per edge;
        callers that need unique ancestors de-duplicate by competency_id.
        """
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                WITH RECURSIVE up(parent_id, child_id, depth) AS (
                    SELECT parent_competency_id, child_competency_id, 1
                    FROM competency_subcompetency WHERE child_competency_id = ?
                    UNION
                    SELECT cs.parent_competency_id, cs.child_competency_id, up.depth + 1
                    FROM competency_subcompetency cs
                    JOIN up ON cs.child_competency_id = up.parent_id
                    WHERE up.depth < ?
                )
                SELECT up.parent_id, up.child_id, MIN(up.depth) AS depth,
                       c.competency_name, c.description
                FROM up JOIN competencies c ON c.competency_id = up.parent_id
                GROUP BY up.parent_id, up.child_id
                ORDER BY depth, c.competency_name, up.parent_id
                """,
                (competency_id, MAX_HIERARCHY_DEPTH),
            ).fetchall()

        return [
            ParentLink(
                competency=Competency(
                    competency_id=row["parent_id"],
                    competency_name=row["competency_name"],
                    description=row["description"],
                ),
                child_id=row["child_id"],
                depth=row["depth"],
            )
            for row in rows
        ]


def _row_to_competency(row) -> Competency:
    """Convert database row to Competency."""
    return Competency(
        competency_id=row["competency_id"],
        competency_name=row["competency_name"],
        description=row["description"],
    )
