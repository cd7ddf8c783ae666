"""Repository for user_career_path rows."""

from __future__ import annotations

from pathlib import Path

import structlog

from skills_engine.core.models import UserCareerPath
from skills_engine.db.database import get_db

logger = structlog.get_logger(__name__)


class SqliteUserCareerPathRepository:
    """Career-path competencies chosen by users."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def add(self, user_id: str, competency_id: str) -> None:
        with get_db(self.db_path) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO user_career_path (user_id, competency_id) VALUES (?, ?)",
                (user_id, competency_id),
            )

        logger.debug("career_path.added", user_id=user_id, competency_id=competency_id)

    def find_by_user(self, user_id: str) -> list[UserCareerPath]:
        """Career-path rows joined with the competency name."""
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT p.user_id, p.competency_id, p.created_at, c.competency_name
                FROM user_career_path p
                JOIN competencies c ON c.competency_id = p.competency_id
                WHERE p.user_id = ?
                ORDER BY p.created_at, c.competency_name
                """,
                (user_id,),
            ).fetchall()

        return [
            UserCareerPath(
                user_id=row["user_id"],
                competency_id=row["competency_id"],
                competency_name=row["competency_name"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
