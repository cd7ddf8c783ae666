"""Repository for usercompetency rows.

Every update is a compare-and-swap on the row's version when the caller
passes expected_version.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Iterable

import structlog

from skills_engine.core.errors import ConcurrentUpdateError, DuplicateRecordError, NotFoundError
from skills_engine.core.models import ProficiencyLevel, UserCompetency, VerifiedSkill
from skills_engine.db.database import get_db

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = ("verified_skills", "coverage_percentage", "proficiency_level")


class SqliteUserCompetencyRepository:
    """CRUD for the usercompetency table."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def find_by_user_and_competency(
        self, user_id: str, competency_id: str
    ) -> UserCompetency | None:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM usercompetency WHERE user_id = ? AND competency_id = ?",
                (user_id, competency_id),
            ).fetchone()

        return _row_to_record(row) if row else None

    def find_by_user(self, user_id: str) -> list[UserCompetency]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM usercompetency WHERE user_id = ? ORDER BY created_at, competency_id",
                (user_id,),
            ).fetchall()

        return [_row_to_record(row) for row in rows]

    def find_by_user_and_competencies(
        self, user_id: str, competency_ids: Iterable[str]
    ) -> dict[str, UserCompetency]:
        """Batch lookup keyed by competency_id; missing rows are absent."""
        ids = list(dict.fromkeys(competency_ids))
        if not ids:
            return {}

        placeholders = ",".join("?" for _ in ids)
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT * FROM usercompetency WHERE user_id = ? "
                f"AND competency_id IN ({placeholders})",
                [user_id, *ids],
            ).fetchall()

        return {row["competency_id"]: _row_to_record(row) for row in rows}

    def create(
        self,
        user_id: str,
        competency_id: str,
        coverage_percentage: float = 0.0,
        proficiency_level: ProficiencyLevel = ProficiencyLevel.UNDEFINED,
        verified_skills: list[VerifiedSkill] | None = None,
    ) -> UserCompetency:
        """Insert a new row.

        Raises:
            DuplicateRecordError: If the (user_id, competency_id) row exists
        """
        skills_json = json.dumps([s.to_dict() for s in verified_skills or []])

        try:
            with get_db(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO usercompetency (
                        user_id, competency_id, coverage_percentage,
                        proficiency_level, verified_skills
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        competency_id,
                        coverage_percentage,
                        ProficiencyLevel(proficiency_level).value,
                        skills_json,
                    ),
                )
                row = conn.execute(
                    "SELECT * FROM usercompetency WHERE user_id = ? AND competency_id = ?",
                    (user_id, competency_id),
                ).fetchone()
        except sqlite3.IntegrityError as e:
            raise DuplicateRecordError(
                f"UserCompetency already exists: ({user_id}, {competency_id})"
            ) from e

        logger.debug("usercompetency.created", user_id=user_id, competency_id=competency_id)
        return _row_to_record(row)

    def update(
        self,
        user_id: str,
        competency_id: str,
        expected_version: int | None = None,
        **fields: Any,
    ) -> UserCompetency:
        """Update coverage fields and bump the version.

        Args:
            expected_version: When given, the write only applies if the row
                still carries this version.
            **fields: Any of verified_skills, coverage_percentage,
                proficiency_level.

        Raises:
            ConcurrentUpdateError: If expected_version no longer matches
            NotFoundError: If the row does not exist
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        assignments: list[str] = []
        params: list[Any] = []
        if "verified_skills" in fields:
            assignments.append("verified_skills = ?")
            params.append(json.dumps([s.to_dict() for s in fields["verified_skills"]]))
        if "coverage_percentage" in fields:
            assignments.append("coverage_percentage = ?")
            params.append(float(fields["coverage_percentage"]))
        if "proficiency_level" in fields:
            assignments.append("proficiency_level = ?")
            params.append(ProficiencyLevel(fields["proficiency_level"]).value)

        assignments.append("version = version + 1")
        assignments.append("updated_at = datetime('now')")

        where = "user_id = ? AND competency_id = ?"
        params.extend([user_id, competency_id])
        if expected_version is not None:
            where += " AND version = ?"
            params.append(expected_version)

        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                f"UPDATE usercompetency SET {', '.join(assignments)} WHERE {where}",
                params,
            )
            row = conn.execute(
                "SELECT * FROM usercompetency WHERE user_id = ? AND competency_id = ?",
                (user_id, competency_id),
            ).fetchone()

        if cursor.rowcount == 0:
            if row is None:
                raise NotFoundError("UserCompetency", f"{user_id}/{competency_id}")
            raise ConcurrentUpdateError(user_id, competency_id, expected_version or 0)

        logger.debug(
            "usercompetency.updated",
            user_id=user_id,
            competency_id=competency_id,
            version=row["version"],
        )
        return _row_to_record(row)


def _row_to_record(row) -> UserCompetency:
    """Convert database row to UserCompetency."""
    raw_skills = json.loads(row["verified_skills"]) if row["verified_skills"] else []
    return UserCompetency(
        user_id=row["user_id"],
        competency_id=row["competency_id"],
        coverage_percentage=float(row["coverage_percentage"] or 0.0),
        proficiency_level=ProficiencyLevel(row["proficiency_level"] or "undefined"),
        verified_skills=[VerifiedSkill.from_dict(s) for s in raw_skills if s.get("skill_id")],
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
