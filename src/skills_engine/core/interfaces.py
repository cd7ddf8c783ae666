"""Collaborator interfaces consumed by the aggregation pipeline.

The SQLite implementations live in skills_engine.db; tests and other
storage backends only need to satisfy these protocols.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol

from skills_engine.core.models import (
    Competency,
    ParentLink,
    ProficiencyLevel,
    Skill,
    UserCareerPath,
    UserCompetency,
    VerifiedSkill,
)


class SkillRepository(Protocol):
    def find_by_id(self, skill_id: str) -> Skill | None: ...

    def find_by_name(self, name: str) -> Skill | None: ...

    def is_leaf(self, skill_id: str) -> bool: ...

    def get_parent_skill_ids(self, skill_id: str) -> list[str]: ...

    def find_leaf_descendants(self, skill_id: str) -> list[Skill]: ...


class CompetencyRepository(Protocol):
    def find_by_id(self, competency_id: str) -> Competency | None: ...

    def find_by_name(self, name: str) -> Competency | None: ...

    def find_by_skills(self, skill_ids: Iterable[str]) -> list[Competency]: ...

    def get_linked_skill_ids(self, competency_id: str) -> list[str]: ...

    def get_sub_competency_links(self, competency_id: str) -> list[Competency]: ...

    def get_parent_competencies(self, competency_id: str) -> list[ParentLink]: ...


class UserCompetencyRepository(Protocol):
    def find_by_user_and_competency(
        self, user_id: str, competency_id: str
    ) -> UserCompetency | None: ...

    def find_by_user(self, user_id: str) -> list[UserCompetency]: ...

    def find_by_user_and_competencies(
        self, user_id: str, competency_ids: Iterable[str]
    ) -> dict[str, UserCompetency]: ...

    def create(
        self,
        user_id: str,
        competency_id: str,
        coverage_percentage: float = 0.0,
        proficiency_level: ProficiencyLevel = ProficiencyLevel.UNDEFINED,
        verified_skills: list[VerifiedSkill] | None = None,
    ) -> UserCompetency: ...

    def update(
        self,
        user_id: str,
        competency_id: str,
        expected_version: int | None = None,
        **fields: Any,
    ) -> UserCompetency: ...


class UserCareerPathRepository(Protocol):
    def find_by_user(self, user_id: str) -> list[UserCareerPath]: ...


class ProfileSink(Protocol):
    """Outbound best-effort collaborator (directory + learning path)."""

    def send_updated_profile(self, user_id: str, profile: dict[str, Any]) -> Any: ...

    def send_gap_analysis(
        self,
        user_id: str,
        gaps: dict[str, list[dict[str, str]]],
        analysis_type: str,
        exam_status: str,
    ) -> Any: ...
