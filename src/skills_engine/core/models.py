"""Domain records shared by the repositories and the aggregation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ProficiencyLevel(str, Enum):
    """Coarse proficiency tier derived from coverage."""

    UNDEFINED = "undefined"
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


class ExamType(str, Enum):
    """Exam kinds reported by the assessment service."""

    BASELINE = "baseline"
    POST_COURSE = "post-course"


class AnalysisType(str, Enum):
    """Gap analysis trigger classification."""

    BROAD = "broad"
    NARROW = "narrow"


# =============================================================================
# GRAPH RECORDS
# =============================================================================


@dataclass(frozen=True)
class Skill:
    """A node of the skill tree."""

    skill_id: str
    skill_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"skill_id": self.skill_id, "skill_name": self.skill_name}


@dataclass(frozen=True)
class Competency:
    """A node of the competency DAG."""

    competency_id: str
    competency_name: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "competency_id": self.competency_id,
            "competency_name": self.competency_name,
        }


@dataclass(frozen=True)
class ParentLink:
    """One edge of an ancestor chain.

    `competency` is a parent of `child_id`; `depth` is 1 for an
    immediate parent of the chain's origin, 2 for a grandparent, etc.
    """

    competency: Competency
    child_id: str
    depth: int


# =============================================================================
# USER RECORDS
# =============================================================================


@dataclass
class VerifiedSkill:
    """A skill entry stored in UserCompetency.verified_skills."""

    skill_id: str
    skill_name: str
    verified: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "skill_id": self.skill_id,
            "skill_name": self.skill_name,
            "verified": self.verified,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VerifiedSkill:
        return cls(
            skill_id=str(data["skill_id"]),
            skill_name=data.get("skill_name") or "",
            verified=data.get("verified") is True,
        )


@dataclass
class UserCompetency:
    """Per-user coverage state for one competency."""

    user_id: str
    competency_id: str
    coverage_percentage: float = 0.0
    proficiency_level: ProficiencyLevel = ProficiencyLevel.UNDEFINED
    verified_skills: list[VerifiedSkill] = field(default_factory=list)
    version: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def verified_count(self) -> int:
        """Number of entries flagged verified."""
        return sum(1 for s in self.verified_skills if s.verified is True)

    def verified_skill_ids(self) -> set[str]:
        return {s.skill_id for s in self.verified_skills if s.verified is True}

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "competency_id": self.competency_id,
            "coverage_percentage": self.coverage_percentage,
            "proficiency_level": self.proficiency_level.value,
            "verifiedSkills": [s.to_dict() for s in self.verified_skills],
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class UserCareerPath:
    """A competency the user chose to pursue."""

    user_id: str
    competency_id: str
    competency_name: str | None = None
    created_at: str | None = None
