"""Coverage percentage and proficiency tiers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

import structlog

from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.interfaces import UserCompetencyRepository
from skills_engine.core.models import ProficiencyLevel, Skill, UserCompetency, VerifiedSkill

logger = structlog.get_logger(__name__)

# (lower bound, tier), highest first
PROFICIENCY_THRESHOLDS = (
    (80.0, ProficiencyLevel.EXPERT),
    (60.0, ProficiencyLevel.ADVANCED),
    (40.0, ProficiencyLevel.INTERMEDIATE),
)


def percentage(verified: int, required: int) -> float:
    """verified/required*100 rounded half-up to 2 decimals; 0 when required is 0."""
    if required <= 0:
        return 0.0
    value = Decimal(verified * 100) / Decimal(required)
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def count_verified(
    verified_skills: Iterable[VerifiedSkill], required_ids: set[str]
) -> int:
    """Entries flagged verified whose skill is required."""
    counted = {
        s.skill_id for s in verified_skills if s.verified is True and s.skill_id in required_ids
    }
    return len(counted)


def calculate_coverage(
    verified_skills: Iterable[VerifiedSkill],
    required_mgs: Iterable[Skill | str],
) -> float:
    required_ids = {s if isinstance(s, str) else s.skill_id for s in required_mgs}
    return percentage(count_verified(verified_skills, required_ids), len(required_ids))


def map_coverage_to_proficiency(coverage: float) -> ProficiencyLevel:
    for threshold, level in PROFICIENCY_THRESHOLDS:
        if coverage >= threshold:
            return level
    return ProficiencyLevel.BEGINNER


class CoverageAggregator:
    """Coverage for single competencies and count-weighted parents."""

    def __init__(self, graph: CompetencyGraph, user_competencies: UserCompetencyRepository):
        self.graph = graph
        self.user_competencies = user_competencies

    def coverage_for(
        self, competency_id: str, verified_skills: Iterable[VerifiedSkill]
    ) -> tuple[float, ProficiencyLevel]:
        coverage = calculate_coverage(verified_skills, self.graph.get_required_mgs_ids(competency_id))
        return coverage, map_coverage_to_proficiency(coverage)

    def calculate_parent_coverage(
        self,
        parent_id: str,
        user_id: str,
        known_rows: Mapping[str, UserCompetency] | None = None,
    ) -> float:
        """Coverage of a parent from its children's counts.

        total_required sums each child's required MGS count (children the
        user does not own still count); total_verified sums each child's
        verified entries. Rows in known_rows take precedence over storage.
        """
        known_rows = known_rows or {}
        children = self.graph.get_sub_competencies(parent_id)

        if not children:
            row = known_rows.get(parent_id) or self.user_competencies.find_by_user_and_competency(
                user_id, parent_id
            )
            return calculate_coverage(
                row.verified_skills if row else [],
                self.graph.get_required_mgs_ids(parent_id),
            )

        child_ids = [c.competency_id for c in children]
        missing = [cid for cid in child_ids if cid not in known_rows]
        rows = dict(self.user_competencies.find_by_user_and_competencies(user_id, missing))
        rows.update({cid: known_rows[cid] for cid in child_ids if cid in known_rows})

        total_required = 0
        total_verified = 0
        for child_id in child_ids:
            required_ids = self.graph.get_required_mgs_ids(child_id)
            total_required += len(required_ids)
            row = rows.get(child_id)
            if row is not None:
                total_verified += count_verified(row.verified_skills, required_ids)

        coverage = percentage(total_verified, total_required)
        logger.debug(
            "coverage.parent_calculated",
            parent_id=parent_id,
            user_id=user_id,
            total_verified=total_verified,
            total_required=total_required,
            coverage=coverage,
        )
        return coverage
