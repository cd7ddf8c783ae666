"""Skill lists that drive baseline exam generation."""

from __future__ import annotations

from typing import Any

import structlog

from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.errors import NotFoundError
from skills_engine.core.interfaces import UserCompetencyRepository

logger = structlog.get_logger(__name__)


def build_competency_mgs_mapping(
    user_id: str,
    graph: CompetencyGraph,
    user_competencies: UserCompetencyRepository,
) -> list[dict[str, Any]]:
    """MGS of every owned leaf competency.

    Leaf competencies are those without sub-competencies; competencies
    without any MGS are left out.
    """
    mapping: list[dict[str, Any]] = []

    for row in user_competencies.find_by_user(user_id):
        competency = graph.find_by_id(row.competency_id)
        if competency is None:
            logger.warning(
                "baseline.unknown_competency", user_id=user_id, competency_id=row.competency_id
            )
            continue
        if graph.get_sub_competencies(competency.competency_id):
            continue

        try:
            mgs = graph.get_required_mgs(competency.competency_id)
        except NotFoundError:
            continue
        if not mgs:
            continue

        mapping.append(
            {
                "competency_id": competency.competency_id,
                "competency_name": competency.competency_name,
                "mgs": [{"skill_id": s.skill_id, "skill_name": s.skill_name} for s in mgs],
            }
        )

    logger.info("baseline.mapping_built", user_id=user_id, competencies=len(mapping))
    return mapping
