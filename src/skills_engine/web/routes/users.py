"""Per-user read endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from skills_engine.core.engine import Engine
from skills_engine.core.models import AnalysisType
from skills_engine.utils.validators import is_valid_uuid
from skills_engine.web.dependencies import get_engine
from skills_engine.web.schemas import (
    GapsResponse,
    UserCompetencyListResponse,
    UserCompetencyResponse,
    VerifiedSkillResponse,
)

router = APIRouter(prefix="/api/users", tags=["users"])


def _require_uuid(user_id: str) -> None:
    if not is_valid_uuid(user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid user_id format: {user_id}",
        )


@router.get("/{user_id}/competencies", response_model=UserCompetencyListResponse)
def list_user_competencies(
    user_id: str, engine: Engine = Depends(get_engine)
) -> UserCompetencyListResponse:
    """All usercompetency rows of a user."""
    _require_uuid(user_id)
    rows = engine.user_competencies.find_by_user(user_id)

    competencies = []
    for row in rows:
        competency = engine.competency_graph.find_by_id(row.competency_id)
        competencies.append(
            UserCompetencyResponse(
                competency_id=row.competency_id,
                competency_name=competency.competency_name if competency else None,
                coverage_percentage=row.coverage_percentage,
                proficiency_level=row.proficiency_level.value,
                verified_skills=[VerifiedSkillResponse(**s.to_dict()) for s in row.verified_skills],
                version=row.version,
            )
        )

    return UserCompetencyListResponse(
        user_id=user_id, competencies=competencies, count=len(competencies)
    )


@router.get("/{user_id}/profile")
def get_profile(user_id: str, engine: Engine = Depends(get_engine)) -> dict[str, Any]:
    """Pruned competency profile snapshot."""
    _require_uuid(user_id)
    return engine.snapshot_builder.build(user_id)


@router.get("/{user_id}/gaps", response_model=GapsResponse)
def get_gaps(user_id: str, engine: Engine = Depends(get_engine)) -> GapsResponse:
    """Missing MGS per career-path competency (nothing is sent)."""
    _require_uuid(user_id)
    scope = engine.gap_selector.career_path_competencies(user_id)
    gaps = engine.gap_selector.find_gaps(user_id, scope) if scope else {}
    return GapsResponse(
        user_id=user_id,
        analysis_type=AnalysisType.BROAD.value,
        skipped=not scope,
        gaps=gaps,
    )
