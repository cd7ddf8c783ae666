"""Competency lookup endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from skills_engine.core.engine import Engine
from skills_engine.web.dependencies import get_engine
from skills_engine.web.schemas import CompetencyMgsResponse, SkillRef

router = APIRouter(prefix="/api/competencies", tags=["competencies"])


@router.get("/{name}/mgs", response_model=CompetencyMgsResponse)
def get_competency_mgs(name: str, engine: Engine = Depends(get_engine)) -> CompetencyMgsResponse:
    """Required MGS of a competency, looked up by name or alias."""
    competency = engine.competency_graph.find_by_name(name)
    if competency is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Competency '{name}' not found",
        )

    mgs = engine.competency_graph.get_required_mgs(competency.competency_id)
    return CompetencyMgsResponse(
        competency_id=competency.competency_id,
        competency_name=competency.competency_name,
        mgs=[SkillRef(skill_id=s.skill_id, skill_name=s.skill_name) for s in mgs],
        count=len(mgs),
    )
