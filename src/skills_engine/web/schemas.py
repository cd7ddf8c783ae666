"""Pydantic schemas for the Web API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# ENVELOPE SCHEMAS
# =============================================================================


class ServiceEnvelope(BaseModel):
    """Unified request envelope exchanged with sibling services."""

    requester_service: str | None = None
    payload: dict[str, Any] | None = None
    response: dict[str, Any] | None = None


# =============================================================================
# USER SCHEMAS
# =============================================================================


class VerifiedSkillResponse(BaseModel):
    skill_id: str
    skill_name: str
    verified: bool


class UserCompetencyResponse(BaseModel):
    """One usercompetency row."""

    competency_id: str
    competency_name: str | None = None
    coverage_percentage: float
    proficiency_level: str
    verified_skills: list[VerifiedSkillResponse] = Field(default_factory=list)
    version: int


class UserCompetencyListResponse(BaseModel):
    user_id: str
    competencies: list[UserCompetencyResponse]
    count: int


class GapsResponse(BaseModel):
    """Broad gap analysis over the user's career path."""

    user_id: str
    analysis_type: str
    skipped: bool
    gaps: dict[str, list[dict[str, str]]]


# =============================================================================
# COMPETENCY SCHEMAS
# =============================================================================


class SkillRef(BaseModel):
    skill_id: str
    skill_name: str


class CompetencyMgsResponse(BaseModel):
    """Required MGS of a competency."""

    competency_id: str
    competency_name: str
    mgs: list[SkillRef]
    count: int
