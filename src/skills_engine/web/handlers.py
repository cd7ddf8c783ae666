"""Handlers for the unified service envelope, keyed by requester_service."""

from __future__ import annotations

from typing import Any, Callable

import structlog

from skills_engine.core.engine import Engine
from skills_engine.core.errors import NotFoundError

logger = structlog.get_logger(__name__)

FETCH_BASELINE_SKILLS = "fetch-baseline-skills"


def handle_assessment(payload: dict[str, Any] | None, engine: Engine) -> dict[str, Any]:
    """Exam results, or the MGS of one competency for baseline exam generation."""
    if not isinstance(payload, dict):
        return {"message": "Invalid payload structure"}

    if payload.get("action") == FETCH_BASELINE_SKILLS:
        return _baseline_skills(payload, engine)

    return engine.processor.handle(payload)


def _baseline_skills(payload: dict[str, Any], engine: Engine) -> dict[str, Any]:
    competency_name = payload.get("competency_name")
    if not isinstance(competency_name, str) or not competency_name.strip():
        return {"message": "competency_name is required and must be a string"}

    try:
        mgs = engine.competency_graph.get_required_mgs_by_name(competency_name)
    except NotFoundError as e:
        logger.info("assessment.competency_not_found", competency_name=competency_name)
        return {"message": str(e)}

    logger.info(
        "assessment.baseline_skills", competency_name=competency_name, skills_count=len(mgs)
    )
    return {
        "competency_name": competency_name.strip(),
        "skills": [{"skill_id": s.skill_id, "skill_name": s.skill_name} for s in mgs],
    }


def handle_learner(payload: dict[str, Any] | None, engine: Engine) -> dict[str, Any]:
    """MGS breakdown for a list of competency names.

    A name that does not resolve yields {"error": ...} for that name only.
    """
    if not isinstance(payload, dict):
        return {"message": "Invalid payload structure"}

    names = payload.get("competencies")
    if not isinstance(names, list) or not names:
        return {"message": "competencies must be a non-empty array of competency names"}

    breakdown: dict[str, Any] = {}
    for name in names:
        if not isinstance(name, str) or not name.strip():
            logger.info("learner.invalid_competency_name", name=name)
            continue
        name = name.strip()
        try:
            mgs = engine.competency_graph.get_required_mgs_by_name(name)
        except NotFoundError as e:
            breakdown[name] = {"error": str(e)}
            continue
        breakdown[name] = [{"skill_id": s.skill_id, "skill_name": s.skill_name} for s in mgs]

    logger.info("learner.mgs_breakdown", competencies=len(breakdown))
    return {"competencies": breakdown}


Handler = Callable[[dict[str, Any] | None, Engine], dict[str, Any]]

HANDLER_MAP: dict[str, Handler] = {
    "assessment": handle_assessment,
    "assessment-ms": handle_assessment,
    "learner-ai": handle_learner,
    "learner-ai-ms": handle_learner,
}
