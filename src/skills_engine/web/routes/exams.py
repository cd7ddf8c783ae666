"""Exam result intake and the unified service envelope."""

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from skills_engine.core.engine import Engine
from skills_engine.web.dependencies import get_engine
from skills_engine.web.handlers import HANDLER_MAP
from skills_engine.web.schemas import ServiceEnvelope

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["exams"])


@router.post("/exam-results")
def submit_exam_results(
    payload: Any = Body(...),
    engine: Engine = Depends(get_engine),
) -> dict[str, Any]:
    """Process one exam record. Returns {} or {"message": ...}."""
    return engine.processor.handle(payload)


@router.post("/fill-content-metrics")
def fill_content_metrics(
    envelope: ServiceEnvelope,
    engine: Engine = Depends(get_engine),
) -> JSONResponse:
    """Route the envelope by requester_service and fill response.answer."""
    body = envelope.model_dump()
    body["response"] = dict(envelope.response or {"answer": ""})

    if not envelope.requester_service:
        body["response"]["answer"] = "requester_service is required"
        return JSONResponse(status_code=400, content=body)

    handler = HANDLER_MAP.get(envelope.requester_service)
    if handler is None:
        body["response"]["answer"] = f"Unknown requester_service: {envelope.requester_service}"
        return JSONResponse(status_code=400, content=body)

    logger.info(
        "envelope.received",
        requester_service=envelope.requester_service,
        action=(envelope.payload or {}).get("action"),
    )
    body["response"]["answer"] = handler(envelope.payload, engine)
    return JSONResponse(status_code=200, content=body)
