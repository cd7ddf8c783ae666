"""FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from skills_engine.core.engine import Engine, build_engine
from skills_engine.db.database import get_db_path


def get_engine(request: Request) -> Engine:
    """Fresh engine per request over the app's database and shared sink."""
    state = request.app.state
    db_path = getattr(state, "db_path", None) or get_db_path()
    return build_engine(db_path=db_path, sink=getattr(state, "sink", None))
