"""Route handlers for Web API."""

from skills_engine.web.routes.competencies import router as competencies_router
from skills_engine.web.routes.exams import router as exams_router
from skills_engine.web.routes.health import router as health_router
from skills_engine.web.routes.users import router as users_router

__all__ = [
    "health_router",
    "exams_router",
    "users_router",
    "competencies_router",
]
