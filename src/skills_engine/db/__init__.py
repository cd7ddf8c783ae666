"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repositories for skills, competencies, user competencies and career paths
- Graph seeding from YAML documents
"""

from skills_engine.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
