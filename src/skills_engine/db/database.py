"""SQLite database connection and schema management.

Provides connection management and schema initialization for the skills engine.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/skills_engine.db")

# Guard against cyclic edges in recursive hierarchy queries
MAX_HIERARCHY_DEPTH = 32

# Current database (module-level for CLI and web entry points)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/skills_engine.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Path of the database currently selected by init_db."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Args:
        db_path: Explicit database file; defaults to the one set by init_db.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM skills").fetchall()
    """
    path = db_path or get_db_path()

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Skill tree (edges live in skill_subskill)
        CREATE TABLE IF NOT EXISTS skills (
            skill_id TEXT PRIMARY KEY,
            skill_name TEXT NOT NULL UNIQUE,
            description TEXT,
            source TEXT DEFAULT 'import',
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS skill_subskill (
            parent_skill_id TEXT NOT NULL REFERENCES skills(skill_id) ON DELETE CASCADE,
            child_skill_id TEXT NOT NULL REFERENCES skills(skill_id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (parent_skill_id, child_skill_id)
        );

        -- Competency DAG
        CREATE TABLE IF NOT EXISTS competencies (
            competency_id TEXT PRIMARY KEY,
            competency_name TEXT NOT NULL,
            description TEXT,
            source TEXT DEFAULT 'import',
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- Alternative names resolving to the same competency (stored lowercased)
        CREATE TABLE IF NOT EXISTS competency_aliases (
            alias TEXT PRIMARY KEY,
            competency_id TEXT NOT NULL REFERENCES competencies(competency_id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS competency_skill (
            competency_id TEXT NOT NULL REFERENCES competencies(competency_id) ON DELETE CASCADE,
            skill_id TEXT NOT NULL REFERENCES skills(skill_id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (competency_id, skill_id)
        );

        CREATE TABLE IF NOT EXISTS competency_subcompetency (
            parent_competency_id TEXT NOT NULL REFERENCES competencies(competency_id) ON DELETE CASCADE,
            child_competency_id TEXT NOT NULL REFERENCES competencies(competency_id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (parent_competency_id, child_competency_id)
        );

        -- Per-user coverage state; version is the compare-and-swap token
        CREATE TABLE IF NOT EXISTS usercompetency (
            user_id TEXT NOT NULL,
            competency_id TEXT NOT NULL REFERENCES competencies(competency_id) ON DELETE CASCADE,
            coverage_percentage REAL NOT NULL DEFAULT 0.0,
            proficiency_level TEXT NOT NULL DEFAULT 'undefined',
            verified_skills TEXT NOT NULL DEFAULT '[]',
            version INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (user_id, competency_id)
        );

        CREATE TABLE IF NOT EXISTS user_career_path (
            user_id TEXT NOT NULL,
            competency_id TEXT NOT NULL REFERENCES competencies(competency_id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (user_id, competency_id)
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_skill_subskill_child ON skill_subskill(child_skill_id);
        CREATE INDEX IF NOT EXISTS idx_competency_skill_skill ON competency_skill(skill_id);
        CREATE INDEX IF NOT EXISTS idx_competency_subcomp_child ON competency_subcompetency(child_competency_id);
        CREATE INDEX IF NOT EXISTS idx_competencies_name ON competencies(competency_name COLLATE NOCASE);
        CREATE INDEX IF NOT EXISTS idx_usercompetency_user ON usercompetency(user_id);
        """
    )
