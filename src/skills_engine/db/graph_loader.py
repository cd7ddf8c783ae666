"""Seed the skill tree and competency DAG from a YAML (or dict) document.

Document layout:

    skills:
      - {id: s-js, name: JavaScript}
      - {id: s-closures, name: Closures, parent: s-js}
    competencies:
      - id: c-frontend
        name: Frontend Development
        aliases: [front-end]
        skills: [s-js]
        sub_competencies: [c-react]
    career_paths:
      - {user_id: 1111..., competency_id: c-frontend}
    user_competencies:
      - {user_id: 1111..., competency_id: c-frontend}

Skills must be listed parent-first; competencies may appear in any order
(links are inserted after every competency row exists).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import yaml

from skills_engine.db.career_paths_repository import SqliteUserCareerPathRepository
from skills_engine.db.competencies_repository import SqliteCompetencyRepository
from skills_engine.db.skills_repository import SqliteSkillRepository
from skills_engine.db.user_competencies_repository import SqliteUserCompetencyRepository

logger = structlog.get_logger(__name__)


class GraphLoadError(Exception):
    """Raised when a graph document is malformed."""

    pass


@dataclass
class GraphLoadResult:
    """Counts of inserted records."""

    skills: int = 0
    competencies: int = 0
    skill_links: int = 0
    sub_competency_links: int = 0
    career_paths: int = 0
    user_competencies: int = 0


def load_graph_file(path: Path, db_path: Path | None = None) -> GraphLoadResult:
    """Load a YAML graph document from disk."""
    if not path.exists():
        raise GraphLoadError(f"Graph file not found: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise GraphLoadError(f"Graph file must contain a mapping: {path}")

    return load_graph(data, db_path=db_path)


def load_graph(data: dict[str, Any], db_path: Path | None = None) -> GraphLoadResult:
    """Insert skills, competencies, links and user rows.

    Raises:
        GraphLoadError: If an entry is missing its id or name
    """
    skills = SqliteSkillRepository(db_path)
    competencies = SqliteCompetencyRepository(db_path)
    user_rows = SqliteUserCompetencyRepository(db_path)
    career_paths = SqliteUserCareerPathRepository(db_path)
    result = GraphLoadResult()

    for entry in data.get("skills") or []:
        skill_id, name = _require(entry, "skill")
        skills.insert_skill(
            skill_id,
            name,
            parent_skill_id=entry.get("parent"),
            description=entry.get("description"),
        )
        result.skills += 1

    competency_entries = data.get("competencies") or []
    for entry in competency_entries:
        competency_id, name = _require(entry, "competency")
        competencies.insert_competency(
            competency_id,
            name,
            description=entry.get("description"),
            aliases=entry.get("aliases") or [],
        )
        result.competencies += 1

    for entry in competency_entries:
        for skill_id in entry.get("skills") or []:
            competencies.link_skill(entry["id"], skill_id)
            result.skill_links += 1
        for child_id in entry.get("sub_competencies") or []:
            competencies.link_sub_competency(entry["id"], child_id)
            result.sub_competency_links += 1

    for entry in data.get("career_paths") or []:
        career_paths.add(entry["user_id"], entry["competency_id"])
        result.career_paths += 1

    for entry in data.get("user_competencies") or []:
        user_rows.create(entry["user_id"], entry["competency_id"])
        result.user_competencies += 1

    logger.info(
        "graph.loaded",
        skills=result.skills,
        competencies=result.competencies,
        career_paths=result.career_paths,
    )
    return result


def _require(entry: Any, kind: str) -> tuple[str, str]:
    if not isinstance(entry, dict) or not entry.get("id") or not entry.get("name"):
        raise GraphLoadError(f"Each {kind} needs 'id' and 'name': {entry!r}")
    return str(entry["id"]), str(entry["name"])
