"""Read-only view over the skill tree."""

from __future__ import annotations

import structlog

from skills_engine.core.interfaces import SkillRepository
from skills_engine.core.models import Skill

logger = structlog.get_logger(__name__)


class SkillGraph:
    """Leaf tests and name resolution on top of a SkillRepository.

    Leaf results are memoized for the lifetime of the object; build one
    graph per run.
    """

    def __init__(self, repository: SkillRepository):
        self.repository = repository
        self._leaf_cache: dict[str, bool] = {}

    def find_by_id(self, skill_id: str) -> Skill | None:
        return self.repository.find_by_id(skill_id)

    def find_by_name(self, name: str) -> Skill | None:
        """Case-insensitive, trimmed lookup."""
        if not isinstance(name, str) or not name.strip():
            return None
        return self.repository.find_by_name(name.strip())

    def is_leaf(self, skill_id: str) -> bool:
        """True when the skill has no children.

        Raises:
            NotFoundError: If the skill does not exist
        """
        if skill_id not in self._leaf_cache:
            self._leaf_cache[skill_id] = self.repository.is_leaf(skill_id)
        return self._leaf_cache[skill_id]

    def get_leaf_descendants(self, skill_id: str) -> list[Skill]:
        return self.repository.find_leaf_descendants(skill_id)

    def get_ancestor_ids(self, skill_id: str) -> list[str]:
        """Skill ancestors, nearest first."""
        return self.repository.get_parent_skill_ids(skill_id)
