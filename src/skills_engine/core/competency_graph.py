"""Read-only view over the competency DAG.

Answers the structural questions the aggregation pipeline asks:
- which leaf skills (MGS) a competency requires, flattened through
  sub-competencies
- which competencies own a given skill, directly or through ancestors
- the ancestor chain of a competency, nearest first
"""

from __future__ import annotations

import structlog

from skills_engine.core.errors import NotFoundError
from skills_engine.core.interfaces import CompetencyRepository
from skills_engine.core.models import Competency, ParentLink, Skill
from skills_engine.core.skill_graph import SkillGraph

logger = structlog.get_logger(__name__)


class CompetencyGraph:
    """Competency queries with per-instance memoization.

    Definitions are treated as immutable for the lifetime of the object,
    so required-MGS sets and ancestor chains are cached. Create a new
    graph when definitions change.
    """

    def __init__(self, repository: CompetencyRepository, skills: SkillGraph):
        self.repository = repository
        self.skills = skills
        self._mgs_cache: dict[str, list[Skill]] = {}
        self._parents_cache: dict[str, list[ParentLink]] = {}

    def find_by_id(self, competency_id: str) -> Competency | None:
        return self.repository.find_by_id(competency_id)

    def find_by_name(self, name: str) -> Competency | None:
        if not isinstance(name, str) or not name.strip():
            return None
        return self.repository.find_by_name(name.strip())

    def get_sub_competencies(self, competency_id: str) -> list[Competency]:
        return self.repository.get_sub_competency_links(competency_id)

    # -------------------------------------------------------------------------
    # required MGS
    # -------------------------------------------------------------------------

    def get_required_mgs(self, competency_id: str) -> list[Skill]:
        """All leaf skills required by a competency, de-duplicated.

        Linked non-leaf skills contribute their leaf descendants;
        sub-competencies contribute their own required MGS.

        Raises:
            NotFoundError: If the competency does not exist
        """
        if competency_id in self._mgs_cache:
            return self._mgs_cache[competency_id]

        if self.repository.find_by_id(competency_id) is None:
            raise NotFoundError("Competency", competency_id)

        mgs, _ = self._collect_mgs(competency_id, visiting=set())
        self._mgs_cache[competency_id] = mgs
        return mgs

    def get_required_mgs_ids(self, competency_id: str) -> set[str]:
        return {skill.skill_id for skill in self.get_required_mgs(competency_id)}

    def get_required_mgs_by_name(self, name: str) -> list[Skill]:
        """Required MGS for a competency looked up by name or alias.

        Raises:
            NotFoundError: If no competency matches the name
        """
        competency = self.find_by_name(name)
        if competency is None:
            raise NotFoundError("Competency", name)
        return self.get_required_mgs(competency.competency_id)

    def _collect_mgs(
        self, competency_id: str, visiting: set[str]
    ) -> tuple[list[Skill], bool]:
        """Required MGS plus whether a cycle cut the walk short.

        Sets truncated by a cycle are not cached; only the walk's root sees
        every reachable node.
        """
        if competency_id in self._mgs_cache:
            return self._mgs_cache[competency_id], False
        if competency_id in visiting:
            logger.warning("competency_graph.cycle_detected", competency_id=competency_id)
            return [], True
        visiting.add(competency_id)

        collected: dict[str, Skill] = {}
        for skill_id in self.repository.get_linked_skill_ids(competency_id):
            for leaf in self.skills.get_leaf_descendants(skill_id):
                collected.setdefault(leaf.skill_id, leaf)

        cyclic = False
        for child in self.repository.get_sub_competency_links(competency_id):
            leaves, child_cyclic = self._collect_mgs(child.competency_id, visiting)
            cyclic = cyclic or child_cyclic
            for leaf in leaves:
                collected.setdefault(leaf.skill_id, leaf)

        visiting.discard(competency_id)
        result = list(collected.values())
        if not cyclic:
            self._mgs_cache[competency_id] = result
        return result, cyclic

    # -------------------------------------------------------------------------
    # ancestry
    # -------------------------------------------------------------------------

    def get_parent_links(self, competency_id: str) -> list[ParentLink]:
        """Every ancestor edge of a competency, nearest first (one query)."""
        if competency_id not in self._parents_cache:
            self._parents_cache[competency_id] = self.repository.get_parent_competencies(
                competency_id
            )
        return self._parents_cache[competency_id]

    def get_ancestors(self, competency_id: str) -> list[Competency]:
        """Unique ancestors, nearest first."""
        seen: dict[str, Competency] = {}
        for link in self.get_parent_links(competency_id):
            seen.setdefault(link.competency.competency_id, link.competency)
        return list(seen.values())

    def get_direct_competencies_by_skill(self, skill_id: str) -> list[Competency]:
        """Competencies linked to the skill itself or to one of its skill ancestors."""
        skill_ids = [skill_id, *self.skills.get_ancestor_ids(skill_id)]
        return self.repository.find_by_skills(skill_ids)

    def get_competencies_by_skill(self, skill_id: str) -> list[Competency]:
        """Directly linked competencies followed by all their ancestors.

        De-duplicated by competency_id; directly linked ones come first.
        """
        result: dict[str, Competency] = {}
        direct = self.get_direct_competencies_by_skill(skill_id)
        for competency in direct:
            result.setdefault(competency.competency_id, competency)
        for competency in direct:
            for ancestor in self.get_ancestors(competency.competency_id):
                result.setdefault(ancestor.competency_id, ancestor)
        return list(result.values())
