"""Canonical competency profile for the directory collaborator."""

from __future__ import annotations

from typing import Any

import structlog

from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.interfaces import UserCompetencyRepository
from skills_engine.core.models import UserCompetency

logger = structlog.get_logger(__name__)


class ProfileSnapshotBuilder:
    """Builds the pruned tree of owned competencies."""

    def __init__(self, graph: CompetencyGraph, user_competencies: UserCompetencyRepository):
        self.graph = graph
        self.user_competencies = user_competencies

    def build(
        self, user_id: str, rows: list[UserCompetency] | None = None
    ) -> dict[str, Any]:
        """Return {userId, relevanceScore, competencies}.

        Each node hangs under its nearest owned ancestor (first link wins).
        Nodes with zero coverage and no kept children are dropped.
        """
        if rows is None:
            rows = self.user_competencies.find_by_user(user_id)
        owned = {row.competency_id: row for row in rows}

        nodes: dict[str, dict[str, Any]] = {}
        for competency_id, row in owned.items():
            competency = self.graph.find_by_id(competency_id)
            nodes[competency_id] = {
                "competencyId": competency_id,
                "competencyName": competency.competency_name if competency else competency_id,
                "level": row.proficiency_level.value,
                "coverage": row.coverage_percentage,
                "children": [],
            }

        roots: list[str] = []
        for competency_id in owned:
            parent_id = self._nearest_owned_parent(competency_id, owned)
            if parent_id is None:
                roots.append(competency_id)
            else:
                nodes[parent_id]["children"].append(competency_id)

        competencies = [
            node
            for node in (self._prune(root, nodes, set()) for root in roots)
            if node is not None
        ]

        logger.debug("profile.snapshot_built", user_id=user_id, roots=len(competencies))
        return {"userId": user_id, "relevanceScore": 0, "competencies": competencies}

    def _nearest_owned_parent(
        self, competency_id: str, owned: dict[str, UserCompetency]
    ) -> str | None:
        for link in self.graph.get_parent_links(competency_id):
            parent_id = link.competency.competency_id
            if parent_id in owned and parent_id != competency_id:
                return parent_id
        return None

    def _prune(
        self, competency_id: str, nodes: dict[str, dict[str, Any]], path: set[str]
    ) -> dict[str, Any] | None:
        if competency_id in path:
            return None
        node = nodes[competency_id]
        children = [
            child
            for child in (
                self._prune(cid, nodes, path | {competency_id}) for cid in node["children"]
            )
            if child is not None
        ]
        if not children and not node["coverage"]:
            return None

        pruned = {k: v for k, v in node.items() if k != "children"}
        if children:
            pruned["children"] = children
        return pruned
