"""Upward recomputation of owned ancestor competencies."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.coverage import CoverageAggregator, map_coverage_to_proficiency
from skills_engine.core.interfaces import UserCompetencyRepository
from skills_engine.core.models import UserCompetency
from skills_engine.core.row_writer import RowWriter

logger = structlog.get_logger(__name__)


@dataclass
class PropagationResult:
    """Outcome of one propagation pass."""

    updated: list[str] = field(default_factory=list)
    not_owned: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class HierarchyPropagator:
    """Recomputes every owned ancestor of the touched competencies once."""

    def __init__(
        self,
        graph: CompetencyGraph,
        aggregator: CoverageAggregator,
        user_competencies: UserCompetencyRepository,
        writer: RowWriter,
    ):
        self.graph = graph
        self.aggregator = aggregator
        self.user_competencies = user_competencies
        self.writer = writer

    def propagate(
        self,
        user_id: str,
        touched: list[str],
        visited: set[str],
        rows: dict[str, UserCompetency],
    ) -> PropagationResult:
        """Walk each touched chain nearest-first.

        Args:
            visited: Run-scoped set; ancestors in it are skipped and every
                ancestor is added before it is recomputed.
            rows: Run-scoped rows written so far; updated in place.
        """
        result = PropagationResult()

        for competency_id in touched:
            candidates = [
                a.competency_id
                for a in self.graph.get_ancestors(competency_id)
                if a.competency_id not in visited
            ]
            if not candidates:
                continue

            stored = self.user_competencies.find_by_user_and_competencies(
                user_id, [cid for cid in candidates if cid not in rows]
            )

            for ancestor_id in candidates:
                if ancestor_id in visited:
                    continue
                visited.add(ancestor_id)

                current = rows.get(ancestor_id) or stored.get(ancestor_id)
                if current is None:
                    result.not_owned.append(ancestor_id)
                    continue

                try:
                    rows[ancestor_id] = self._recompute(user_id, ancestor_id, current, rows)
                    result.updated.append(ancestor_id)
                except Exception as e:
                    logger.exception(
                        "propagation.ancestor_failed",
                        user_id=user_id,
                        competency_id=ancestor_id,
                        error=str(e),
                    )
                    result.failed[ancestor_id] = str(e)

        logger.info(
            "propagation.completed",
            user_id=user_id,
            updated=len(result.updated),
            not_owned=len(result.not_owned),
            failed=len(result.failed),
        )
        return result

    def _recompute(
        self,
        user_id: str,
        ancestor_id: str,
        current: UserCompetency,
        rows: dict[str, UserCompetency],
    ) -> UserCompetency:
        def build(row: UserCompetency) -> dict:
            coverage = self.aggregator.calculate_parent_coverage(
                ancestor_id, user_id, known_rows=rows
            )
            return {
                "coverage_percentage": coverage,
                "proficiency_level": map_coverage_to_proficiency(coverage),
            }

        updated = self.writer.update(current, build)
        logger.debug(
            "propagation.ancestor_updated",
            user_id=user_id,
            competency_id=ancestor_id,
            coverage=updated.coverage_percentage,
        )
        return updated
