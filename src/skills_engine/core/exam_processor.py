"""Exam result processing run.

One call of ExamResultProcessor.handle() is one run:

1. normalize the payload and its skill entries
2. group acquired skills per owning competency (one write per competency)
3. write rows (baseline: owned rows only; post-course: may create rows
   for directly linked competencies)
4. propagate to owned ancestors, each at most once
5. gap analysis and profile snapshot
6. best-effort delivery through the outbox

Only payload errors and unexpected failures end a run early; everything
else is logged per item and the run continues.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Iterable

import structlog

from skills_engine.config.app_config import ExamConfig
from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.coverage import CoverageAggregator
from skills_engine.core.errors import InvalidPayloadError, SkillsEngineError
from skills_engine.core.exam_normalizer import (
    AcquiredSkill,
    ExamNormalizer,
    ExamPayload,
    normalize_payload,
)
from skills_engine.core.gap_analysis import GapAnalysisResult, GapAnalysisSelector
from skills_engine.core.interfaces import UserCompetencyRepository
from skills_engine.core.models import Competency, ExamType, UserCompetency, VerifiedSkill
from skills_engine.core.outbox import DeliveryReport, Outbox
from skills_engine.core.profile_snapshot import ProfileSnapshotBuilder
from skills_engine.core.propagation import HierarchyPropagator, PropagationResult
from skills_engine.core.row_writer import RowWriter

logger = structlog.get_logger(__name__)


@dataclass
class RunState:
    """State scoped to a single run."""

    user_id: str
    rows: dict[str, UserCompetency] = field(default_factory=dict)
    visited: set[str] = field(default_factory=set)
    updated_competencies: list[str] = field(default_factory=list)
    write_failures: dict[str, str] = field(default_factory=dict)


@dataclass
class ProcessingResult:
    """Core outcome of a run (delivery is reported separately)."""

    user_id: str
    exam_type: ExamType
    passed: bool
    acquired_skills: list[AcquiredSkill] = field(default_factory=list)
    updated_competencies: list[str] = field(default_factory=list)
    write_failures: dict[str, str] = field(default_factory=dict)
    propagation: PropagationResult = field(default_factory=PropagationResult)
    gap_analysis: GapAnalysisResult | None = None
    profile: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "exam_type": self.exam_type.value,
            "passed": self.passed,
            "acquired_skills": [s.skill_id for s in self.acquired_skills],
            "updated_competencies": self.updated_competencies,
            "propagated_competencies": self.propagation.updated,
            "write_failures": self.write_failures,
            "gap_analysis": self.gap_analysis.to_dict() if self.gap_analysis else None,
        }


@dataclass
class _CompetencyPlan:
    competency: Competency
    skills: dict[str, AcquiredSkill] = field(default_factory=dict)
    creatable: bool = False


def merge_verified_skills(
    existing: list[VerifiedSkill], additions: Iterable[AcquiredSkill]
) -> list[VerifiedSkill]:
    """Add acquired skills, unique by skill_id, keeping existing order.

    Existing entries are never removed; an existing entry for the same
    skill is replaced by the verified one.
    """
    merged = list(existing)
    positions = {s.skill_id: i for i, s in enumerate(merged)}
    for skill in additions:
        entry = skill.to_verified()
        if skill.skill_id in positions:
            merged[positions[skill.skill_id]] = entry
        else:
            positions[skill.skill_id] = len(merged)
            merged.append(entry)
    return merged


class ExamResultProcessor:
    """Orchestrates a run over injected collaborators."""

    def __init__(
        self,
        graph: CompetencyGraph,
        normalizer: ExamNormalizer,
        aggregator: CoverageAggregator,
        propagator: HierarchyPropagator,
        gap_selector: GapAnalysisSelector,
        snapshot_builder: ProfileSnapshotBuilder,
        user_competencies: UserCompetencyRepository,
        writer: RowWriter,
        outbox: Outbox,
        config: ExamConfig | None = None,
    ):
        self.graph = graph
        self.normalizer = normalizer
        self.aggregator = aggregator
        self.propagator = propagator
        self.gap_selector = gap_selector
        self.snapshot_builder = snapshot_builder
        self.user_competencies = user_competencies
        self.writer = writer
        self.outbox = outbox
        self.config = config or ExamConfig()

    # -------------------------------------------------------------------------
    # entry point
    # -------------------------------------------------------------------------

    def handle(self, raw: Any) -> dict[str, Any]:
        """Run the whole pipeline for a raw exam record.

        Returns:
            {} on completion, {"message": ...} when the payload is invalid
            or the run failed. Committed writes are kept either way.
        """
        try:
            payload = normalize_payload(raw)
            result = self.process(payload)
            self.deliver(result)
        except InvalidPayloadError as e:
            logger.warning("exam.invalid_payload", error=str(e))
            return {"message": str(e)}
        except Exception as e:
            logger.exception("exam.run_failed", error=str(e))
            return {"message": str(e) or "Internal server error"}
        return {}

    def process(self, payload: ExamPayload) -> ProcessingResult:
        state = RunState(user_id=payload.user_id)
        passed = self.exam_passed(payload)

        if payload.exam_type == ExamType.POST_COURSE:
            logger.info(
                "exam.post_course_received",
                user_id=payload.user_id,
                course_name=payload.course_name,
                exam_status=payload.exam_status,
                final_grade=payload.final_grade,
                entries=len(payload.entries),
            )

        acquired = self.normalizer.normalize_entries(payload)
        plans = self._plan(acquired, payload.user_id)
        self._write_direct(payload.exam_type, plans, state)

        propagation = self.propagator.propagate(
            state.user_id, list(state.updated_competencies), state.visited, state.rows
        )

        gap_analysis = self.gap_selector.run(
            state.user_id, payload.exam_type, passed, state.updated_competencies
        )
        profile = self.snapshot_builder.build(state.user_id)

        logger.info(
            "exam.processed",
            user_id=state.user_id,
            exam_type=payload.exam_type.value,
            acquired=len(acquired),
            updated=len(state.updated_competencies),
            propagated=len(propagation.updated),
            write_failures=len(state.write_failures),
        )
        return ProcessingResult(
            user_id=state.user_id,
            exam_type=payload.exam_type,
            passed=passed,
            acquired_skills=acquired,
            updated_competencies=state.updated_competencies,
            write_failures=state.write_failures,
            propagation=propagation,
            gap_analysis=gap_analysis,
            profile=profile,
        )

    def deliver(self, result: ProcessingResult) -> DeliveryReport:
        report = DeliveryReport()
        self.outbox.deliver_gap_analysis(result.user_id, result.gap_analysis, report)
        self.outbox.deliver_profile(result.user_id, result.profile, report)
        return report

    def exam_passed(self, payload: ExamPayload) -> bool:
        """exam_status when given, otherwise final_grade against the passing grade."""
        if payload.exam_status:
            return payload.exam_status in self.config.statuses_for(ExamType.POST_COURSE.value)
        if payload.final_grade is not None:
            return payload.final_grade >= self.config.passing_grade
        return False

    # -------------------------------------------------------------------------
    # direct updates
    # -------------------------------------------------------------------------

    def _plan(self, acquired: list[AcquiredSkill], user_id: str) -> dict[str, _CompetencyPlan]:
        """Group acquired skills per competency, applying the MGS guard."""
        plans: dict[str, _CompetencyPlan] = {}

        for skill in acquired:
            try:
                direct_ids = {
                    c.competency_id
                    for c in self.graph.get_direct_competencies_by_skill(skill.skill_id)
                }
                competencies = self.graph.get_competencies_by_skill(skill.skill_id)
            except (SkillsEngineError, sqlite3.Error) as e:
                logger.warning("exam.skill_lookup_failed", skill_id=skill.skill_id, error=str(e))
                continue

            if not competencies:
                logger.info("exam.skill_without_competency", user_id=user_id, skill_id=skill.skill_id)

            for competency in competencies:
                competency_id = competency.competency_id
                try:
                    required = self.graph.get_required_mgs_ids(competency_id)
                except (SkillsEngineError, sqlite3.Error) as e:
                    logger.warning(
                        "exam.competency_lookup_failed", competency_id=competency_id, error=str(e)
                    )
                    continue

                if skill.skill_id not in required:
                    logger.info(
                        "exam.mgs_guard_skipped",
                        user_id=user_id,
                        skill_id=skill.skill_id,
                        competency_id=competency_id,
                    )
                    continue

                plan = plans.setdefault(competency_id, _CompetencyPlan(competency=competency))
                plan.skills[skill.skill_id] = skill
                plan.creatable = plan.creatable or competency_id in direct_ids

        return plans

    def _write_direct(
        self, exam_type: ExamType, plans: dict[str, _CompetencyPlan], state: RunState
    ) -> None:
        if not plans:
            return

        existing = self.user_competencies.find_by_user_and_competencies(state.user_id, plans)

        for competency_id, plan in plans.items():
            row = existing.get(competency_id)
            may_create = exam_type == ExamType.POST_COURSE and plan.creatable
            if row is None and not may_create:
                logger.info(
                    "exam.competency_not_owned",
                    user_id=state.user_id,
                    competency_id=competency_id,
                    exam_type=exam_type.value,
                )
                continue

            additions = list(plan.skills.values())

            def build(current: UserCompetency, cid=competency_id, additions=additions) -> dict:
                merged = merge_verified_skills(current.verified_skills, additions)
                coverage, level = self.aggregator.coverage_for(cid, merged)
                return {
                    "verified_skills": merged,
                    "coverage_percentage": coverage,
                    "proficiency_level": level,
                }

            try:
                if row is None:
                    written = self.writer.create_or_update(state.user_id, competency_id, build)
                else:
                    written = self.writer.update(row, build)
            except (SkillsEngineError, sqlite3.Error) as e:
                logger.error(
                    "exam.write_failed",
                    user_id=state.user_id,
                    competency_id=competency_id,
                    error=str(e),
                )
                state.write_failures[competency_id] = str(e)
                continue

            state.rows[competency_id] = written
            state.updated_competencies.append(competency_id)
            logger.debug(
                "exam.competency_updated",
                user_id=state.user_id,
                competency_id=competency_id,
                coverage=written.coverage_percentage,
                level=written.proficiency_level.value,
            )
