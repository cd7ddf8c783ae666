"""Gap analysis: which required MGS the user has not verified yet.

broad  - baseline exams and passed post-course exams
narrow - failed post-course exams

Both scan the user's career-path competencies. With
gap_analysis.narrow_scope = "updated_competencies", narrow runs scan only
the competencies updated in the run instead.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field

import structlog

from skills_engine.config.app_config import GapAnalysisConfig
from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.errors import NotFoundError, SkillsEngineError
from skills_engine.core.interfaces import UserCareerPathRepository, UserCompetencyRepository
from skills_engine.core.models import AnalysisType, Competency, ExamType

logger = structlog.get_logger(__name__)

PASSED = "passed"
FAILED = "failed"


@dataclass
class GapAnalysisResult:
    """Missing MGS per competency name plus the send decision."""

    analysis_type: AnalysisType
    exam_status: str
    gaps: dict[str, list[dict[str, str]]] = field(default_factory=dict)
    skipped: bool = False
    should_send: bool = False

    def to_dict(self) -> dict:
        return {
            "analysis_type": self.analysis_type.value,
            "exam_status": self.exam_status,
            "gaps": self.gaps,
            "skipped": self.skipped,
        }


def select_analysis_type(exam_type: ExamType, passed: bool) -> AnalysisType:
    if exam_type == ExamType.POST_COURSE and not passed:
        return AnalysisType.NARROW
    return AnalysisType.BROAD


def downstream_exam_status(exam_type: ExamType, passed: bool) -> str:
    """Baseline exams are always reported as failed."""
    if exam_type == ExamType.BASELINE:
        return FAILED
    return PASSED if passed else FAILED


class GapAnalysisSelector:
    """Builds gap payloads for a user."""

    def __init__(
        self,
        graph: CompetencyGraph,
        user_competencies: UserCompetencyRepository,
        career_paths: UserCareerPathRepository,
        config: GapAnalysisConfig | None = None,
    ):
        self.graph = graph
        self.user_competencies = user_competencies
        self.career_paths = career_paths
        self.config = config or GapAnalysisConfig()

    def verified_skill_ids(self, user_id: str) -> set[str]:
        """Union of verified entries across all of the user's rows."""
        verified: set[str] = set()
        for row in self.user_competencies.find_by_user(user_id):
            verified |= row.verified_skill_ids()
        return verified

    def find_gaps(
        self, user_id: str, competencies: list[Competency]
    ) -> dict[str, list[dict[str, str]]]:
        """Missing MGS keyed by competency name; fully covered ones are omitted."""
        verified = self.verified_skill_ids(user_id)
        gaps: dict[str, list[dict[str, str]]] = {}

        for competency in competencies:
            try:
                required = self.graph.get_required_mgs(competency.competency_id)
            except NotFoundError:
                logger.warning(
                    "gap_analysis.unknown_competency",
                    user_id=user_id,
                    competency_id=competency.competency_id,
                )
                continue
            except (SkillsEngineError, sqlite3.Error) as e:
                logger.warning(
                    "gap_analysis.lookup_failed",
                    user_id=user_id,
                    competency_id=competency.competency_id,
                    error=str(e),
                )
                continue

            missing = [
                {"skill_id": s.skill_id, "skill_name": s.skill_name}
                for s in required
                if s.skill_id not in verified
            ]
            if missing:
                gaps[competency.competency_name] = missing

        return gaps

    def career_path_competencies(self, user_id: str) -> list[Competency]:
        return [
            Competency(
                competency_id=row.competency_id,
                competency_name=row.competency_name or row.competency_id,
            )
            for row in self.career_paths.find_by_user(user_id)
        ]

    def run(
        self,
        user_id: str,
        exam_type: ExamType,
        passed: bool,
        updated_competencies: list[str] | None = None,
    ) -> GapAnalysisResult:
        analysis_type = select_analysis_type(exam_type, passed)
        result = GapAnalysisResult(
            analysis_type=analysis_type,
            exam_status=downstream_exam_status(exam_type, passed),
        )

        scope = self.career_path_competencies(user_id)
        if not scope:
            logger.info("gap_analysis.skipped", user_id=user_id, reason="no_career_path")
            result.skipped = True
            return result

        if (
            analysis_type == AnalysisType.NARROW
            and self.config.narrow_scope == "updated_competencies"
        ):
            scope = [
                c
                for c in (self.graph.find_by_id(cid) for cid in updated_competencies or [])
                if c is not None
            ]

        result.gaps = self.find_gaps(user_id, scope)
        result.should_send = exam_type == ExamType.POST_COURSE and bool(result.gaps)

        logger.info(
            "gap_analysis.completed",
            user_id=user_id,
            analysis_type=analysis_type.value,
            competencies_with_gaps=len(result.gaps),
            should_send=result.should_send,
        )
        return result
