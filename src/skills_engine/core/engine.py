"""Wiring of repositories, graphs and the exam processor.

Build one Engine per run or request: the graphs memoize definitions for
their own lifetime.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from skills_engine.config.app_config import AppConfig, load_app_config
from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.coverage import CoverageAggregator
from skills_engine.core.exam_normalizer import ExamNormalizer
from skills_engine.core.exam_processor import ExamResultProcessor
from skills_engine.core.gap_analysis import GapAnalysisSelector
from skills_engine.core.interfaces import ProfileSink
from skills_engine.core.outbox import Outbox
from skills_engine.core.profile_snapshot import ProfileSnapshotBuilder
from skills_engine.core.propagation import HierarchyPropagator
from skills_engine.core.row_writer import RowWriter
from skills_engine.core.skill_graph import SkillGraph
from skills_engine.db.career_paths_repository import SqliteUserCareerPathRepository
from skills_engine.db.competencies_repository import SqliteCompetencyRepository
from skills_engine.db.skills_repository import SqliteSkillRepository
from skills_engine.db.user_competencies_repository import SqliteUserCompetencyRepository


@dataclass
class Engine:
    config: AppConfig
    user_competencies: SqliteUserCompetencyRepository
    career_paths: SqliteUserCareerPathRepository
    skill_graph: SkillGraph
    competency_graph: CompetencyGraph
    gap_selector: GapAnalysisSelector
    snapshot_builder: ProfileSnapshotBuilder
    processor: ExamResultProcessor


def build_engine(
    config: AppConfig | None = None,
    db_path: Path | None = None,
    sink: ProfileSink | None = None,
) -> Engine:
    """Assemble an Engine over the SQLite repositories.

    Args:
        config: Defaults to load_app_config().
        db_path: Defaults to the database selected by init_db.
        sink: Outbound collaborator, owned and closed by the caller. None
            leaves every delivery channel skipped.
    """
    config = config or load_app_config()

    user_competencies = SqliteUserCompetencyRepository(db_path)
    career_paths = SqliteUserCareerPathRepository(db_path)
    skill_graph = SkillGraph(SqliteSkillRepository(db_path))
    competency_graph = CompetencyGraph(SqliteCompetencyRepository(db_path), skill_graph)

    writer = RowWriter(user_competencies, max_retries=config.exam.max_write_retries)
    aggregator = CoverageAggregator(competency_graph, user_competencies)
    gap_selector = GapAnalysisSelector(
        competency_graph, user_competencies, career_paths, config.gap_analysis
    )
    snapshot_builder = ProfileSnapshotBuilder(competency_graph, user_competencies)

    processor = ExamResultProcessor(
        graph=competency_graph,
        normalizer=ExamNormalizer(skill_graph, config.exam),
        aggregator=aggregator,
        propagator=HierarchyPropagator(competency_graph, aggregator, user_competencies, writer),
        gap_selector=gap_selector,
        snapshot_builder=snapshot_builder,
        user_competencies=user_competencies,
        writer=writer,
        outbox=Outbox(sink),
        config=config.exam,
    )

    return Engine(
        config=config,
        user_competencies=user_competencies,
        career_paths=career_paths,
        skill_graph=skill_graph,
        competency_graph=competency_graph,
        gap_selector=gap_selector,
        snapshot_builder=snapshot_builder,
        processor=processor,
    )
