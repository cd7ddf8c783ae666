"""Core business logic.

Modules:
- skill_graph / competency_graph: read-only graph views
- exam_normalizer: payload and entry normalization
- coverage: coverage percentage and proficiency tiers
- row_writer: compare-and-swap row writes
- propagation: ancestor recomputation
- gap_analysis: missing MGS per career-path competency
- profile_snapshot: pruned profile tree
- outbox: best-effort downstream delivery
- exam_processor: run orchestration
- baseline_skills: baseline exam skill mapping
- engine: wiring over the SQLite repositories
"""

__all__ = [
    "skill_graph",
    "competency_graph",
    "exam_normalizer",
    "coverage",
    "row_writer",
    "propagation",
    "gap_analysis",
    "profile_snapshot",
    "outbox",
    "exam_processor",
    "baseline_skills",
    "engine",
]
