"""Configuration package for the skills engine."""

from skills_engine.config.app_config import (
    AppConfig,
    CoordinatorConfig,
    ExamConfig,
    GapAnalysisConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "CoordinatorConfig",
    "ExamConfig",
    "GapAnalysisConfig",
    "clear_config_cache",
    "load_app_config",
]
