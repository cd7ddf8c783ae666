"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
with built-in defaults when the file is absent.

Usage:
    from skills_engine.config.app_config import load_app_config

    config = load_app_config()
    coordinator = config.coordinator
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DEFAULT_SUCCESS_STATUSES = ["pass", "passed", "acquired", "success"]


@dataclass
class CoordinatorConfig:
    """Configuration for the outbound coordinator gateway."""

    base_url: str | None = None
    base_url_env: str | None = "COORDINATOR_URL"
    service_name: str = "skills-engine"
    timeout_seconds: float = 30.0
    default_endpoint: str = "/api/fill-content-metrics/"
    profile_endpoint: str = "/api/events/directory/updated-profile"
    enabled: bool = True

    def get_base_url(self) -> str | None:
        """Resolve base URL, environment variable first."""
        if self.base_url_env:
            from_env = os.environ.get(self.base_url_env)
            if from_env:
                return from_env
        return self.base_url


@dataclass
class ExamConfig:
    """Exam-result processing settings."""

    success_statuses: dict[str, list[str]] = field(
        default_factory=lambda: {
            "baseline": list(DEFAULT_SUCCESS_STATUSES),
            "post-course": list(DEFAULT_SUCCESS_STATUSES),
        }
    )
    passing_grade: float = 60.0
    max_write_retries: int = 3

    def statuses_for(self, exam_type: str) -> frozenset[str]:
        """Success vocabulary for an exam type (lowercased)."""
        statuses = self.success_statuses.get(exam_type, DEFAULT_SUCCESS_STATUSES)
        return frozenset(s.strip().lower() for s in statuses)


@dataclass
class GapAnalysisConfig:
    """Gap analysis settings.

    narrow_scope:
        "career_path" (default) scans every career-path competency.
        "updated_competencies" limits narrow runs to competencies
        updated in the same run.
    """

    narrow_scope: str = "career_path"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    coordinator: CoordinatorConfig = field(default_factory=CoordinatorConfig)
    exam: ExamConfig = field(default_factory=ExamConfig)
    gap_analysis: GapAnalysisConfig = field(default_factory=GapAnalysisConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def db_path(self) -> Path:
        return Path(self.paths.get("db_path", "db/skills_engine.db"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "coordinator": {
            "base_url": None,
            "base_url_env": "COORDINATOR_URL",
            "service_name": "skills-engine",
            "timeout_seconds": 30.0,
            "default_endpoint": "/api/fill-content-metrics/",
            "profile_endpoint": "/api/events/directory/updated-profile",
            "enabled": True,
        },
        "exam": {
            "success_statuses": {
                "baseline": list(DEFAULT_SUCCESS_STATUSES),
                "post-course": list(DEFAULT_SUCCESS_STATUSES),
            },
            "passing_grade": 60.0,
            "max_write_retries": 3,
        },
        "gap_analysis": {
            "narrow_scope": "career_path",
        },
        "paths": {
            "db_path": "db/skills_engine.db",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    coord_data = {**defaults["coordinator"], **(data.get("coordinator") or {})}
    coordinator = CoordinatorConfig(
        base_url=coord_data.get("base_url"),
        base_url_env=coord_data.get("base_url_env"),
        service_name=coord_data.get("service_name", "skills-engine"),
        timeout_seconds=float(coord_data.get("timeout_seconds", 30.0)),
        default_endpoint=coord_data.get("default_endpoint", "/api/fill-content-metrics/"),
        profile_endpoint=coord_data.get(
            "profile_endpoint", "/api/events/directory/updated-profile"
        ),
        enabled=bool(coord_data.get("enabled", True)),
    )

    exam_data = {**defaults["exam"], **(data.get("exam") or {})}
    exam = ExamConfig(
        success_statuses={
            **defaults["exam"]["success_statuses"],
            **(exam_data.get("success_statuses") or {}),
        },
        passing_grade=float(exam_data.get("passing_grade", 60.0)),
        max_write_retries=int(exam_data.get("max_write_retries", 3)),
    )

    gap_data = {**defaults["gap_analysis"], **(data.get("gap_analysis") or {})}
    narrow_scope = gap_data.get("narrow_scope", "career_path")
    if narrow_scope not in ("career_path", "updated_competencies"):
        logger.warning("config.invalid_narrow_scope", value=narrow_scope)
        narrow_scope = "career_path"
    gap_analysis = GapAnalysisConfig(narrow_scope=narrow_scope)

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(
        coordinator=coordinator,
        exam=exam,
        gap_analysis=gap_analysis,
        paths=paths,
    )


def load_app_config(
    force_reload: bool = False,
    config_path: Path | None = None,
) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_path: Optional explicit YAML path (bypasses the cache).

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if config_path is None and _cached_config is not None and not force_reload:
        return _cached_config

    source = config_path or CONFIG_FILE
    data: dict[str, Any]

    if source.exists():
        logger.debug("loading_app_config", source=str(source))
        data = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)
    if config_path is None:
        _cached_config = config
    return config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
