"""Tests for app configuration (F4).

Tests the configuration loading, defaults, and fallbacks.
"""

from pathlib import Path

import pytest

from skills_engine.config.app_config import (
    AppConfig,
    CoordinatorConfig,
    ExamConfig,
    load_app_config,
)

REPO_CONFIG = Path(__file__).resolve().parents[2] / "data" / "config" / "app_config_v1.yaml"


class TestLoadAppConfig:
    """Tests for load_app_config function."""

    def test_load_config_from_yaml(self):
        """Loads the shipped app_config_v1.yaml."""
        config = load_app_config(config_path=REPO_CONFIG)
        assert isinstance(config, AppConfig)
        assert config.coordinator.service_name == "skills-engine"
        assert config.gap_analysis.narrow_scope == "career_path"
        assert config.exam.max_write_retries == 3

    def test_missing_file_uses_defaults(self, tmp_path):
        """Absent file falls back to built-in defaults."""
        config = load_app_config(config_path=tmp_path / "missing.yaml")
        assert config.coordinator.default_endpoint == "/api/fill-content-metrics/"
        assert config.exam.passing_grade == 60.0
        assert config.db_path == Path("db/skills_engine.db")

    def test_partial_file_merges_defaults(self, tmp_path):
        """Sections absent from the file keep their defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("exam:\n  passing_grade: 75\n", encoding="utf-8")

        config = load_app_config(config_path=path)
        assert config.exam.passing_grade == 75.0
        assert config.exam.max_write_retries == 3
        assert config.coordinator.enabled is True

    def test_invalid_narrow_scope_falls_back(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("gap_analysis:\n  narrow_scope: everything\n", encoding="utf-8")

        config = load_app_config(config_path=path)
        assert config.gap_analysis.narrow_scope == "career_path"

    def test_explicit_path_not_cached(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("exam:\n  passing_grade: 90\n", encoding="utf-8")
        load_app_config(config_path=path)

        assert load_app_config(config_path=tmp_path / "missing.yaml").exam.passing_grade == 60.0


class TestCoordinatorConfig:
    def test_env_overrides_base_url(self, monkeypatch):
        monkeypatch.setenv("COORDINATOR_URL", "http://env.test")
        config = CoordinatorConfig(base_url="http://file.test")
        assert config.get_base_url() == "http://env.test"

    def test_base_url_without_env(self):
        config = CoordinatorConfig(base_url="http://file.test")
        assert config.get_base_url() == "http://file.test"


class TestExamConfig:
    @pytest.mark.parametrize("exam_type", ["baseline", "post-course", "unknown"])
    def test_default_statuses(self, exam_type):
        assert ExamConfig().statuses_for(exam_type) == {"pass", "passed", "acquired", "success"}

    def test_statuses_lowercased(self):
        config = ExamConfig(success_statuses={"post-course": [" PASSED ", "Completed"]})
        assert config.statuses_for("post-course") == {"passed", "completed"}
