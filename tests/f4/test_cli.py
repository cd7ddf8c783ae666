"""Tests for CLI commands (F4)."""

import json
from unittest.mock import MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from skills_engine.cli.commands import app

USER_ID = "11111111-1111-4111-8111-111111111111"

runner = CliRunner()


@pytest.fixture
def cli_db(tmp_path, graph_document):
    """Database path seeded through the load-graph command."""
    db = tmp_path / "cli" / "skills.db"
    graph_document["career_paths"] = [{"user_id": USER_ID, "competency_id": "c-styling"}]
    graph_file = tmp_path / "graph.yaml"
    graph_file.write_text(yaml.safe_dump(graph_document), encoding="utf-8")

    result = runner.invoke(app, ["load-graph", str(graph_file), "--db", str(db)])
    assert result.exit_code == 0, result.output
    return db


def _write_exam(tmp_path, *skill_ids):
    path = tmp_path / "exam.json"
    path.write_text(
        json.dumps(
            {
                "user_id": USER_ID,
                "exam_type": "post-course",
                "exam_status": "passed",
                "skills": [{"skill_id": s, "status": "pass"} for s in skill_ids],
            }
        ),
        encoding="utf-8",
    )
    return path


class TestInitAndLoad:
    def test_init_db(self, tmp_path):
        db = tmp_path / "fresh" / "skills.db"
        result = runner.invoke(app, ["init-db", "--db", str(db)])

        assert result.exit_code == 0
        assert "Database ready" in result.output
        assert db.exists()

    def test_load_graph_reports_counts(self, cli_db):
        assert cli_db.exists()

    def test_load_graph_missing_file(self, tmp_path):
        result = runner.invoke(
            app, ["load-graph", str(tmp_path / "missing.yaml"), "--db", str(tmp_path / "x.db")]
        )
        assert result.exit_code == 1
        assert "not found" in result.output


class TestProcessExam:
    def test_process_exam(self, cli_db, tmp_path):
        exam = _write_exam(tmp_path, "s-closures", "s-promises")
        result = runner.invoke(app, ["process-exam", str(exam), "--db", str(cli_db), "--no-deliver"])

        assert result.exit_code == 0, result.output
        assert "post-course exam processed" in result.output
        assert "c-js" in result.output

    def test_delivery_without_coordinator(self, cli_db, tmp_path):
        exam = _write_exam(tmp_path, "s-css")
        result = runner.invoke(app, ["process-exam", str(exam), "--db", str(cli_db)])

        assert result.exit_code == 0, result.output
        assert "no_sink" in result.output

    def test_invalid_payload(self, cli_db, tmp_path):
        exam = tmp_path / "exam.json"
        exam.write_text(json.dumps({"exam_type": "baseline"}), encoding="utf-8")

        result = runner.invoke(app, ["process-exam", str(exam), "--db", str(cli_db)])
        assert result.exit_code == 1
        assert "user_id is required" in result.output

    def test_missing_file(self, cli_db, tmp_path):
        result = runner.invoke(
            app, ["process-exam", str(tmp_path / "none.json"), "--db", str(cli_db)]
        )
        assert result.exit_code == 1


class TestReadCommands:
    def test_profile(self, cli_db, tmp_path):
        runner.invoke(
            app,
            ["process-exam", str(_write_exam(tmp_path, "s-css")), "--db", str(cli_db), "--no-deliver"],
        )

        result = runner.invoke(app, ["profile", USER_ID, "--db", str(cli_db)])
        assert result.exit_code == 0
        assert '"relevanceScore": 0' in result.output
        assert "c-styling" in result.output

    def test_profile_invalid_user(self, cli_db):
        result = runner.invoke(app, ["profile", "not-a-uuid", "--db", str(cli_db)])
        assert result.exit_code == 1
        assert "Invalid user_id" in result.output

    def test_gaps_table(self, cli_db):
        result = runner.invoke(app, ["gaps", USER_ID, "--db", str(cli_db)])
        assert result.exit_code == 0
        assert "Styling" in result.output
        assert "CSS" in result.output

    def test_gaps_none_left(self, cli_db, tmp_path):
        runner.invoke(
            app,
            ["process-exam", str(_write_exam(tmp_path, "s-css")), "--db", str(cli_db), "--no-deliver"],
        )

        result = runner.invoke(app, ["gaps", USER_ID, "--db", str(cli_db)])
        assert "No gaps" in result.output

    def test_baseline_mapping(self, cli_db, tmp_path):
        runner.invoke(
            app,
            ["process-exam", str(_write_exam(tmp_path, "s-css")), "--db", str(cli_db), "--no-deliver"],
        )

        result = runner.invoke(app, ["baseline-mapping", USER_ID, "--db", str(cli_db)])
        assert result.exit_code == 0
        assert "Styling" in result.output
        assert "s-css" in result.output


class TestCoordinatorClientLifetime:
    """process-exam closes the coordinator client it opened."""

    def test_client_closed_after_delivery(self, cli_db, tmp_path):
        client = MagicMock()
        exam = _write_exam(tmp_path, "s-css")

        with patch("skills_engine.cli.commands.create_coordinator_client", return_value=client):
            result = runner.invoke(app, ["process-exam", str(exam), "--db", str(cli_db)])

        assert result.exit_code == 0, result.output
        client.send_updated_profile.assert_called_once()
        client.close.assert_called_once()

    def test_client_closed_when_processing_fails(self, cli_db, tmp_path):
        client = MagicMock()
        exam = _write_exam(tmp_path, "s-css")

        with patch(
            "skills_engine.cli.commands.create_coordinator_client", return_value=client
        ), patch(
            "skills_engine.cli.commands._process_and_report",
            side_effect=RuntimeError("database is locked"),
        ):
            result = runner.invoke(app, ["process-exam", str(exam), "--db", str(cli_db)])

        assert isinstance(result.exception, RuntimeError)
        client.close.assert_called_once()

    def test_no_client_opened_without_delivery(self, cli_db, tmp_path):
        exam = _write_exam(tmp_path, "s-css")

        with patch("skills_engine.cli.commands.create_coordinator_client") as factory:
            result = runner.invoke(
                app, ["process-exam", str(exam), "--db", str(cli_db), "--no-deliver"]
            )

        assert result.exit_code == 0, result.output
        factory.assert_not_called()
