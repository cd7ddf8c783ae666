"""Tests for the Web API (F4)."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from skills_engine.coordinator.client import CoordinatorClient
from skills_engine.db.career_paths_repository import SqliteUserCareerPathRepository
from skills_engine.db.user_competencies_repository import SqliteUserCompetencyRepository
from skills_engine.web.api import create_app

USER_ID = "11111111-1111-4111-8111-111111111111"


@pytest.fixture
def client(graph_db):
    """Create test client over the seeded database."""
    app = create_app(db_path=graph_db)
    return TestClient(app)


def _post_course(*skill_ids, exam_status="passed"):
    return {
        "user_id": USER_ID,
        "exam_type": "post-course",
        "exam_status": exam_status,
        "skills": [{"skill_id": s, "status": "pass"} for s in skill_ids],
    }


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"
        assert "T" in data["timestamp"]


class TestExamResults:
    """Tests for POST /api/exam-results."""

    def test_processed_exam_returns_empty_object(self, client, graph_db):
        response = client.post("/api/exam-results", json=_post_course("s-closures", "s-promises"))

        assert response.status_code == 200
        assert response.json() == {}
        row = SqliteUserCompetencyRepository(graph_db).find_by_user_and_competency(USER_ID, "c-js")
        assert row.coverage_percentage == 100.0

    def test_missing_user_id(self, client):
        response = client.post("/api/exam-results", json={"exam_type": "baseline", "skills": []})
        assert response.status_code == 200
        assert response.json() == {"message": "user_id is required"}

    def test_invalid_user_id(self, client):
        response = client.post(
            "/api/exam-results", json={"user_id": "not-a-uuid", "exam_type": "baseline"}
        )
        assert response.json() == {"message": "Invalid user_id format: not-a-uuid"}

    def test_non_object_body(self, client):
        response = client.post("/api/exam-results", json=["not", "an", "object"])
        assert response.json() == {"message": "Invalid payload structure"}


class TestFillContentMetrics:
    """Tests for POST /api/fill-content-metrics."""

    def test_missing_requester_service(self, client):
        response = client.post("/api/fill-content-metrics", json={"payload": {}})
        assert response.status_code == 400
        assert response.json()["response"]["answer"] == "requester_service is required"

    def test_unknown_requester_service(self, client):
        response = client.post(
            "/api/fill-content-metrics", json={"requester_service": "billing", "payload": {}}
        )
        assert response.status_code == 400
        assert "billing" in response.json()["response"]["answer"]

    def test_assessment_exam_result(self, client, graph_db):
        response = client.post(
            "/api/fill-content-metrics",
            json={"requester_service": "assessment-ms", "payload": _post_course("s-css")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["requester_service"] == "assessment-ms"
        assert body["response"]["answer"] == {}
        row = SqliteUserCompetencyRepository(graph_db).find_by_user_and_competency(
            USER_ID, "c-styling"
        )
        assert row.coverage_percentage == 100.0

    def test_fetch_baseline_skills(self, client):
        response = client.post(
            "/api/fill-content-metrics",
            json={
                "requester_service": "assessment",
                "payload": {"action": "fetch-baseline-skills", "competency_name": "front-end"},
            },
        )

        answer = response.json()["response"]["answer"]
        assert answer["competency_name"] == "front-end"
        assert sorted(s["skill_id"] for s in answer["skills"]) == [
            "s-closures",
            "s-css",
            "s-html",
            "s-promises",
        ]

    def test_fetch_baseline_skills_requires_name(self, client):
        response = client.post(
            "/api/fill-content-metrics",
            json={"requester_service": "assessment", "payload": {"action": "fetch-baseline-skills"}},
        )
        assert "competency_name" in response.json()["response"]["answer"]["message"]

    def test_learner_breakdown(self, client):
        response = client.post(
            "/api/fill-content-metrics",
            json={
                "requester_service": "learner-ai",
                "payload": {"competencies": ["Styling", "Quantum Knitting"]},
            },
        )

        breakdown = response.json()["response"]["answer"]["competencies"]
        assert breakdown["Styling"] == [{"skill_id": "s-css", "skill_name": "CSS"}]
        assert "error" in breakdown["Quantum Knitting"]

    def test_learner_requires_list(self, client):
        response = client.post(
            "/api/fill-content-metrics",
            json={"requester_service": "learner-ai-ms", "payload": {"competencies": "Styling"}},
        )
        assert "message" in response.json()["response"]["answer"]


class TestUserEndpoints:
    """Tests for /api/users/{user_id}/..."""

    def test_invalid_user_id(self, client):
        response = client.get("/api/users/nope/competencies")
        assert response.status_code == 400

    def test_competencies_after_exam(self, client):
        client.post("/api/exam-results", json=_post_course("s-closures"))

        response = client.get(f"/api/users/{USER_ID}/competencies")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        row = data["competencies"][0]
        assert row["competency_id"] == "c-js"
        assert row["competency_name"] == "JavaScript Programming"
        assert row["coverage_percentage"] == 50.0
        assert row["proficiency_level"] == "INTERMEDIATE"
        assert row["verified_skills"][0]["skill_id"] == "s-closures"

    def test_empty_profile(self, client):
        response = client.get(f"/api/users/{USER_ID}/profile")
        assert response.json() == {"userId": USER_ID, "relevanceScore": 0, "competencies": []}

    def test_gaps_without_career_path(self, client):
        data = client.get(f"/api/users/{USER_ID}/gaps").json()
        assert data["skipped"] is True
        assert data["gaps"] == {}

    def test_gaps_for_career_path(self, client, graph_db):
        SqliteUserCareerPathRepository(graph_db).add(USER_ID, "c-backend")

        data = client.get(f"/api/users/{USER_ID}/gaps").json()
        assert data["analysis_type"] == "broad"
        assert data["gaps"] == {
            "Backend Development": [{"skill_id": "s-sql", "skill_name": "SQL"}]
        }


class TestCompetencyEndpoints:
    """Tests for /api/competencies/{name}/mgs."""

    def test_mgs_by_alias(self, client):
        response = client.get("/api/competencies/front-end/mgs")
        assert response.status_code == 200
        data = response.json()
        assert data["competency_id"] == "c-frontend"
        assert data["count"] == 4

    def test_unknown_competency(self, client):
        response = client.get("/api/competencies/unknown/mgs")
        assert response.status_code == 404


class TestCoordinatorLifespan:
    """One coordinator client per app, opened at startup."""

    def test_client_opened_and_closed_with_app(self, graph_db, monkeypatch):
        monkeypatch.setenv("COORDINATOR_URL", "http://coordinator.test")
        app = create_app(db_path=graph_db)

        with TestClient(app):
            opened = app.state.sink
            assert isinstance(opened, CoordinatorClient)

        assert app.state.sink is None
        assert opened._client.is_closed

    def test_no_client_without_url(self, graph_db):
        app = create_app(db_path=graph_db)

        with TestClient(app) as client:
            assert app.state.sink is None
            assert client.post("/api/exam-results", json=_post_course("s-css")).json() == {}

    def test_injected_sink_shared_and_left_open(self, graph_db):
        sink = MagicMock()
        app = create_app(db_path=graph_db, sink=sink)

        with TestClient(app) as client:
            client.post("/api/exam-results", json=_post_course("s-css"))
            client.post("/api/exam-results", json=_post_course("s-closures"))

        assert sink.send_updated_profile.call_count == 2
        sink.close.assert_not_called()
        assert app.state.sink is sink
