"""
API tests for the results server (repository mocked)

Tests cover:
1. Leaderboard endpoints (individual, grouped, team)
2. CSV export
3. Score preview and submission
4. Error mapping
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from app.results.router import get_results_service
from app.results.service import ResultsService
from app.server import app
from data_pipeline.schemas import LeaderboardViewRow
from data_pipeline.snapshot import CompetitionSnapshot
from database.supabase_client import RepositoryError, ScoreAlreadyVerified
from scheduler.cache import SnapshotCache
from scoring.models import StageDefinition


EXAMPLE_SHOTS = [
    {"round": 1, "score": 0, "isX": False, "isV": False},
    {"round": 2, "score": 0, "isX": False, "isV": False},
    {"round": 3, "score": 5, "isX": True, "isV": False},
    {"round": 4, "score": 5, "isX": False, "isV": True},
    {"round": 5, "score": 5, "isX": False, "isV": False},
    {"round": 6, "score": 4, "isX": False, "isV": False},
    {"round": 7, "score": 5, "isX": False, "isV": False},
    {"round": 8, "score": 5, "isX": True, "isV": False},
    {"round": 9, "score": 3, "isX": False, "isV": False},
    {"round": 10, "score": 5, "isX": False, "isV": False},
    {"round": 11, "score": 5, "isX": False, "isV": False},
    {"round": 12, "score": 4, "isX": False, "isV": False},
]


@pytest.fixture
def repository(competition):
    registrations, scores, teams = competition
    snapshot = CompetitionSnapshot(
        competition_id="c1",
        stages=[StageDefinition(id="s1", stage_number=1), StageDefinition(id="s2", stage_number=2)],
        registrations=registrations,
        verified_scores=scores,
        teams=teams,
    )

    repo = MagicMock()
    repo.fetch_competition_snapshot = AsyncMock(return_value=snapshot)
    repo.fetch_competitions_with_results = AsyncMock(return_value=[{"id": "c1", "name": "Nationals"}])
    repo.fetch_leaderboard_view = AsyncMock(return_value=None)
    repo.save_stage_score = AsyncMock(return_value="sc-1")
    return repo


@pytest.fixture
def service(repository):
    return ResultsService(repository, cache=SnapshotCache(max_age_seconds=30))


@pytest.fixture
def client(service):
    app.dependency_overrides[get_results_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Leaderboards
# =============================================================================

class TestLeaderboardEndpoints:
    """Tests for leaderboard reads"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_competitions(self, client):
        response = client.get("/api/competitions")
        assert response.status_code == 200
        assert response.json() == [{"id": "c1", "name": "Nationals"}]

    def test_individual_results(self, client):
        response = client.get("/api/competitions/c1/results")
        assert response.status_code == 200

        data = response.json()
        assert data["view"] == "individual"
        assert [r["registration_id"] for r in data["results"]] == ["r1", "r2", "r3", "r4", "r7", "r5", "r6"]
        assert data["results"][0]["total_score"] == pytest.approx(95.002)
        assert data["results"][0]["position"] == 1
        assert data["anomalies"] == []

    def test_filtered_results(self, client):
        response = client.get("/api/competitions/c1/results", params={"discipline_id": "d2", "search": "hugo"})
        data = response.json()
        assert [r["registration_id"] for r in data["results"]] == ["r7"]
        assert data["results"][0]["position"] == 1

    def test_discipline_view(self, client):
        data = client.get("/api/competitions/c1/results", params={"view": "discipline"}).json()
        assert set(data["groups"]) == {"d1", "d2"}
        assert data["results"] == []

    def test_age_view(self, client):
        data = client.get("/api/competitions/c1/results", params={"view": "age"}).json()
        assert [r["registration_id"] for r in data["groups"]["Veteran_60_plus"]] == ["r4"]

    def test_invalid_view(self, client):
        response = client.get("/api/competitions/c1/results", params={"view": "province"})
        assert response.status_code == 422

    def test_team_results(self, client):
        data = client.get("/api/competitions/c1/teams").json()

        assert [t["team_id"] for t in data["results"]] == ["t1", "t2"]
        assert data["results"][0]["scores_counted"] == 3
        assert data["results"][0]["member_count"] == 4
        assert data["results"][0]["total_score"] == pytest.approx(279.003)

    def test_snapshot_cached_between_requests(self, client, repository):
        client.get("/api/competitions/c1/results")
        client.get("/api/competitions/c1/teams")
        assert repository.fetch_competition_snapshot.await_count == 1

    def test_repository_failure_returns_503(self, client, repository):
        repository.fetch_competition_snapshot.side_effect = RepositoryError("stages query failed")
        response = client.get("/api/competitions/c9/results")
        assert response.status_code == 503


class TestPrecomputedView:
    """Tests for the competition_leaderboard view path"""

    def test_view_rows_used_when_available(self, repository):
        repository.fetch_leaderboard_view.return_value = [
            LeaderboardViewRow(registration_id="a", full_names="Low", total_score=80.0),
            LeaderboardViewRow(registration_id="b", full_names="High", total_score=90.0),
            LeaderboardViewRow(registration_id="c", full_names="Out", total_score=99.0, has_dnf=True),
        ]
        service = ResultsService(repository, cache=SnapshotCache(), prefer_view=True)
        app.dependency_overrides[get_results_service] = lambda: service
        try:
            data = TestClient(app).get("/api/competitions/c1/results").json()
        finally:
            app.dependency_overrides.clear()

        assert [r["registration_id"] for r in data["results"]] == ["b", "a", "c"]
        repository.fetch_competition_snapshot.assert_not_awaited()

    def test_missing_view_falls_back_to_aggregation(self, repository):
        service = ResultsService(repository, cache=SnapshotCache(), prefer_view=True)
        app.dependency_overrides[get_results_service] = lambda: service
        try:
            data = TestClient(app).get("/api/competitions/c1/results").json()
        finally:
            app.dependency_overrides.clear()

        assert len(data["results"]) == 7
        repository.fetch_competition_snapshot.assert_awaited_once()


# =============================================================================
# CSV export
# =============================================================================

class TestCsvEndpoint:
    """Tests for CSV download"""

    def test_individual_csv(self, client):
        response = client.get("/api/competitions/c1/results.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0].startswith('"Position","Name","SABU Number","Club","Province","Stage 1","Stage 2"')
        assert len(lines) == 8

    def test_team_csv(self, client):
        response = client.get("/api/competitions/c1/results.csv", params={"teams": True})
        lines = response.text.splitlines()
        assert lines[0].startswith('"Position","Team"')
        assert len(lines) == 3


# =============================================================================
# Stage scores
# =============================================================================

class TestScoringEndpoints:
    """Tests for preview and submission"""

    def test_preview(self, client):
        response = client.post("/api/scoring/preview", json={
            "shots": EXAMPLE_SHOTS,
            "stage": {"scoring_rounds": 10, "sighter_count": 2},
            "sighter_mode": "count_none",
        })
        assert response.status_code == 200

        data = response.json()
        assert data["total_score"] == pytest.approx(46.001)
        assert data["x_count"] == 2
        assert data["v_count"] == 1
        assert (data["window_start"], data["window_end"]) == (3, 12)

    def test_preview_count_sighter_1(self, client):
        data = client.post("/api/scoring/preview", json={
            "shots": EXAMPLE_SHOTS, "sighter_mode": "count_sighter_1",
        }).json()
        assert data["total_score"] == pytest.approx(37.001)
        assert [s["score"] for s in data["shots"][10:]] == [0, 0]
        assert [s["score"] for s in data["recorded_shots"][10:]] == [5, 4]

    def test_preview_dq(self, client):
        data = client.post("/api/scoring/preview", json={"shots": EXAMPLE_SHOTS, "is_dq": True}).json()
        assert data["total_score"] == 0
        assert data["computed_score"] == pytest.approx(46.001)

    def test_preview_invalid_stage(self, client):
        response = client.post("/api/scoring/preview", json={
            "shots": EXAMPLE_SHOTS, "stage": {"scoring_rounds": 0},
        })
        assert response.status_code == 422

    def test_preview_without_shots(self, client):
        response = client.post("/api/scoring/preview", json={"shots": []})
        assert response.status_code == 422

    def test_submit(self, client, repository):
        response = client.post("/api/competitions/c1/scores", json={
            "registration_id": "r1",
            "stage_id": "s1",
            "submitted_by": "officer-1",
            "shots": EXAMPLE_SHOTS,
        })
        assert response.status_code == 200

        data = response.json()
        assert data["score_id"] == "sc-1"
        assert data["stage_score"]["total_score"] == pytest.approx(46.001)
        args = repository.save_stage_score.await_args.args
        assert args[:2] == ("r1", "s1")
        assert args[3] == "officer-1"

    def test_submit_verified_conflict(self, client, repository):
        repository.save_stage_score.side_effect = ScoreAlreadyVerified("r1", "s1")
        response = client.post("/api/competitions/c1/scores", json={
            "registration_id": "r1",
            "stage_id": "s1",
            "submitted_by": "officer-1",
            "shots": EXAMPLE_SHOTS,
        })
        assert response.status_code == 409
