"""
Unit tests for the Supabase results repository (client mocked)
"""

import pytest
from unittest.mock import MagicMock, patch

from database.supabase_client import (
    RepositoryError,
    ResultsRepository,
    ScoreAlreadyVerified,
    get_supabase_client,
)
from scoring.calculator import build_stage_score
from scoring.models import SighterMode, StageDefinition


def make_query(*responses):
    """Chainable query mock; each execute() returns the next response's data"""
    query = MagicMock()
    for name in ("select", "eq", "in_", "order", "update", "insert", "is_"):
        getattr(query, name).return_value = query
    query.not_ = query
    query.execute.side_effect = [MagicMock(data=data) for data in responses]
    return query


def make_client(**tables):
    client = MagicMock()
    client.table.side_effect = lambda name: tables[name]
    return client


@pytest.fixture
def stage_score(example_shots):
    return build_stage_score(example_shots, StageDefinition(), SighterMode.COUNT_NONE)


class TestClientFactory:
    """Tests for the client singleton"""

    def test_missing_settings(self):
        settings = MagicMock(supabase_url="", supabase_key="")
        with patch("database.supabase_client.supabase_config", settings), \
                patch("database.supabase_client._supabase_client", None):
            with pytest.raises(ValueError):
                get_supabase_client()


class TestReads:
    """Tests for snapshot and view reads"""

    @pytest.mark.asyncio
    async def test_fetch_competition_snapshot(self):
        client = make_client(
            stages=make_query([{"id": "s1", "stage_number": 1}]),
            registrations=make_query([{
                "id": "r1", "user_id": "u1", "team_id": "t1", "discipline_id": "d1",
                "profiles": {"full_names": "Anna", "surname": "Botha"},
            }]),
            scores=make_query([{
                "registration_id": "r1", "stage_id": "s1", "score": 48.002, "x_count": 3, "v_count": 2,
                "verified_at": "2026-03-14T10:30:00", "stages": {"id": "s1", "stage_number": 1},
            }]),
            teams=make_query([{"id": "t1", "name": "Free State A", "member_ids": [{"user_id": "u1"}]}]),
        )

        snapshot = await ResultsRepository(client).fetch_competition_snapshot("c1")

        assert snapshot.competition_id == "c1"
        assert snapshot.registrations[0].shooter_name == "Anna Botha"
        assert snapshot.verified_scores[0].score == pytest.approx(48.002)
        assert snapshot.teams[0].name == "Free State A"

    @pytest.mark.asyncio
    async def test_snapshot_without_teams_skips_team_query(self):
        client = make_client(
            stages=make_query([]),
            registrations=make_query([{"id": "r1"}]),
            scores=make_query([]),
        )

        snapshot = await ResultsRepository(client).fetch_competition_snapshot("c1")
        assert snapshot.teams == []

    @pytest.mark.asyncio
    async def test_query_failure_raises_repository_error(self):
        stages = MagicMock()
        stages.select.return_value = stages
        stages.eq.return_value = stages
        stages.order.return_value = stages
        stages.execute.side_effect = Exception("connection reset")

        with pytest.raises(RepositoryError):
            await ResultsRepository(make_client(stages=stages)).fetch_competition_snapshot("c1")

    @pytest.mark.asyncio
    async def test_competitions_with_results(self):
        competitions = make_query([{"id": "c1", "name": "Nationals"}])
        client = make_client(
            scores=make_query([
                {"registrations": {"competition_id": "c1"}},
                {"registrations": {"competition_id": "c1"}},
                {"registrations": None},
            ]),
            competitions=competitions,
        )

        rows = await ResultsRepository(client).fetch_competitions_with_results()

        assert rows == [{"id": "c1", "name": "Nationals"}]
        competitions.in_.assert_called_once_with("id", ["c1"])

    @pytest.mark.asyncio
    async def test_no_verified_scores_no_competitions(self):
        client = make_client(scores=make_query([]))
        assert await ResultsRepository(client).fetch_competitions_with_results() == []

    @pytest.mark.asyncio
    async def test_leaderboard_view_rows(self):
        client = make_client(competition_leaderboard=make_query([
            {"registration_id": "r1", "total_score": 95.002, "stage_scores": '{"S1": 48.002}'},
        ]))

        rows = await ResultsRepository(client).fetch_leaderboard_view("c1")
        assert rows[0].stage_scores == {"S1": 48.002}

    @pytest.mark.asyncio
    async def test_leaderboard_view_empty_falls_back(self):
        client = make_client(competition_leaderboard=make_query([]))
        assert await ResultsRepository(client).fetch_leaderboard_view("c1") is None

    @pytest.mark.asyncio
    async def test_leaderboard_view_missing_falls_back(self):
        view = MagicMock()
        view.select.side_effect = Exception("relation does not exist")
        client = make_client(competition_leaderboard=view)

        assert await ResultsRepository(client).fetch_leaderboard_view("c1") is None


class TestSaveStageScore:
    """Tests for pending score writes"""

    @pytest.mark.asyncio
    async def test_insert_new_score(self, stage_score):
        scores = make_query([], [{"id": "sc-new"}])
        repository = ResultsRepository(make_client(scores=scores))

        score_id = await repository.save_stage_score("r1", "s1", stage_score, "officer-1", notes="calm")

        assert score_id == "sc-new"
        payload = scores.insert.call_args[0][0]
        assert payload["score"] == pytest.approx(46.001)
        assert payload["x_count"] == 2
        assert payload["submitted_by"] == "officer-1"
        assert '"rounds"' in payload["notes"]
        assert '"calm"' in payload["notes"]

    @pytest.mark.asyncio
    async def test_update_pending_score(self, stage_score):
        scores = make_query([{"id": "sc-1", "verified_at": None}], [{"id": "sc-1"}])
        repository = ResultsRepository(make_client(scores=scores))

        score_id = await repository.save_stage_score("r1", "s1", stage_score, "officer-1")

        assert score_id == "sc-1"
        scores.update.assert_called_once()
        scores.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_verified_score_is_read_only(self, stage_score):
        scores = make_query([{"id": "sc-1", "verified_at": "2026-03-14T10:30:00"}])
        repository = ResultsRepository(make_client(scores=scores))

        with pytest.raises(ScoreAlreadyVerified) as exc:
            await repository.save_stage_score("r1", "s1", stage_score, "officer-1")
        assert exc.value.stage_id == "s1"
        scores.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_dnf_written_with_zero_score(self, example_shots):
        dnf = build_stage_score(example_shots, StageDefinition(), SighterMode.COUNT_NONE, is_dnf=True)
        scores = make_query([], [{"id": "sc-2"}])

        await ResultsRepository(make_client(scores=scores)).save_stage_score("r1", "s1", dnf, "officer-1")

        payload = scores.insert.call_args[0][0]
        assert payload["score"] == 0
        assert payload["is_dnf"] is True
        assert payload["x_count"] == 2
