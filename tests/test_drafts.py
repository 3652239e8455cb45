"""
Unit tests for score entry drafts
"""

import pytest

from scoring.drafts import ScoreDraft
from scoring.models import Shot, SighterMode, StageDefinition


STAGE = StageDefinition(scoring_rounds=10, sighter_count=2)


class TestScoreDraft:
    """Tests for the caller-owned draft"""

    def test_start_stage_sizes_blank_entry(self):
        draft = ScoreDraft("r1")
        stage = draft.start_stage("s1", STAGE, "count_sighter_1")

        assert len(stage.shots) == 12
        assert stage.sighter_mode is SighterMode.COUNT_SIGHTER_1

    def test_start_stage_keeps_open_entry(self):
        draft = ScoreDraft("r1")
        draft.start_stage("s1", STAGE)
        draft.set_shot("s1", 3, score=5)

        stage = draft.start_stage("s1", STAGE)
        assert stage.shots[2].score == 5

    def test_set_shot_updates_only_given_fields(self):
        draft = ScoreDraft("r1")
        draft.start_stage("s1", STAGE)
        draft.set_shot("s1", 4, score=5)
        shot = draft.set_shot("s1", 4, is_v=True)

        assert shot == Shot(4, 5, is_x=False, is_v=True)

    def test_set_shot_past_end_extends(self):
        draft = ScoreDraft("r1")
        draft.start_stage("s1", StageDefinition(scoring_rounds=2, sighter_count=0))
        draft.set_shot("s1", 4, score=3)

        shots = draft.stages["s1"].shots
        assert [s.round for s in shots] == [1, 2, 3, 4]

    def test_build_matches_calculator(self, example_shots):
        draft = ScoreDraft("r1")
        draft.start_stage("s1", STAGE, SighterMode.COUNT_NONE)
        for shot in example_shots:
            draft.set_shot("s1", shot.round, score=shot.score, is_x=shot.is_x, is_v=shot.is_v)

        result = draft.build("s1", STAGE)
        assert result.total_score == pytest.approx(46.001)
        assert result.x_count == 2

    def test_mark_dnf(self, example_shots):
        draft = ScoreDraft("r1")
        draft.start_stage("s1", STAGE)
        for shot in example_shots:
            draft.set_shot("s1", shot.round, score=shot.score)
        draft.mark("s1", is_dnf=True)

        result = draft.build("s1", STAGE)
        assert result.total_score == 0
        assert result.is_dnf

    def test_discard(self):
        draft = ScoreDraft("r1")
        draft.start_stage("s1", STAGE)

        assert draft.discard("s1") is not None
        assert "s1" not in draft.stages
        assert draft.discard("s1") is None

    def test_drafts_are_independent(self):
        first = ScoreDraft("r1")
        second = ScoreDraft("r2")
        first.start_stage("s1", STAGE)

        assert second.stages == {}
