"""
Pytest configuration and fixtures for Federation Results tests
"""

import pytest
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from leaderboard.models import Registration, Team, VerifiedScore
from scoring.models import Shot


VERIFIED_AT = datetime(2026, 3, 14, 10, 30)


@pytest.fixture(scope="function")
def example_shots():
    """Twelve-shot attempt: two true sighters then ten scoring shots"""
    return [
        Shot(1, 0), Shot(2, 0),
        Shot(3, 5, is_x=True), Shot(4, 5, is_v=True), Shot(5, 5), Shot(6, 4),
        Shot(7, 5), Shot(8, 5, is_x=True), Shot(9, 3), Shot(10, 5),
        Shot(11, 5), Shot(12, 4),
    ]


@pytest.fixture(scope="function")
def make_registration():
    """Registration factory"""
    def _make(reg_id, name="Shooter", discipline_id="d1", team_id=None, **kwargs):
        kwargs.setdefault("user_id", f"u-{reg_id}")
        kwargs.setdefault("competition_id", "c1")
        kwargs.setdefault("age_classification", "Open")
        kwargs.setdefault("discipline_name", "Air Rifle" if discipline_id == "d1" else "Smallbore")
        if team_id:
            kwargs.setdefault("team_name", f"Team {team_id}")
        return Registration(
            id=reg_id,
            shooter_name=name,
            discipline_id=discipline_id,
            team_id=team_id,
            **kwargs
        )
    return _make


@pytest.fixture(scope="function")
def make_score():
    """Verified stage score factory"""
    def _make(reg_id, score, stage=1, x=0, v=0, dnf=False, dq=False, verified=True):
        return VerifiedScore(
            registration_id=reg_id,
            stage_id=f"s{stage}",
            score=score,
            x_count=x,
            v_count=v,
            is_dnf=dnf,
            is_dq=dq,
            verified_at=VERIFIED_AT if verified else None,
            stage_number=stage,
        )
    return _make


@pytest.fixture(scope="function")
def competition(make_registration, make_score):
    """Small competition: one four-person team, one pair, one individual"""
    registrations = [
        make_registration("r1", "Anna Botha", team_id="t1", club="Bloem RC", sabu_number="SA100"),
        make_registration("r2", "Ben Coetzee", team_id="t1", club="Bloem RC", age_classification="Under_19"),
        make_registration("r3", "Cara Dlamini", team_id="t1", club="Kimberley SC"),
        make_registration("r4", "Dirk Els", team_id="t1", age_classification="Veteran_60_plus"),
        make_registration("r5", "Eva Fourie", team_id="t2", discipline_id="d2"),
        make_registration("r6", "Frans Gous", team_id="t2", discipline_id="d2"),
        make_registration("r7", "Gina Hugo", discipline_id="d2", club="Pretoria RC"),
    ]
    scores = [
        make_score("r1", 48.002, stage=1, x=3, v=2),
        make_score("r1", 47.0, stage=2, x=2),
        make_score("r2", 46.001, stage=1, x=2, v=1),
        make_score("r2", 49.0, stage=2, x=4),
        make_score("r3", 45.0, stage=1, x=1),
        make_score("r3", 44.0, stage=2),
        make_score("r4", 40.0, stage=1),
        make_score("r4", 41.0, stage=2),
        make_score("r5", 47.0, stage=1, x=2),
        make_score("r6", 43.0, stage=1, x=1),
        make_score("r7", 49.003, stage=1, x=5, v=3),
    ]
    teams = [
        Team(id="t1", name="Free State A", province="Free State", member_ids=["u-r1", "u-r2", "u-r3", "u-r4"]),
        Team(id="t2", name="Gauteng B", province="Gauteng", member_ids=["u-r5", "u-r6"]),
    ]
    return registrations, scores, teams
