"""
Results API Router

Competition leaderboards, CSV export and stage score entry
"""

from dataclasses import asdict
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from loguru import logger

from database.supabase_client import RepositoryError, ScoreAlreadyVerified
from leaderboard.models import AggregationReport, IndividualResult, TeamResult
from scoring.exceptions import InvalidStageDefinition
from scoring.models import Shot, StageDefinition, StageScore

from . import service as results_service
from .models import (
    AnomalyOut,
    IndividualLeaderboard,
    IndividualResultOut,
    ResultView,
    ScorePreviewRequest,
    ScoreSubmitRequest,
    ScoreSubmitResponse,
    ShotOut,
    StageScoreOut,
    TeamLeaderboard,
    TeamResultOut,
)
from .service import ResultsService

router = APIRouter(prefix="/api", tags=["Results"])


def get_results_service() -> ResultsService:
    """Service dependency (override in tests)"""
    try:
        return results_service.get_results_service()
    except ValueError as e:
        logger.error(f"Results service unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))


# =============================================
# Converters
# =============================================

def _individual_out(result: IndividualResult) -> IndividualResultOut:
    return IndividualResultOut(**asdict(result))


def _team_out(result: TeamResult) -> TeamResultOut:
    return TeamResultOut(**asdict(result))


def _anomalies_out(report: AggregationReport) -> List[AnomalyOut]:
    return [AnomalyOut(**asdict(a)) for a in report.anomalies]


def _stage_score_out(stage_score: StageScore) -> StageScoreOut:
    return StageScoreOut(
        total_score=stage_score.total_score,
        computed_score=stage_score.computed_score,
        x_count=stage_score.x_count,
        v_count=stage_score.v_count,
        is_dnf=stage_score.is_dnf,
        is_dq=stage_score.is_dq,
        window_start=stage_score.window.start,
        window_end=stage_score.window.end,
        sighter_mode=stage_score.sighter_mode,
        shots=[ShotOut(**s.to_dict()) for s in stage_score.normalized_shots],
        recorded_shots=[ShotOut(**s.to_dict()) for s in stage_score.shots],
        record_version=stage_score.record_version,
    )


def _shots(shots_in) -> List[Shot]:
    return [Shot(round=s.round, score=s.score, is_x=s.is_x, is_v=s.is_v) for s in shots_in]


def _raise_http(e: Exception):
    if isinstance(e, InvalidStageDefinition):
        raise HTTPException(status_code=422, detail=str(e))
    if isinstance(e, ScoreAlreadyVerified):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, RepositoryError):
        raise HTTPException(status_code=503, detail=str(e))
    raise e


# =============================================
# Competitions and leaderboards
# =============================================

@router.get("/competitions")
async def list_competitions(service: ResultsService = Depends(get_results_service)) -> List[Dict]:
    """Competitions that have verified results, newest first"""
    try:
        return await service.competitions()
    except RepositoryError as e:
        _raise_http(e)


@router.get("/competitions/{competition_id}/results", response_model=IndividualLeaderboard)
async def get_results(
    competition_id: str,
    view: ResultView = Query(ResultView.individual, description="individual, discipline or age"),
    discipline_id: Optional[str] = Query(None),
    age_classification: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Name, SABU number or club"),
    service: ResultsService = Depends(get_results_service)
):
    """
    Individual leaderboard

    DNF/DQ entries are listed last. The discipline and age views return one
    ranked list per group in `groups`.
    """
    try:
        if view == ResultView.individual:
            results, report, refreshed_at = await service.individual_results(
                competition_id, discipline_id, age_classification, search
            )
            return IndividualLeaderboard(
                competition_id=competition_id,
                view=view,
                refreshed_at=refreshed_at,
                results=[_individual_out(r) for r in results],
                anomalies=_anomalies_out(report),
            )

        by = "age" if view == ResultView.age else "discipline"
        groups, report, refreshed_at = await service.grouped_results(competition_id, by)
        return IndividualLeaderboard(
            competition_id=competition_id,
            view=view,
            refreshed_at=refreshed_at,
            groups={key: [_individual_out(r) for r in rows] for key, rows in groups.items()},
            anomalies=_anomalies_out(report),
        )
    except RepositoryError as e:
        _raise_http(e)


@router.get("/competitions/{competition_id}/teams", response_model=TeamLeaderboard)
async def get_team_results(
    competition_id: str,
    discipline_id: Optional[str] = Query(None),
    service: ResultsService = Depends(get_results_service)
):
    """Team leaderboard (four-person teams drop their lowest member)"""
    try:
        results, report, refreshed_at = await service.team_results(competition_id, discipline_id)
    except RepositoryError as e:
        _raise_http(e)

    return TeamLeaderboard(
        competition_id=competition_id,
        refreshed_at=refreshed_at,
        results=[_team_out(r) for r in results],
        anomalies=_anomalies_out(report),
    )


@router.get("/competitions/{competition_id}/results.csv")
async def export_results(
    competition_id: str,
    teams: bool = Query(False, description="Export the team leaderboard"),
    discipline_id: Optional[str] = Query(None),
    age_classification: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    service: ResultsService = Depends(get_results_service)
):
    try:
        content = await service.export_csv(
            competition_id, teams, discipline_id, age_classification, search
        )
    except RepositoryError as e:
        _raise_http(e)

    kind = "teams" if teams else "results"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{competition_id}_{kind}.csv"'},
    )


# =============================================
# Stage scores
# =============================================

@router.post("/scoring/preview", response_model=StageScoreOut)
async def preview_score(request: ScorePreviewRequest):
    """Stage score for a shot sequence, nothing stored"""
    stage = StageDefinition(
        scoring_rounds=request.stage.scoring_rounds,
        sighter_count=request.stage.sighter_count,
        max_score_per_shot=request.stage.max_score_per_shot,
    )
    try:
        stage_score = ResultsService.preview_stage_score(
            _shots(request.shots), stage, request.sighter_mode, request.is_dnf, request.is_dq
        )
    except InvalidStageDefinition as e:
        _raise_http(e)
    return _stage_score_out(stage_score)


@router.post("/competitions/{competition_id}/scores", response_model=ScoreSubmitResponse)
async def submit_score(
    competition_id: str,
    request: ScoreSubmitRequest,
    service: ResultsService = Depends(get_results_service)
):
    """
    Store a pending stage score

    - verified scores cannot be changed (409)
    - DNF/DQ attempts are stored with score 0
    """
    try:
        score_id, stage_score = await service.submit_stage_score(
            competition_id,
            request.registration_id,
            request.stage_id,
            _shots(request.shots),
            request.sighter_mode,
            request.submitted_by,
            is_dnf=request.is_dnf,
            is_dq=request.is_dq,
            notes=request.notes,
        )
    except (InvalidStageDefinition, RepositoryError) as e:
        _raise_http(e)

    return ScoreSubmitResponse(score_id=score_id, stage_score=_stage_score_out(stage_score))
