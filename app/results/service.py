"""
Results Service

Pulls competition snapshots and builds leaderboards from them.
Leaderboards are recomputed on every request; only the pulled snapshot is
cached, and only for the staleness window.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from app.config import leaderboard_config, scoring_config
from data_pipeline.normalizer import individual_result_from_view
from data_pipeline.snapshot import CompetitionSnapshot
from database.supabase_client import ResultsRepository
from leaderboard.aggregator import LeaderboardAggregator
from leaderboard.export import individual_csv, team_csv
from leaderboard.filters import filter_results
from leaderboard.models import AggregationReport, IndividualResult, TeamResult
from leaderboard.ranking import sort_individual
from scheduler.cache import SnapshotCache
from scoring.calculator import build_stage_score
from scoring.models import Shot, SighterMode, StageDefinition, StageScore


class ResultsService:
    """Leaderboards for competitions"""

    def __init__(
        self,
        repository: ResultsRepository,
        cache: SnapshotCache = None,
        prefer_view: bool = False
    ):
        """
        Args:
            repository: data store access
            cache: snapshot cache (staleness window from settings by default)
            prefer_view: use the precomputed competition_leaderboard view for
                individual results when it is available
        """
        self.repository = repository
        self.cache = cache if cache is not None else SnapshotCache(leaderboard_config.staleness_seconds)
        self.prefer_view = prefer_view
        # Called with each requested competition id (background refresh hook)
        self.on_access: Optional[Callable[[str], None]] = None

    # =============================================
    # Snapshots
    # =============================================

    async def refresh(self, competition_id: str) -> CompetitionSnapshot:
        """Pull a fresh snapshot and replace the cached one"""
        snapshot = await self.repository.fetch_competition_snapshot(competition_id)
        self.cache.put(competition_id, snapshot, snapshot.fetched_at)
        return snapshot

    async def get_snapshot(self, competition_id: str) -> CompetitionSnapshot:
        if self.on_access is not None:
            self.on_access(competition_id)
        snapshot = self.cache.get(competition_id)
        if snapshot is None:
            snapshot = await self.refresh(competition_id)
        return snapshot

    async def competitions(self) -> List[Dict]:
        return await self.repository.fetch_competitions_with_results()

    # =============================================
    # Leaderboards
    # =============================================

    async def individual_results(
        self,
        competition_id: str,
        discipline_id: str = None,
        age_classification: str = None,
        search_text: str = None
    ) -> Tuple[List[IndividualResult], AggregationReport, datetime]:
        """Ranked individual results with the aggregation report"""
        if self.prefer_view:
            view_rows = await self.repository.fetch_leaderboard_view(competition_id)
            if view_rows:
                results = sort_individual(individual_result_from_view(r) for r in view_rows)
                results = filter_results(results, discipline_id, age_classification, search_text)
                return results, AggregationReport(), datetime.now()

        snapshot = await self.get_snapshot(competition_id)
        aggregator = LeaderboardAggregator(snapshot.verified_scores, snapshot.registrations, snapshot.teams)
        results = aggregator.individual(discipline_id, age_classification, search_text)
        return results, aggregator.report, snapshot.fetched_at

    async def grouped_results(
        self,
        competition_id: str,
        by: str = "discipline"
    ) -> Tuple[Dict[str, List[IndividualResult]], AggregationReport, datetime]:
        """Individual leaderboards per discipline or per age classification"""
        snapshot = await self.get_snapshot(competition_id)
        aggregator = LeaderboardAggregator(snapshot.verified_scores, snapshot.registrations, snapshot.teams)
        if by == "age":
            groups = aggregator.by_age_classification()
        else:
            groups = aggregator.by_discipline()
        return groups, aggregator.report, snapshot.fetched_at

    async def team_results(
        self,
        competition_id: str,
        discipline_id: str = None
    ) -> Tuple[List[TeamResult], AggregationReport, datetime]:
        snapshot = await self.get_snapshot(competition_id)
        aggregator = LeaderboardAggregator(snapshot.verified_scores, snapshot.registrations, snapshot.teams)
        results = aggregator.team(discipline_id)
        return results, aggregator.report, snapshot.fetched_at

    async def export_csv(
        self,
        competition_id: str,
        teams: bool = False,
        discipline_id: str = None,
        age_classification: str = None,
        search_text: str = None
    ) -> str:
        if teams:
            results, _, _ = await self.team_results(competition_id, discipline_id)
            return team_csv(results)

        snapshot = await self.get_snapshot(competition_id)
        results, _, _ = await self.individual_results(
            competition_id, discipline_id, age_classification, search_text
        )
        return individual_csv(results, snapshot.stage_numbers)

    # =============================================
    # Stage scores
    # =============================================

    @staticmethod
    def default_stage_definition() -> StageDefinition:
        return StageDefinition(
            scoring_rounds=scoring_config.default_rounds,
            sighter_count=scoring_config.default_sighters,
            max_score_per_shot=scoring_config.max_score_per_shot,
        )

    @staticmethod
    def preview_stage_score(
        shots: Sequence[Shot],
        stage_definition: StageDefinition,
        sighter_mode: SighterMode,
        is_dnf: bool = False,
        is_dq: bool = False
    ) -> StageScore:
        return build_stage_score(
            shots,
            stage_definition,
            sighter_mode,
            is_dnf=is_dnf,
            is_dq=is_dq,
            v_bonus=scoring_config.v_bonus,
        )

    async def submit_stage_score(
        self,
        competition_id: str,
        registration_id: str,
        stage_id: str,
        shots: Sequence[Shot],
        sighter_mode: SighterMode,
        submitted_by: str,
        is_dnf: bool = False,
        is_dq: bool = False,
        notes: str = ""
    ) -> Tuple[Optional[str], StageScore]:
        """
        Compute and store a pending stage score

        The stage definition comes from the competition snapshot; unknown
        stages use the configured defaults.
        """
        snapshot = await self.get_snapshot(competition_id)
        stage = next((s for s in snapshot.stages if s.id == stage_id), None)
        if stage is None:
            logger.warning(f"Stage {stage_id} not in competition {competition_id}, using default stage settings")
            stage = self.default_stage_definition()

        stage_score = self.preview_stage_score(shots, stage, sighter_mode, is_dnf, is_dq)
        score_id = await self.repository.save_stage_score(
            registration_id, stage_id, stage_score, submitted_by, notes
        )
        return score_id, stage_score


# Shared instance (created on first use)
_results_service: Optional[ResultsService] = None


def get_results_service() -> ResultsService:
    global _results_service
    if _results_service is None:
        _results_service = ResultsService(
            ResultsRepository(), prefer_view=leaderboard_config.prefer_view
        )
    return _results_service
