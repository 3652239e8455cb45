"""
Supabase 데이터베이스 클라이언트
"""
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from supabase import create_client, Client
from loguru import logger

from app.config import supabase_config
from data_pipeline.normalizer import decode_rows, encode_stage_score
from data_pipeline.schemas import LeaderboardViewRow
from data_pipeline.snapshot import CompetitionSnapshot, snapshot_from_rows
from scoring.models import StageScore


REGISTRATION_COLUMNS = (
    "id, user_id, competition_id, discipline_id, team_id, age_classification, registration_status, "
    "profiles!registrations_user_id_fkey(full_names, surname, sabu_number, club, province), "
    "disciplines(id, name), "
    "teams(id, name, province)"
)

SCORE_COLUMNS = (
    "id, registration_id, stage_id, score, x_count, v_count, is_dnf, is_dq, notes, "
    "verified_at, submitted_at, "
    "registrations!inner(competition_id), "
    "stages(id, stage_number, name)"
)

TEAM_COLUMNS = "id, name, province, member_ids:team_members(user_id)"


class RepositoryError(Exception):
    """백엔드 호출 실패"""


class ScoreAlreadyVerified(RepositoryError):
    """검증된 점수는 수정 불가"""

    def __init__(self, registration_id: str, stage_id: str):
        super().__init__(f"Score for registration {registration_id}, stage {stage_id} is already verified")
        self.registration_id = registration_id
        self.stage_id = stage_id


# 싱글톤 클라이언트
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Supabase 클라이언트 인스턴스 반환 (싱글톤)
    """
    global _supabase_client
    if _supabase_client is None:
        if not supabase_config.supabase_url or not supabase_config.supabase_key:
            raise ValueError("SUPABASE_URL과 SUPABASE_KEY 환경변수를 설정해주세요")
        _supabase_client = create_client(
            supabase_config.supabase_url,
            supabase_config.supabase_key
        )
    return _supabase_client


class ResultsRepository:
    """대회 스냅샷 조회 및 대기 중 스테이지 점수 저장"""

    def __init__(self, client: Client = None):
        self.client: Client = client if client is not None else get_supabase_client()

    def _rows(self, query, what: str) -> List[Dict[str, Any]]:
        try:
            result = query.execute()
            return result.data or []
        except Exception as e:
            logger.error(f"{what} 조회 오류: {e}")
            raise RepositoryError(f"{what} query failed: {e}") from e

    # ==================== 조회 ====================

    async def fetch_competitions_with_results(self) -> List[Dict[str, Any]]:
        """검증된 점수가 있는 대회 목록 (최신순)"""
        score_rows = self._rows(
            self.client.table("scores").select(
                "registrations(competition_id)"
            ).not_.is_("verified_at", "null"),
            "verified score competitions",
        )

        competition_ids = []
        for row in score_rows:
            comp_id = (row.get("registrations") or {}).get("competition_id")
            if comp_id and comp_id not in competition_ids:
                competition_ids.append(comp_id)

        if not competition_ids:
            return []

        return self._rows(
            self.client.table("competitions").select("*").in_(
                "id", competition_ids
            ).order("start_date", desc=True),
            "competitions",
        )

    async def fetch_competition_snapshot(self, competition_id: str) -> CompetitionSnapshot:
        """대회 하나의 스테이지, 참가 등록, 검증 점수, 팀 조회"""
        stage_rows = self._rows(
            self.client.table("stages").select("*").eq(
                "competition_id", competition_id
            ).order("stage_number"),
            "stages",
        )

        registration_rows = self._rows(
            self.client.table("registrations").select(REGISTRATION_COLUMNS).eq(
                "competition_id", competition_id
            ),
            "registrations",
        )

        score_rows = self._rows(
            self.client.table("scores").select(SCORE_COLUMNS).eq(
                "registrations.competition_id", competition_id
            ).not_.is_("verified_at", "null"),
            "verified scores",
        )

        team_ids = sorted({r["team_id"] for r in registration_rows if r.get("team_id")})
        team_rows = []
        if team_ids:
            team_rows = self._rows(
                self.client.table("teams").select(TEAM_COLUMNS).in_("id", team_ids),
                "teams",
            )

        return snapshot_from_rows(
            competition_id,
            stage_rows=stage_rows,
            registration_rows=registration_rows,
            score_rows=score_rows,
            team_rows=team_rows,
        )

    async def fetch_leaderboard_view(self, competition_id: str) -> Optional[List[LeaderboardViewRow]]:
        """
        competition_leaderboard 뷰 조회

        뷰가 없거나 오류 또는 빈 결과면 None (호출측에서 스냅샷으로 직접 집계)
        """
        try:
            result = self.client.table("competition_leaderboard").select("*").eq(
                "competition_id", competition_id
            ).order("total_score", desc=True).execute()
        except Exception as e:
            logger.warning(f"competition_leaderboard 뷰 사용 불가, 직접 집계로 전환: {e}")
            return None

        if not result.data:
            return None

        rows, check = decode_rows(result.data, LeaderboardViewRow, "competition_leaderboard")
        if check.rejected:
            logger.warning(f"competition_leaderboard: {check.rejected}개 행 거부")
        return rows

    async def get_stage_score_row(self, registration_id: str, stage_id: str) -> Optional[Dict[str, Any]]:
        rows = self._rows(
            self.client.table("scores").select("id, verified_at").eq(
                "registration_id", registration_id
            ).eq("stage_id", stage_id),
            "stage score",
        )
        return rows[0] if rows else None

    # ==================== 저장 ====================

    async def save_stage_score(
        self,
        registration_id: str,
        stage_id: str,
        stage_score: StageScore,
        submitted_by: str,
        notes: str = ""
    ) -> Optional[str]:
        """
        대기 중 스테이지 점수 저장 (없으면 추가, 있으면 수정)

        DNF/DQ는 점수 0으로 기록. 사격 기록은 notes 컬럼에 저장.

        Raises:
            ScoreAlreadyVerified: 해당 스테이지에 검증된 점수가 이미 있음
            RepositoryError: 백엔드 호출 실패
        """
        existing = await self.get_stage_score_row(registration_id, stage_id)
        if existing and existing.get("verified_at"):
            raise ScoreAlreadyVerified(registration_id, stage_id)

        data = {
            "registration_id": registration_id,
            "stage_id": stage_id,
            "score": 0 if stage_score.is_zeroed else stage_score.total_score,
            "x_count": stage_score.x_count,
            "v_count": stage_score.v_count,
            "is_dnf": stage_score.is_dnf,
            "is_dq": stage_score.is_dq,
            "notes": encode_stage_score(stage_score, notes),
            "submitted_by": submitted_by,
            "submitted_at": datetime.now(timezone.utc).isoformat(),
        }

        if existing:
            self._rows(
                self.client.table("scores").update(data).eq("id", existing["id"]),
                "update stage score",
            )
            score_id = existing["id"]
            logger.info(f"대기 점수 수정: {score_id} (등록 {registration_id}, 스테이지 {stage_id})")
        else:
            rows = self._rows(self.client.table("scores").insert(data), "insert stage score")
            score_id = rows[0].get("id") if rows else None
            logger.info(f"대기 점수 추가: {score_id} (등록 {registration_id}, 스테이지 {stage_id})")

        return score_id
