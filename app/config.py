"""
애플리케이션 설정
"""
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

from scoring.models import SighterMode

load_dotenv()


class SupabaseConfig(BaseSettings):
    """Supabase 설정"""

    supabase_url: str = Field(default="", description="Supabase Project URL")
    supabase_key: str = Field(default="", description="Supabase anon or service key")

    class Config:
        env_prefix = ""
        case_sensitive = False


class ScoringConfig(BaseSettings):
    """스테이지 채점 설정"""

    v_bonus: float = Field(default=0.001, ge=0, description="Tie-break bonus per V")
    default_rounds: int = Field(default=10, ge=1, description="Scoring rounds per stage")
    default_sighters: int = Field(default=2, ge=0, description="Sighter shots per stage")
    max_score_per_shot: int = Field(default=5, ge=1, description="Highest ring value")
    default_sighter_mode: SighterMode = Field(default=SighterMode.COUNT_NONE)

    class Config:
        env_prefix = "SCORING_"
        case_sensitive = False


class LeaderboardConfig(BaseSettings):
    """리더보드 갱신 설정"""

    refresh_seconds: int = Field(default=30, ge=1, description="Polling interval")
    staleness_seconds: int = Field(default=30, ge=0, description="Max age of a cached leaderboard")
    auto_refresh: bool = Field(default=False, description="Refresh watched competitions in the background")
    prefer_view: bool = Field(default=False, description="Read the competition_leaderboard view before aggregating")

    class Config:
        env_prefix = "LEADERBOARD_"
        case_sensitive = False


class ServerConfig(BaseSettings):
    """API 서버 설정"""

    host: str = "0.0.0.0"
    port: int = 7272
    reload: bool = False

    class Config:
        env_prefix = "SERVER_"
        case_sensitive = False


# 전역 설정 인스턴스
supabase_config = SupabaseConfig()
scoring_config = ScoringConfig()
leaderboard_config = LeaderboardConfig()
server_config = ServerConfig()
