"""
Federation Results - FastAPI 웹 서버

데이터 소스: Supabase
리더보드는 요청마다 검증 점수로 재계산
자동 갱신 활성화 시 감시 대회를 백그라운드에서 다시 조회
"""
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from loguru import logger

from app.config import leaderboard_config, server_config
from app.results import results_router
from app.results import service as results_service
from scheduler.scheduler import LeaderboardScheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """시작 시 갱신 스케줄러 시작, 종료 시 중지"""
    scheduler = None
    if leaderboard_config.auto_refresh:
        try:
            service = results_service.get_results_service()
        except ValueError as e:
            logger.error(f"자동 갱신 비활성화: {e}")
        else:
            scheduler = LeaderboardScheduler(service.refresh)
            service.on_access = scheduler.watch
            scheduler.start()

    app.state.scheduler = scheduler
    logger.info("서버 시작")
    yield

    if scheduler is not None:
        scheduler.stop()
    logger.info("서버 종료")


app = FastAPI(
    title="Federation Results",
    description="Stage scores and leaderboards for target shooting competitions",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(results_router)


@app.get("/health")
async def health():
    scheduler = getattr(app.state, "scheduler", None)
    return {
        "status": "ok",
        "time": datetime.now().isoformat(),
        "auto_refresh": scheduler is not None,
        "scheduler": scheduler.get_status() if scheduler is not None else None,
    }


# ==================== 서버 실행 ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.server:app",
        host=server_config.host,
        port=server_config.port,
        reload=server_config.reload,
        log_level="info"
    )
