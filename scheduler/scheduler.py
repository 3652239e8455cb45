"""
리더보드 갱신 스케줄러

감시 중인 대회를 일정 간격으로 다시 가져온다. 매 실행마다 이전 스냅샷을
통째로 교체하며 증분 업데이트는 하지 않는다.
"""
from typing import Awaitable, Callable, Optional, Set
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.config import leaderboard_config


class LeaderboardScheduler:
    """감시 대회 주기적 전체 갱신"""

    def __init__(
        self,
        refresh_func: Callable[[str], Awaitable],
        interval_seconds: int = None
    ):
        """
        Args:
            refresh_func: 대회 ID 하나를 갱신하는 코루틴
            interval_seconds: 갱신 간격 (기본값: 설정)
        """
        self.scheduler = AsyncIOScheduler()
        self.refresh_func = refresh_func
        self.interval_seconds = interval_seconds or leaderboard_config.refresh_seconds
        self.watched: Set[str] = set()
        self._is_running = False
        self._last_refresh: Optional[datetime] = None
        self._last_errors: dict = {}

    def watch(self, competition_id: str):
        if competition_id not in self.watched:
            self.watched.add(competition_id)
            logger.info(f"대회 감시 시작: {competition_id}")

    def unwatch(self, competition_id: str):
        self.watched.discard(competition_id)

    def setup(self):
        """스케줄러 설정"""
        self.scheduler.add_job(
            self._run_refresh,
            IntervalTrigger(seconds=self.interval_seconds),
            id="leaderboard_refresh",
            name="Leaderboard Refresh",
            replace_existing=True,
            max_instances=1,
        )
        logger.info(f"{self.interval_seconds}초 간격 리더보드 갱신 스케줄 등록")

    async def _run_refresh(self):
        """감시 대회 전체 갱신 (한 대회 실패가 나머지를 막지 않음)"""
        if self._is_running:
            logger.debug("갱신 진행 중, 스킵")
            return

        if not self.watched:
            return

        self._is_running = True
        try:
            for competition_id in sorted(self.watched):
                try:
                    await self.refresh_func(competition_id)
                    self._last_errors.pop(competition_id, None)
                except Exception as e:
                    self._last_errors[competition_id] = str(e)
                    logger.error(f"리더보드 갱신 오류 ({competition_id}): {e}")
            self._last_refresh = datetime.now()
        finally:
            self._is_running = False

    def start(self):
        """스케줄러 시작"""
        self.setup()
        self.scheduler.start()
        logger.info("스케줄러 시작됨")

    def stop(self):
        """스케줄러 중지"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("스케줄러 중지됨")

    def get_status(self) -> dict:
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None
            })

        return {
            "is_running": self._is_running,
            "interval_seconds": self.interval_seconds,
            "watched": sorted(self.watched),
            "last_refresh": self._last_refresh.isoformat() if self._last_refresh else None,
            "errors": dict(self._last_errors),
            "jobs": jobs
        }

    async def run_now(self):
        await self._run_refresh()
