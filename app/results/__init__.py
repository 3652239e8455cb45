"""
Results Module

Competition leaderboards (individual, team, discipline, age classification),
CSV export and stage score entry
"""

from .router import router as results_router
from .service import ResultsService

__all__ = [
    "results_router",
    "ResultsService",
]
