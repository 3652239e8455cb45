"""
Competition leaderboards

Ranked individual, team, discipline and age-classification results built from
verified stage scores.
"""
from .aggregator import (
    LeaderboardAggregator,
    registration_totals,
    aggregate_individual,
    aggregate_teams,
    leaderboards_by_discipline,
    leaderboards_by_age_classification,
)
from .filters import ResultFilter, filter_results, filter_registrations
from .models import (
    UNKNOWN,
    UNKNOWN_TEAM,
    AGE_CLASSIFICATIONS,
    age_classification_label,
    Registration,
    VerifiedScore,
    Team,
    IndividualResult,
    TeamMemberScore,
    TeamResult,
    Anomaly,
    AggregationReport,
)
from .ranking import (
    score_key,
    is_disqualified,
    sort_by_score,
    sort_individual,
    top_k_count,
    assign_positions,
)

__all__ = [
    "LeaderboardAggregator",
    "registration_totals",
    "aggregate_individual",
    "aggregate_teams",
    "leaderboards_by_discipline",
    "leaderboards_by_age_classification",
    "ResultFilter",
    "filter_results",
    "filter_registrations",
    "UNKNOWN",
    "UNKNOWN_TEAM",
    "AGE_CLASSIFICATIONS",
    "age_classification_label",
    "Registration",
    "VerifiedScore",
    "Team",
    "IndividualResult",
    "TeamMemberScore",
    "TeamResult",
    "Anomaly",
    "AggregationReport",
    "score_key",
    "is_disqualified",
    "sort_by_score",
    "sort_individual",
    "top_k_count",
    "assign_positions",
]
