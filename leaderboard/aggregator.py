"""
Leaderboard aggregation

Verified stage scores + registration/team metadata -> ranked leaderboards
- individual: per-registration totals, DNF/DQ last, (score, X, V) desc
- team: per (team, discipline) sum of the best k member totals
  (k = n - 1 for four-person teams, otherwise n)
- discipline / age classification: individual leaderboards per group

Every call recomputes from the full input. A malformed record never aborts
the aggregation: the offending registration is excluded and reported.
"""
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from scoring.calculator import SCORE_PRECISION

from .filters import ResultFilter, filter_registrations
from .models import (
    UNKNOWN,
    UNKNOWN_TEAM,
    AggregationReport,
    IndividualResult,
    Registration,
    Team,
    TeamMemberScore,
    TeamResult,
    VerifiedScore,
)
from .ranking import assign_positions, sort_by_score, sort_individual, top_k_count


# =====================================================
# Per-registration fold
# =====================================================

def _new_result(registration: Registration) -> IndividualResult:
    return IndividualResult(
        registration_id=registration.id,
        user_id=registration.user_id or "",
        shooter_name=registration.shooter_name or UNKNOWN,
        sabu_number=registration.sabu_number or "",
        club=registration.club or "",
        province=registration.province or "",
        age_classification=registration.age_classification or "",
        discipline_id=registration.discipline_id or "",
        discipline_name=registration.discipline_name or UNKNOWN,
        team_id=registration.team_id,
        team_name=(registration.team_name or UNKNOWN_TEAM) if registration.team_id else None,
    )


def _add_score(result: IndividualResult, score: VerifiedScore):
    """Fold one verified stage score into a registration total"""
    # Validate before touching the accumulator
    value = float(score.score or 0)
    x_count = int(score.x_count or 0)
    v_count = int(score.v_count or 0)

    if score.is_dnf:
        result.has_dnf = True
    if score.is_dq:
        result.has_dq = True
    if score.is_dnf or score.is_dq:
        return

    key = score.stage_key
    result.stage_scores[key] = value
    result.stage_x_counts[key] = x_count
    result.stage_v_counts[key] = v_count
    result.total_score = round(result.total_score + value, SCORE_PRECISION)
    result.total_x += x_count
    result.total_v += v_count


def registration_totals(
    verified_scores: Iterable[VerifiedScore],
    registrations: Iterable[Registration],
    report: Optional[AggregationReport] = None
) -> "OrderedDict[str, IndividualResult]":
    """
    Unsorted per-registration totals, keyed by registration id

    Order follows the first appearance of each registration in the scores.
    Unverified scores and registrations that are not confirmed are ignored.
    """
    report = report if report is not None else AggregationReport()
    registrations_by_id = {r.id: r for r in registrations}
    totals: "OrderedDict[str, IndividualResult]" = OrderedDict()
    rejected = set()

    for score in verified_scores:
        if not score.is_verified:
            report.skipped_unverified += 1
            continue

        reg_id = score.registration_id
        if reg_id in rejected:
            continue

        registration = registrations_by_id.get(reg_id)
        if registration is None:
            report.add(
                "unknown_registration",
                f"Verified score for stage {score.stage_id} references unknown registration {reg_id}",
                registration_id=reg_id,
                stage_id=score.stage_id,
            )
            logger.warning(f"Skipping score of unknown registration {reg_id} (stage {score.stage_id})")
            continue

        if registration.status != "confirmed":
            report.skipped_unconfirmed += 1
            continue

        result = totals.get(reg_id)
        if result is None:
            result = _new_result(registration)
            totals[reg_id] = result

        try:
            _add_score(result, score)
        except (TypeError, ValueError) as e:
            report.add(
                "invalid_score",
                f"Unreadable score for stage {score.stage_id}: {e}",
                registration_id=reg_id,
                stage_id=score.stage_id,
            )
            logger.warning(f"Excluding registration {reg_id}: invalid score on stage {score.stage_id} ({e})")
            rejected.add(reg_id)
            totals.pop(reg_id, None)

    return totals


# =====================================================
# Individual leaderboard
# =====================================================

def aggregate_individual(
    verified_scores: Iterable[VerifiedScore],
    registrations: Iterable[Registration],
    report: Optional[AggregationReport] = None
) -> List[IndividualResult]:
    """
    Ranked individual results

    DNF/DQ entries are placed last; the rest are ordered by total score,
    then X count, then V count, all descending.
    """
    totals = registration_totals(verified_scores, registrations, report)
    ranked = sort_individual(totals.values())
    assign_positions(ranked)
    return ranked


# =====================================================
# Team leaderboard
# =====================================================

def _team_result(
    key: Tuple[str, str],
    members: List[IndividualResult],
    team: Optional[Team]
) -> TeamResult:
    team_id, discipline_id = key
    first = members[0]

    member_scores = sort_by_score(
        TeamMemberScore(
            registration_id=m.registration_id,
            user_id=m.user_id,
            shooter_name=m.shooter_name,
            total_score=m.total_score,
            total_x=m.total_x,
            total_v=m.total_v,
        )
        for m in members
    )

    member_count = len(member_scores)
    scores_counted = top_k_count(member_count)
    counted = member_scores[:scores_counted]
    for m in counted:
        m.counted = True

    if team is not None:
        team_name = team.name or UNKNOWN_TEAM
        province = team.province
    else:
        team_name = first.team_name or UNKNOWN_TEAM
        province = None

    return TeamResult(
        team_id=team_id,
        team_name=team_name,
        province=province,
        discipline_id=discipline_id,
        discipline_name=first.discipline_name or UNKNOWN,
        total_score=round(sum(m.total_score for m in counted), SCORE_PRECISION),
        total_x=sum(m.total_x for m in counted),
        total_v=sum(m.total_v for m in counted),
        member_count=member_count,
        scores_counted=scores_counted,
        members=member_scores,
    )


def aggregate_teams(
    verified_scores: Iterable[VerifiedScore],
    registrations: Iterable[Registration],
    teams: Iterable[Team] = (),
    report: Optional[AggregationReport] = None
) -> List[TeamResult]:
    """
    Ranked team results per (team, discipline)

    Members are confirmed registrations of the team with at least one verified
    score in that discipline.
    """
    registrations = list(registrations)
    teams_by_id = {t.id: t for t in teams}
    totals = registration_totals(verified_scores, registrations, report)

    partitions: "OrderedDict[Tuple[str, str], List[IndividualResult]]" = OrderedDict()
    for registration in registrations:
        if not registration.team_id:
            continue
        result = totals.get(registration.id)
        if result is None:
            continue
        key = (registration.team_id, registration.discipline_id or "")
        partitions.setdefault(key, []).append(result)

    missing = sorted({team_id for team_id, _ in partitions if team_id not in teams_by_id})
    if missing:
        logger.debug(f"Teams without records, using registration labels: {', '.join(missing)}")

    results = sort_by_score(
        _team_result(key, members, teams_by_id.get(key[0]))
        for key, members in partitions.items()
    )
    assign_positions(results)
    return results


# =====================================================
# Grouped views
# =====================================================

def _grouped(
    verified_scores: Iterable[VerifiedScore],
    registrations: Iterable[Registration],
    group_key,
    report: Optional[AggregationReport] = None
) -> Dict[str, List[IndividualResult]]:
    verified_scores = list(verified_scores)
    groups: "OrderedDict[str, List[Registration]]" = OrderedDict()
    for registration in registrations:
        groups.setdefault(group_key(registration), []).append(registration)

    # Scores outside every group are reported once, before partitioning
    known = {r.id for members in groups.values() for r in members}
    orphans = [s for s in verified_scores if s.registration_id not in known]
    if orphans:
        registration_totals(orphans, [], report)

    leaderboards = {}
    for key, members in groups.items():
        ids = {r.id for r in members}
        scores = [s for s in verified_scores if s.registration_id in ids]
        ranked = aggregate_individual(scores, members, report)
        if ranked:
            leaderboards[key] = ranked
            logger.debug(f"{key}: {len(ranked)} shooters")
    return leaderboards


def leaderboards_by_discipline(
    verified_scores: Iterable[VerifiedScore],
    registrations: Iterable[Registration],
    report: Optional[AggregationReport] = None
) -> Dict[str, List[IndividualResult]]:
    """Individual leaderboard per discipline id"""
    return _grouped(verified_scores, registrations, lambda r: r.discipline_id or UNKNOWN, report)


def leaderboards_by_age_classification(
    verified_scores: Iterable[VerifiedScore],
    registrations: Iterable[Registration],
    report: Optional[AggregationReport] = None
) -> Dict[str, List[IndividualResult]]:
    """Individual leaderboard per age classification"""
    return _grouped(verified_scores, registrations, lambda r: r.age_classification or UNKNOWN, report)


# =====================================================
# Aggregator over one competition snapshot
# =====================================================

class LeaderboardAggregator:
    """Leaderboards of one competition snapshot"""

    def __init__(
        self,
        verified_scores: Iterable[VerifiedScore] = (),
        registrations: Iterable[Registration] = (),
        teams: Iterable[Team] = ()
    ):
        self.verified_scores: List[VerifiedScore] = list(verified_scores)
        self.registrations: List[Registration] = list(registrations)
        self.teams: List[Team] = list(teams)
        self.report = AggregationReport()

    def _registrations(self, criteria: ResultFilter) -> List[Registration]:
        if criteria.is_empty:
            return self.registrations
        return filter_registrations(
            self.registrations,
            criteria.discipline_id,
            criteria.age_classification,
            criteria.search_text,
        )

    def _scores(self, registrations: List[Registration]) -> List[VerifiedScore]:
        """Scores of the given registrations plus scores of unknown ones"""
        if registrations is self.registrations:
            return self.verified_scores
        kept = {r.id for r in registrations}
        known = {r.id for r in self.registrations}
        return [s for s in self.verified_scores if s.registration_id in kept or s.registration_id not in known]

    def individual(
        self,
        discipline_id: str = None,
        age_classification: str = None,
        search_text: str = None
    ) -> List[IndividualResult]:
        self.report = AggregationReport()
        registrations = self._registrations(ResultFilter(discipline_id, age_classification, search_text))
        results = aggregate_individual(self._scores(registrations), registrations, self.report)
        self._log_report("individual", len(results))
        return results

    def team(self, discipline_id: str = None) -> List[TeamResult]:
        self.report = AggregationReport()
        registrations = self._registrations(ResultFilter(discipline_id=discipline_id))
        results = aggregate_teams(self._scores(registrations), registrations, self.teams, self.report)
        self._log_report("team", len(results))
        return results

    def by_discipline(self) -> Dict[str, List[IndividualResult]]:
        self.report = AggregationReport()
        return leaderboards_by_discipline(self.verified_scores, self.registrations, self.report)

    def by_age_classification(self) -> Dict[str, List[IndividualResult]]:
        self.report = AggregationReport()
        return leaderboards_by_age_classification(self.verified_scores, self.registrations, self.report)

    def _log_report(self, view: str, count: int):
        logger.info(f"{view} leaderboard: {count} rows")
        if not self.report.is_clean:
            logger.warning(
                f"{view} leaderboard: {len(self.report.anomalies)} anomalies, "
                f"excluded registrations: {', '.join(self.report.excluded_registrations) or '-'}"
            )
