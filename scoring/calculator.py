"""
Stage score calculator

Converts the full shot sequence of one stage attempt (sighters + scoring
shots) into a stage score:
- scoring window selected by the sighter mode, clamped to the recorded shots
- shots outside the window forced to 0 / no X / no V
- total = in-window score sum + V bonus per V, rounded to 3 decimals
- DNF / DQ zero the ranking score but keep X/V counts and shots
- the recorded (clamped, gap-filled) sequence is kept on the result

Pure functions only. Persisting the result is the caller's job.
"""
from dataclasses import replace
from typing import Iterable, List, Sequence, Union

from loguru import logger

from .exceptions import InvalidStageDefinition
from .models import (
    ScoringWindow,
    SighterMode,
    Shot,
    StageDefinition,
    StageScore,
    StageTotals,
)


# =====================================================
# Constants
# =====================================================

# Fractional bonus per V. Breaks ties between equal integer totals
# without a secondary sort key. Federations may tune it.
V_BONUS = 0.001

# Decimal places kept on a stage total
SCORE_PRECISION = 3


# =====================================================
# Shot helpers
# =====================================================

def blank_shots(count: int) -> List[Shot]:
    """Empty shot sequence for a new draft (rounds 1..count)"""
    return [Shot(round=i) for i in range(1, max(count, 0) + 1)]


def clamp_shot(shot: Shot, max_score_per_shot: int = 5) -> Shot:
    """Clamp a shot score to 0..max_score_per_shot"""
    score = int(shot.score or 0)
    clamped = min(max(score, 0), max_score_per_shot)
    if clamped != shot.score:
        logger.debug(f"Shot {shot.round}: score {shot.score} clamped to {clamped}")
        return replace(shot, score=clamped)
    return shot


def fill_missing_rounds(shots: Iterable[Shot]) -> List[Shot]:
    """
    Order shots by round and fill gaps with blank shots

    Rounds below 1 are dropped. For a duplicated round the first entry wins.
    """
    by_round = {}
    for shot in shots:
        if shot.round < 1:
            logger.debug(f"Dropping shot with invalid round {shot.round}")
            continue
        by_round.setdefault(shot.round, shot)

    if not by_round:
        return []

    last_round = max(by_round)
    return [by_round.get(i) or Shot(round=i) for i in range(1, last_round + 1)]


# =====================================================
# Window and totals
# =====================================================

def compute_scoring_window(
    total_shot_count: int,
    scoring_rounds: int,
    sighter_mode: Union[SighterMode, str]
) -> ScoringWindow:
    """
    Scoring window for an attempt

    The preferred start comes from the sighter mode (1, 2 or 3) and is
    pulled back so the window never runs past the last recorded shot.

    Raises:
        InvalidStageDefinition: scoring_rounds <= 0 or no recorded shots
    """
    if scoring_rounds <= 0:
        raise InvalidStageDefinition(
            f"scoring_rounds must be positive, got {scoring_rounds}",
            scoring_rounds=scoring_rounds,
            total_shot_count=total_shot_count,
        )
    if total_shot_count < 1:
        raise InvalidStageDefinition(
            "at least one recorded shot is required to compute a scoring window",
            scoring_rounds=scoring_rounds,
            total_shot_count=total_shot_count,
        )

    mode = SighterMode.from_value(sighter_mode)
    start = min(mode.preferred_start, max(1, total_shot_count - scoring_rounds + 1))
    end = min(total_shot_count, start + scoring_rounds - 1)
    return ScoringWindow(start=start, end=end)


def normalize_shots_for_window(shots: Sequence[Shot], window: ScoringWindow) -> List[Shot]:
    """Zero every shot outside the window; in-window shots pass through untouched"""
    normalized = []
    for shot in shots:
        if shot.round in window:
            normalized.append(shot)
        else:
            normalized.append(Shot(round=shot.round, score=0, is_x=False, is_v=False))
    return normalized


def compute_totals(
    shots: Sequence[Shot],
    window: ScoringWindow,
    v_bonus: float = V_BONUS
) -> StageTotals:
    """Score, X and V totals over the in-window shots"""
    counted = [s for s in shots if s.round in window]
    if not counted:
        return StageTotals()

    base_score = sum(s.score for s in counted)
    x_count = sum(1 for s in counted if s.is_x)
    v_count = sum(1 for s in counted if s.is_v)

    return StageTotals(
        total_score=round(base_score + v_count * v_bonus, SCORE_PRECISION),
        x_count=x_count,
        v_count=v_count,
    )


# =====================================================
# Stage score
# =====================================================

def build_stage_score(
    shots: Sequence[Shot],
    stage_definition: StageDefinition,
    sighter_mode: Union[SighterMode, str],
    is_dnf: bool = False,
    is_dq: bool = False,
    v_bonus: float = V_BONUS
) -> StageScore:
    """
    Stage score for one attempt

    Gaps in the shot sequence count as blank shots and scores are clamped to
    the stage's maximum per shot. The window is computed over the recorded
    shots, so a short sequence still yields a score.

    Raises:
        InvalidStageDefinition: no scoring window can be computed
    """
    mode = SighterMode.from_value(sighter_mode)
    sequence = [
        clamp_shot(s, stage_definition.max_score_per_shot)
        for s in fill_missing_rounds(shots)
    ]

    window = compute_scoring_window(len(sequence), stage_definition.scoring_rounds, mode)
    totals = compute_totals(normalize_shots_for_window(sequence, window), window, v_bonus=v_bonus)

    zeroed = bool(is_dnf or is_dq)
    return StageScore(
        total_score=0 if zeroed else totals.total_score,
        x_count=totals.x_count,
        v_count=totals.v_count,
        is_dnf=bool(is_dnf),
        is_dq=bool(is_dq),
        computed_score=totals.total_score,
        window=window,
        sighter_mode=mode,
        shots=sequence,
    )
