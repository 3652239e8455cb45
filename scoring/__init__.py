"""
Shooting stage scoring

Converts per-shot entries of a stage attempt into a stage score under a
selectable sighter-counting rule.
"""
from .calculator import (
    V_BONUS,
    SCORE_PRECISION,
    blank_shots,
    clamp_shot,
    fill_missing_rounds,
    compute_scoring_window,
    normalize_shots_for_window,
    compute_totals,
    build_stage_score,
)
from .drafts import ScoreDraft, StageDraft
from .exceptions import ScoringError, InvalidStageDefinition
from .models import (
    RECORD_VERSION,
    SighterMode,
    Shot,
    StageDefinition,
    ScoringWindow,
    StageTotals,
    StageScore,
)

__all__ = [
    "V_BONUS",
    "SCORE_PRECISION",
    "blank_shots",
    "clamp_shot",
    "fill_missing_rounds",
    "compute_scoring_window",
    "normalize_shots_for_window",
    "compute_totals",
    "build_stage_score",
    "ScoreDraft",
    "StageDraft",
    "ScoringError",
    "InvalidStageDefinition",
    "RECORD_VERSION",
    "SighterMode",
    "Shot",
    "StageDefinition",
    "ScoringWindow",
    "StageTotals",
    "StageScore",
]
