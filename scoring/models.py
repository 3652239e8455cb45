"""
Scoring data classes

Shot, stage definition and derived stage score records used by the
stage score calculator.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


# Current version of the persisted shot record
RECORD_VERSION = 1


class SighterMode(str, Enum):
    """Which shots of the attempt open the scoring window"""
    COUNT_SIGHTER_1 = "count_sighter_1"  # window starts at shot 1
    COUNT_SIGHTER_2 = "count_sighter_2"  # window starts at shot 2
    COUNT_NONE = "count_none"            # shots 1-2 are true sighters

    @property
    def preferred_start(self) -> int:
        return SIGHTER_MODE_START[self]

    @classmethod
    def from_value(cls, value) -> "SighterMode":
        """Accept the enum itself or its string value"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown sighter mode: {value!r} (expected one of: {valid})")


SIGHTER_MODE_START = {
    SighterMode.COUNT_SIGHTER_1: 1,
    SighterMode.COUNT_SIGHTER_2: 2,
    SighterMode.COUNT_NONE: 3,
}


@dataclass(frozen=True)
class Shot:
    """One scoring attempt within a stage attempt"""
    round: int
    score: int = 0
    is_x: bool = False
    is_v: bool = False

    def to_dict(self) -> dict:
        return {"round": self.round, "score": self.score, "is_x": self.is_x, "is_v": self.is_v}


@dataclass(frozen=True)
class StageDefinition:
    """Stage configuration (read-only to the calculator)"""
    scoring_rounds: int = 10
    sighter_count: int = 2
    max_score_per_shot: int = 5
    id: Optional[str] = None
    stage_number: Optional[int] = None
    name: Optional[str] = None
    distance: Optional[int] = None

    @property
    def total_shots(self) -> int:
        """Shots in a complete attempt (sighters + scoring shots)"""
        return max(self.scoring_rounds, 0) + max(self.sighter_count, 0)


@dataclass(frozen=True)
class ScoringWindow:
    """Inclusive, 1-based range of counted shots"""
    start: int
    end: int

    def __contains__(self, round_number: int) -> bool:
        return self.start <= round_number <= self.end

    def __len__(self) -> int:
        return max(self.end - self.start + 1, 0)

    def as_tuple(self) -> Tuple[int, int]:
        return self.start, self.end


@dataclass(frozen=True)
class StageTotals:
    """Sums over the shots inside the scoring window"""
    total_score: float = 0.0
    x_count: int = 0
    v_count: int = 0


@dataclass
class StageScore:
    """
    Stage score computed from a shot sequence

    total_score is the ranking score: 0 when the attempt is DNF or DQ.
    computed_score keeps the window total for audit either way.
    shots is the recorded sequence with sighter values intact, so the
    attempt can be re-scored under another sighter mode.
    """
    total_score: float
    x_count: int
    v_count: int
    is_dnf: bool
    is_dq: bool
    computed_score: float
    window: ScoringWindow
    sighter_mode: SighterMode
    shots: List[Shot] = field(default_factory=list)
    record_version: int = RECORD_VERSION

    @property
    def normalized_shots(self) -> List[Shot]:
        """Shots as counted: everything outside the window zeroed"""
        return [s if s.round in self.window else Shot(round=s.round) for s in self.shots]

    @property
    def is_zeroed(self) -> bool:
        return self.is_dnf or self.is_dq

    @property
    def status_label(self) -> str:
        if self.is_dnf:
            return "DNF"
        if self.is_dq:
            return "DQ"
        return ""
