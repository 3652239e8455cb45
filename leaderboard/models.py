"""
Leaderboard data classes
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


# Display labels for unresolved metadata
UNKNOWN = "Unknown"
UNKNOWN_TEAM = "Unknown Team"

# Age classifications used by the federation
AGE_CLASSIFICATIONS = ["Open", "Under_19", "Under_25", "Veteran_60_plus", "Veteran_70_plus"]


def age_classification_label(code: str) -> str:
    """'Veteran_60_plus' -> 'Veteran 60 plus'"""
    return (code or "").replace("_", " ")


# =====================================================
# Inputs (read-only snapshots from the data store)
# =====================================================

@dataclass
class Registration:
    """Shooter entry into a competition discipline"""
    id: str
    user_id: str = ""
    competition_id: str = ""
    discipline_id: str = ""
    team_id: Optional[str] = None
    age_classification: str = ""
    shooter_name: str = UNKNOWN
    sabu_number: str = ""
    club: str = ""
    province: str = ""
    discipline_name: str = UNKNOWN
    team_name: Optional[str] = None
    status: str = "confirmed"


@dataclass
class VerifiedScore:
    """Persisted stage score; counts only once verified_at is set"""
    registration_id: str
    stage_id: str
    score: float = 0.0
    x_count: int = 0
    v_count: int = 0
    is_dnf: bool = False
    is_dq: bool = False
    verified_at: Optional[datetime] = None
    stage_number: Optional[int] = None

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None

    @property
    def stage_key(self) -> str:
        """Column key of the stage ('S1', 'S2', ...)"""
        return f"S{self.stage_number or 0}"


@dataclass
class Team:
    id: str
    name: str = UNKNOWN_TEAM
    province: Optional[str] = None
    member_ids: List[str] = field(default_factory=list)


# =====================================================
# Outputs (recomputed on every call)
# =====================================================

@dataclass
class IndividualResult:
    """Competition total of one registration"""
    registration_id: str
    user_id: str
    shooter_name: str
    sabu_number: str
    club: str
    province: str
    age_classification: str
    discipline_id: str
    discipline_name: str
    team_id: Optional[str]
    team_name: Optional[str]
    stage_scores: Dict[str, float] = field(default_factory=dict)
    stage_x_counts: Dict[str, int] = field(default_factory=dict)
    stage_v_counts: Dict[str, int] = field(default_factory=dict)
    total_score: float = 0.0
    total_x: int = 0
    total_v: int = 0
    has_dnf: bool = False
    has_dq: bool = False
    position: int = 0

    @property
    def status_label(self) -> str:
        if self.has_dnf:
            return "DNF"
        if self.has_dq:
            return "DQ"
        return ""


@dataclass
class TeamMemberScore:
    """Member contribution inside a team result"""
    registration_id: str
    user_id: str
    shooter_name: str
    total_score: float = 0.0
    total_x: int = 0
    total_v: int = 0
    counted: bool = False


@dataclass
class TeamResult:
    team_id: str
    team_name: str
    province: Optional[str]
    discipline_id: str
    discipline_name: str
    total_score: float = 0.0
    total_x: int = 0
    total_v: int = 0
    member_count: int = 0
    scores_counted: int = 0
    members: List[TeamMemberScore] = field(default_factory=list)
    position: int = 0


# =====================================================
# Anomaly reporting
# =====================================================

@dataclass
class Anomaly:
    """Record excluded from an aggregation"""
    kind: str
    message: str
    registration_id: Optional[str] = None
    stage_id: Optional[str] = None


@dataclass
class AggregationReport:
    anomalies: List[Anomaly] = field(default_factory=list)
    skipped_unverified: int = 0
    skipped_unconfirmed: int = 0

    def add(self, kind: str, message: str, registration_id: str = None, stage_id: str = None):
        self.anomalies.append(Anomaly(kind, message, registration_id, stage_id))

    @property
    def excluded_registrations(self) -> List[str]:
        return sorted({a.registration_id for a in self.anomalies if a.registration_id})

    @property
    def is_clean(self) -> bool:
        return not self.anomalies
