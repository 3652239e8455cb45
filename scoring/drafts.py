"""
Score entry drafts

A draft is the in-progress shot entry for one registration. It is an explicit
value owned by the caller: nothing here reads or writes storage.
"""
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Union

from .calculator import V_BONUS, blank_shots, build_stage_score
from .models import SighterMode, Shot, StageDefinition, StageScore


@dataclass
class StageDraft:
    """Shot entry for one stage"""
    stage_id: str
    shots: List[Shot] = field(default_factory=list)
    sighter_mode: SighterMode = SighterMode.COUNT_NONE
    is_dnf: bool = False
    is_dq: bool = False
    notes: str = ""


@dataclass
class ScoreDraft:
    """Shot entry for every stage of a registration"""
    registration_id: str
    stages: Dict[str, StageDraft] = field(default_factory=dict)

    def start_stage(
        self,
        stage_id: str,
        stage_definition: StageDefinition,
        sighter_mode: Union[SighterMode, str] = SighterMode.COUNT_NONE
    ) -> StageDraft:
        """Open a blank entry sized for sighters + scoring shots (kept if already open)"""
        if stage_id not in self.stages:
            self.stages[stage_id] = StageDraft(
                stage_id=stage_id,
                shots=blank_shots(stage_definition.total_shots),
                sighter_mode=SighterMode.from_value(sighter_mode),
            )
        return self.stages[stage_id]

    def set_shot(
        self,
        stage_id: str,
        round_number: int,
        score: Optional[int] = None,
        is_x: Optional[bool] = None,
        is_v: Optional[bool] = None
    ) -> Shot:
        """Update one shot; rounds past the end extend the sequence"""
        stage = self.stages[stage_id]
        while len(stage.shots) < round_number:
            stage.shots.append(Shot(round=len(stage.shots) + 1))

        index = round_number - 1
        current = stage.shots[index]
        updated = replace(
            current,
            score=current.score if score is None else score,
            is_x=current.is_x if is_x is None else is_x,
            is_v=current.is_v if is_v is None else is_v,
        )
        stage.shots[index] = updated
        return updated

    def mark(self, stage_id: str, is_dnf: bool = False, is_dq: bool = False):
        stage = self.stages[stage_id]
        stage.is_dnf = is_dnf
        stage.is_dq = is_dq

    def discard(self, stage_id: str) -> Optional[StageDraft]:
        """Drop a stage entry after it has been submitted"""
        return self.stages.pop(stage_id, None)

    def build(
        self,
        stage_id: str,
        stage_definition: StageDefinition,
        v_bonus: float = V_BONUS
    ) -> StageScore:
        stage = self.stages[stage_id]
        return build_stage_score(
            stage.shots,
            stage_definition,
            stage.sighter_mode,
            is_dnf=stage.is_dnf,
            is_dq=stage.is_dq,
            v_bonus=v_bonus,
        )
