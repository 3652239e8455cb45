"""
Scoring errors
"""


class ScoringError(Exception):
    """Base class for scoring computation errors"""


class InvalidStageDefinition(ScoringError):
    """No scoring window can be computed for the stage attempt"""

    def __init__(self, message: str, scoring_rounds: int = None, total_shot_count: int = None):
        super().__init__(message)
        self.scoring_rounds = scoring_rounds
        self.total_shot_count = total_shot_count
