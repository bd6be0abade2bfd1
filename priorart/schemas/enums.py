# priorart/schemas/enums.py
from enum import Enum


class Role(str, Enum):
    MANAGER = "Manager"
    TRAINEE = "Trainee"
    EVALUATOR = "Evaluator"
    MENTOR = "Mentor"


class ResultType(str, Enum):
    PATENT = "Patent"
    NON_PATENT = "Non-Patent Literature"


class ResultTier(str, Enum):
    """Tier-1 is the strongest."""
    TIER_1 = "Tier-1"
    TIER_2 = "Tier-2"
    TIER_3 = "Tier-3"

    @property
    def rank(self) -> int:
        return list(ResultTier).index(self)


class IncorrectMarking(str, Enum):
    ZERO = "zero"
    PENALTY = "penalty"


class SubmissionStatus(str, Enum):
    ACTIVE = "Active"
    SUBMITTED = "Submitted"
    REPORT_DUE = "Report Due"
    ENDED = "Ended"


class ResultVerdict(str, Enum):
    CORRECT = "Correct"
    UPGRADED = "Upgraded"
    DOWNGRADED = "Downgraded"
    OVERRIDDEN = "Overridden"
    PENDING = "Pending"
