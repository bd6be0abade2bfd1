"""
Challenge evaluation engine: pure functions over in-memory snapshots.
"""

from .normalizer import normalize
from .duplicates import detect, annotate_submission, suggest_overrides
from .scoring import score, score_breakdown
from .assignment import can_evaluate
from .lifecycle import classify, lifecycle_state
from .leaderboard import aggregate, sub_challenge_leaderboard

__all__ = [
    'normalize',
    'detect',
    'annotate_submission',
    'suggest_overrides',
    'score',
    'score_breakdown',
    'can_evaluate',
    'classify',
    'lifecycle_state',
    'aggregate',
    'sub_challenge_leaderboard',
]
