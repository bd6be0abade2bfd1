# priorart/db/base.py
# import all models here so Base.metadata knows every table
from priorart.db.base_class import Base  # noqa
from priorart.models.user import Profile  # noqa
from priorart.models.challenge import OverallChallenge, SubChallenge  # noqa
from priorart.models.submission import Submission  # noqa
from priorart.models.leaderboard import LeaderboardSnapshot  # noqa
