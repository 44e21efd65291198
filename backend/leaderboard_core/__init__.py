"""Competition leaderboard scoring and data access."""

from .athlete import Athlete, parse_affiliate_name
from .entry import Competition, Event, ScoreEntry
from .errors import CompetitionNotFoundError, ComputationError, LeaderboardError
from .leaderboard import compute_leaderboard
from .loader import DataStore
from .results import LeaderboardResponse

__all__ = [
    "Athlete",
    "Competition",
    "CompetitionNotFoundError",
    "ComputationError",
    "DataStore",
    "Event",
    "LeaderboardError",
    "LeaderboardResponse",
    "ScoreEntry",
    "compute_leaderboard",
    "parse_affiliate_name",
]
