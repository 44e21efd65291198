from __future__ import annotations


class LeaderboardError(Exception):
    """Base class for failures surfaced by the leaderboard service."""


class CompetitionNotFoundError(LeaderboardError, ValueError):
    """The competition id or slug does not resolve to a known competition."""

    def __init__(self, competition: str) -> None:
        super().__init__("Competition not found")
        self.competition = competition


class ComputationError(LeaderboardError, RuntimeError):
    """Unexpected failure while ranking an already loaded snapshot."""
