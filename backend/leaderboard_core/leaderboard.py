from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .aggregate import aggregate_scores
from .athlete import Athlete
from .divisions import build_division_leaderboards, division_rank_lookup
from .entry import Competition, Event, ScoreEntry
from .errors import ComputationError
from .gyms import build_gym_leaderboards
from .results import LeaderboardResponse

logger = logging.getLogger(__name__)


def compute_leaderboard(
    competition: Competition,
    events: Sequence[Event],
    athletes: Iterable[Athlete],
    scores: Iterable[ScoreEntry],
) -> LeaderboardResponse:
    """Build the division and gym leaderboards for one loaded competition.

    ``events`` must already be the published events in track order. The
    inputs are not modified, so repeated calls on the same snapshot give
    identical output.
    """
    events = list(events)
    athletes = list(athletes)

    if not events or not athletes:
        logger.info(
            "Competition %s has %d published events and %d athletes; returning empty leaderboard",
            competition.id,
            len(events),
            len(athletes),
        )
        return LeaderboardResponse(competition=competition)

    try:
        tallies = aggregate_scores(events, athletes, scores)
        divisions = build_division_leaderboards(tallies)
        gyms = build_gym_leaderboards(events, tallies, division_rank_lookup(divisions))
    except Exception as exc:
        raise ComputationError(f"Failed to compute leaderboard for {competition.id}: {exc}") from exc

    return LeaderboardResponse(competition=competition, divisions=divisions, gyms=gyms)
