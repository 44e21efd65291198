from __future__ import annotations

from typing import Dict, List, Sequence

from .aggregate import AthleteScores
from .ranking import award_ranks
from .results import DivisionLeaderboard, LeaderboardAthlete


def build_division_leaderboards(tallies: Sequence[AthleteScores]) -> List[DivisionLeaderboard]:
    """Group athletes by division and rank each division on total points.

    Divisions appear in the order their first athlete registered; athletes
    with equal totals share a rank and keep registration order.
    """
    divisions: Dict[str, DivisionLeaderboard] = {}

    for tally in tallies:
        athlete = tally.athlete
        division = divisions.get(athlete.division_id)
        if division is None:
            division = DivisionLeaderboard(id=athlete.division_id, name=athlete.division_label)
            divisions[athlete.division_id] = division

        division.athletes.append(
            LeaderboardAthlete(
                rank=0,
                user_id=athlete.user_id,
                name=athlete.name,
                affiliate_name=athlete.affiliate_name,
                events=list(tally.events),
                total_points=tally.total_points,
            )
        )

    for division in divisions.values():
        award_ranks(division.athletes, key=lambda a: a.total_points)

    return list(divisions.values())


def division_rank_lookup(divisions: Sequence[DivisionLeaderboard]) -> Dict[str, int]:
    return {athlete.user_id: athlete.rank for division in divisions for athlete in division.athletes}
