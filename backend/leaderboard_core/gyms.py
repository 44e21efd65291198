from __future__ import annotations

from typing import Dict, List, Mapping, Sequence, Set

from .aggregate import AthleteScores
from .entry import Event
from .ranking import award_ranks
from .results import GymAthleteEntry, GymAthleteEvent, GymLeaderboard

# Scores counted per team, per division, per event.
TOP_PER_DIVISION = 6


def select_contributors(members: Sequence[AthleteScores], event_id: str) -> Set[str]:
    """Return the user ids whose points on ``event_id`` count for the team.

    The best six of each division count. Equal points at the cut-off are
    settled by user id so the selection does not depend on input order.
    """
    by_division: Dict[str, List[AthleteScores]] = {}
    for member in members:
        by_division.setdefault(member.athlete.division_id, []).append(member)

    contributors: Set[str] = set()
    for division_members in by_division.values():
        ordered = sorted(division_members, key=lambda m: (-m.points_for(event_id), m.athlete.user_id))
        contributors.update(m.athlete.user_id for m in ordered[:TOP_PER_DIVISION])
    return contributors


def _gym_entry(
    member: AthleteScores,
    events: Sequence[Event],
    contributors: Mapping[str, Set[str]],
    division_ranks: Mapping[str, int],
) -> GymAthleteEntry:
    athlete = member.athlete
    gym_events: List[GymAthleteEvent] = []
    contributing_total = 0

    for event in events:
        points = member.points_for(event.id)
        contributing = athlete.user_id in contributors[event.id]
        if contributing:
            contributing_total += points
        gym_events.append(
            GymAthleteEvent(event_id=event.id, event_name=event.name, points=points, contributing=contributing)
        )

    return GymAthleteEntry(
        name=athlete.name,
        division=athlete.division_label,
        division_rank=division_ranks.get(athlete.user_id, 0),
        events=gym_events,
        contributing_total=contributing_total,
    )


def build_gym_leaderboards(
    events: Sequence[Event],
    tallies: Sequence[AthleteScores],
    division_ranks: Mapping[str, int],
) -> List[GymLeaderboard]:
    """Rank affiliates on the points of their contributing athletes.

    Contributors are picked independently for every event, so a different
    part of a roster can score for the team on each workout.
    """
    # Teams exist only through their members, so none is ever empty.
    teams: Dict[str, List[AthleteScores]] = {}
    for tally in tallies:
        teams.setdefault(tally.athlete.affiliate_name, []).append(tally)

    gyms: List[GymLeaderboard] = []
    for name, members in teams.items():
        contributors = {event.id: select_contributors(members, event.id) for event in events}
        entries = [_gym_entry(member, events, contributors, division_ranks) for member in members]
        entries.sort(key=lambda entry: entry.contributing_total, reverse=True)

        gyms.append(
            GymLeaderboard(
                name=name,
                rank=0,
                athlete_count=len(members),
                total_score=sum(entry.contributing_total for entry in entries),
                athletes=entries,
            )
        )

    award_ranks(gyms, key=lambda g: g.total_score)
    return gyms
