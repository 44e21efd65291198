from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from .athlete import Athlete
from .entry import Event, ScoreEntry
from .points import points_for_rank
from .ranking import rank_event_division
from .results import AthleteEventResult

logger = logging.getLogger(__name__)

# event id -> division id -> scores, both levels in first-seen order
ScoreIndex = Dict[str, Dict[str, List[ScoreEntry]]]


@dataclass
class AthleteScores:
    """Running per-event results for one athlete during a computation."""

    athlete: Athlete
    events: List[AthleteEventResult] = field(default_factory=list)
    total_points: int = 0
    _points_by_event: Dict[str, int] = field(default_factory=dict, repr=False)

    def add_result(self, result: AthleteEventResult) -> None:
        self.events.append(result)
        self._points_by_event[result.event_id] = result.points
        self.total_points += result.points

    def has_result(self, event_id: str) -> bool:
        return event_id in self._points_by_event

    def points_for(self, event_id: str) -> int:
        return self._points_by_event.get(event_id, 0)


def index_scores(
    scores: Iterable[ScoreEntry],
    events: Sequence[Event],
    tallies: Dict[str, AthleteScores],
) -> ScoreIndex:
    """Group relevant scores by event, then by the athlete's division.

    Scores for unknown events or athletes are dropped, as is any repeat
    score for an athlete on an event after the first.
    """
    index: ScoreIndex = {event.id: {} for event in events}
    seen: Set[Tuple[str, str]] = set()

    for score in scores:
        divisions = index.get(score.event_id)
        tally = tallies.get(score.user_id)
        if divisions is None or tally is None:
            continue

        marker = (score.user_id, score.event_id)
        if marker in seen:
            logger.debug("Ignoring duplicate score for %s on event %s", score.user_id, score.event_id)
            continue
        seen.add(marker)

        divisions.setdefault(tally.athlete.division_id, []).append(score)

    return index


def aggregate_scores(
    events: Sequence[Event],
    athletes: Iterable[Athlete],
    scores: Iterable[ScoreEntry],
) -> List[AthleteScores]:
    """Rank every event per division and fold the points onto each athlete.

    Every athlete ends up with exactly one result per event, in event
    order; athletes without a ranked score get a zero-point, rank-0
    placeholder.
    """
    # A later registration for the same user replaces the earlier one in place.
    tallies: Dict[str, AthleteScores] = {}
    for athlete in athletes:
        tallies[athlete.user_id] = AthleteScores(athlete=athlete)

    index = index_scores(scores, events, tallies)

    for event in events:
        for division_scores in index[event.id].values():
            for entry, rank in rank_event_division(division_scores):
                tallies[entry.user_id].add_result(
                    AthleteEventResult(
                        event_id=event.id,
                        event_name=event.name,
                        points=points_for_rank(rank, event.points_multiplier),
                        rank=rank,
                    )
                )

        for tally in tallies.values():
            if not tally.has_result(event.id):
                tally.add_result(AthleteEventResult(event_id=event.id, event_name=event.name, points=0, rank=0))

    return list(tallies.values())
