from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .entry import Competition


@dataclass
class AthleteEventResult:
    event_id: str
    event_name: str
    points: int
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventId": self.event_id,
            "eventName": self.event_name,
            "points": self.points,
            "rank": self.rank,
        }


@dataclass
class LeaderboardAthlete:
    rank: int
    user_id: str
    name: str
    affiliate_name: str
    events: List[AthleteEventResult]
    total_points: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "userId": self.user_id,
            "name": self.name,
            "affiliateName": self.affiliate_name,
            "events": [event.to_dict() for event in self.events],
            "totalPoints": self.total_points,
        }


@dataclass
class DivisionLeaderboard:
    id: str
    name: str
    athletes: List[LeaderboardAthlete] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "athletes": [athlete.to_dict() for athlete in self.athletes],
        }


@dataclass
class GymAthleteEvent:
    event_id: str
    event_name: str
    points: int
    contributing: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventId": self.event_id,
            "eventName": self.event_name,
            "points": self.points,
            "contributing": self.contributing,
        }


@dataclass
class GymAthleteEntry:
    name: str
    division: str
    division_rank: int
    events: List[GymAthleteEvent]
    contributing_total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "division": self.division,
            "divisionRank": self.division_rank,
            "events": [event.to_dict() for event in self.events],
            "contributingTotal": self.contributing_total,
        }


@dataclass
class GymLeaderboard:
    name: str
    rank: int
    athlete_count: int
    total_score: int
    athletes: List[GymAthleteEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rank": self.rank,
            "athleteCount": self.athlete_count,
            "totalScore": self.total_score,
            "athletes": [athlete.to_dict() for athlete in self.athletes],
        }


@dataclass
class LeaderboardResponse:
    """Fully ranked leaderboard for one competition.

    ``to_dict`` produces the camelCase payload served by the API.
    """

    competition: Competition
    divisions: List[DivisionLeaderboard] = field(default_factory=list)
    gyms: List[GymLeaderboard] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "competition": self.competition.to_dict(),
            "divisions": [division.to_dict() for division in self.divisions],
            "gyms": [gym.to_dict() for gym in self.gyms],
        }
