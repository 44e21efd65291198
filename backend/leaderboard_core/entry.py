from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .points import DEFAULT_POINTS_MULTIPLIER, event_weight


@dataclass(frozen=True)
class Competition:
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class Event:
    """A published workout on the competition track.

    Events are scored in ``track_order``; ``points_multiplier`` is a
    percentage applied to the ladder points of every placing.
    """

    id: str
    name: str
    track_order: int = 0
    points_multiplier: int = DEFAULT_POINTS_MULTIPLIER
    workout_id: str = ""
    scheme: str = ""

    @property
    def weight(self) -> float:
        return event_weight(self.points_multiplier)

    @classmethod
    def from_row(cls, row: Dict[str, Any], workout: Optional[Dict[str, Any]] = None) -> "Event":
        """Build an event from a ``track_workouts`` row joined to its workout."""

        workout = workout or {}
        multiplier = row.get("points_multiplier")
        try:
            multiplier_val = int(multiplier) if multiplier is not None else DEFAULT_POINTS_MULTIPLIER
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid points multiplier '{multiplier}' for event {row.get('id')}") from exc

        return cls(
            id=str(row["id"]),
            name=str(workout.get("name") or ""),
            track_order=int(row.get("track_order") or 0),
            points_multiplier=multiplier_val,
            workout_id=str(row.get("workout_id") or ""),
            scheme=str(workout.get("scheme") or ""),
        )


@dataclass(frozen=True)
class ScoreEntry:
    """One raw score submission for an athlete on an event.

    ``value`` and ``sort_key`` are already oriented better-first: a lower
    value or lexicographically smaller key is the better result.
    """

    user_id: str
    event_id: str
    value: Optional[float] = None
    status: str = "scored"
    sort_key: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ScoreEntry":
        value = row.get("score_value")
        sort_key = row.get("sort_key")
        return cls(
            user_id=str(row["user_id"]),
            event_id=str(row["competition_event_id"]),
            value=float(value) if value is not None else None,
            status=str(row.get("status") or "scored"),
            sort_key=str(sort_key) if sort_key else None,
        )
