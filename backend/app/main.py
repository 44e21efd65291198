from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import List

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from leaderboard_core import CompetitionNotFoundError, ComputationError, DataStore

CACHE_CONTROL = "s-maxage=60"


def _allowed_origins() -> List[str]:
    origins = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "").split(",") if origin.strip()]
    return origins or ["*"]


app = FastAPI(title="Competition Leaderboard API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)

logger = logging.getLogger(__name__)


class CompetitionModel(BaseModel):
    id: str
    name: str


class AthleteEventModel(BaseModel):
    event_id: str = Field(alias="eventId")
    event_name: str = Field(alias="eventName")
    points: int
    rank: int

    model_config = ConfigDict(populate_by_name=True)


class LeaderboardAthleteModel(BaseModel):
    rank: int
    user_id: str = Field(alias="userId")
    name: str
    affiliate_name: str = Field(alias="affiliateName")
    events: List[AthleteEventModel]
    total_points: int = Field(alias="totalPoints")

    model_config = ConfigDict(populate_by_name=True)


class DivisionLeaderboardModel(BaseModel):
    id: str
    name: str
    athletes: List[LeaderboardAthleteModel]


class GymAthleteEventModel(BaseModel):
    event_id: str = Field(alias="eventId")
    event_name: str = Field(alias="eventName")
    points: int
    contributing: bool

    model_config = ConfigDict(populate_by_name=True)


class GymAthleteModel(BaseModel):
    name: str
    division: str
    division_rank: int = Field(alias="divisionRank")
    events: List[GymAthleteEventModel]
    contributing_total: int = Field(alias="contributingTotal")

    model_config = ConfigDict(populate_by_name=True)


class GymLeaderboardModel(BaseModel):
    name: str
    rank: int
    athlete_count: int = Field(alias="athleteCount")
    total_score: int = Field(alias="totalScore")
    athletes: List[GymAthleteModel]

    model_config = ConfigDict(populate_by_name=True)


class LeaderboardResponseModel(BaseModel):
    competition: CompetitionModel
    divisions: List[DivisionLeaderboardModel]
    gyms: List[GymLeaderboardModel]


@lru_cache(maxsize=1)
def store() -> DataStore:
    return DataStore()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/leaderboard/{id_or_slug}", response_model=LeaderboardResponseModel)
def leaderboard(id_or_slug: str, response: Response):
    try:
        result = store().fetch_leaderboard(id_or_slug)
    except CompetitionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ComputationError as exc:
        logger.exception("Leaderboard computation failed for %s", id_or_slug)
        raise HTTPException(status_code=500, detail="Failed to compute leaderboard") from exc
    except RuntimeError as exc:
        logger.warning("Leaderboard data unavailable for %s: %s", id_or_slug, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    response.headers["Cache-Control"] = CACHE_CONTROL
    return LeaderboardResponseModel.model_validate(result.to_dict())
