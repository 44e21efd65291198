from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Tuple

import httpx

from .athlete import REMOVED_STATUS, Athlete
from .entry import Competition, Event, ScoreEntry
from .errors import CompetitionNotFoundError, ComputationError
from .leaderboard import compute_leaderboard
from .results import LeaderboardResponse

logger = logging.getLogger(__name__)

COMPETITION_ID_PREFIX = "comp_"
PUBLISHED_STATUS = "published"

# Keeps PostgREST ``in.(...)`` filters well inside URL length limits.
IN_FILTER_CHUNK = 100

# (column, operator, value) with operator one of "eq", "neq", "in".
Filter = Tuple[str, str, Any]


class DataStore:
    """Loads a competition snapshot from Supabase or a local JSON file."""

    def __init__(self, data_dir: Path | None = None, snapshot_path: Path | None = None) -> None:
        """Initialize the DataStore.

        Args:
            data_dir: Directory holding the local snapshot (used when Supabase is not configured)
            snapshot_path: Explicit snapshot file, defaults to ``data_dir/leaderboard_local.json``
        """
        self.data_dir = data_dir or (Path(__file__).parent.parent / "data")
        self.snapshot_path = snapshot_path or (self.data_dir / "leaderboard_local.json")
        self._snapshot: Dict[str, List[Dict[str, Any]]] | None = None

        # Supabase configuration
        self.supabase_url = os.getenv("SUPABASE_URL", "")
        self.supabase_key = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or os.getenv("SUPABASE_ANON_KEY")
            or ""
        )
        self.supabase_schema = os.getenv("SUPABASE_SCHEMA", "public")
        self.competitions_table = os.getenv("SUPABASE_COMPETITIONS_TABLE", "competitions")
        self.tracks_table = os.getenv("SUPABASE_TRACKS_TABLE", "programming_tracks")
        self.track_workouts_table = os.getenv("SUPABASE_TRACK_WORKOUTS_TABLE", "track_workouts")
        self.workouts_table = os.getenv("SUPABASE_WORKOUTS_TABLE", "workouts")
        self.registrations_table = os.getenv("SUPABASE_REGISTRATIONS_TABLE", "competition_registrations")
        self.users_table = os.getenv("SUPABASE_USERS_TABLE", "users")
        self.divisions_table = os.getenv("SUPABASE_DIVISIONS_TABLE", "scaling_levels")
        self.scores_table = os.getenv("SUPABASE_SCORES_TABLE", "scores")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def fetch_leaderboard(self, id_or_slug: str) -> LeaderboardResponse:
        """Load everything for a competition and compute its leaderboard."""
        competition_id = self.resolve_competition_id(id_or_slug)
        competition = self.fetch_competition(competition_id)
        if competition is None:
            raise CompetitionNotFoundError(id_or_slug)

        track_id = self.fetch_track_id(competition_id)
        if track_id is None:
            logger.info("Competition %s has no programming track", competition_id)
            return LeaderboardResponse(competition=competition)

        # Malformed rows surface as computation failures, not raw parse errors.
        try:
            events = self.fetch_events(track_id)
            if not events:
                return LeaderboardResponse(competition=competition)

            athletes = self.fetch_athletes(competition_id)
            if not athletes:
                return LeaderboardResponse(competition=competition)

            scores = self.fetch_scores(
                [event.id for event in events],
                [athlete.user_id for athlete in athletes],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ComputationError(f"Failed to compute leaderboard for {competition_id}: invalid row: {exc}") from exc

        return compute_leaderboard(competition, events, athletes, scores)

    def resolve_competition_id(self, id_or_slug: str) -> str:
        """Map a URL identifier to a competition id; ``comp_`` ids pass through."""
        id_or_slug = id_or_slug.strip()
        if id_or_slug.startswith(COMPETITION_ID_PREFIX):
            return id_or_slug

        rows = self._select(self.competitions_table, "id", [("slug", "eq", id_or_slug)], limit=1)
        if not rows:
            raise CompetitionNotFoundError(id_or_slug)
        return str(rows[0]["id"])

    def fetch_competition(self, competition_id: str) -> Competition | None:
        rows = self._select(self.competitions_table, "id,name", [("id", "eq", competition_id)], limit=1)
        if not rows:
            return None
        row = rows[0]
        return Competition(id=str(row["id"]), name=str(row.get("name") or ""))

    def fetch_track_id(self, competition_id: str) -> str | None:
        rows = self._select(self.tracks_table, "id", [("competition_id", "eq", competition_id)], limit=1)
        if not rows:
            return None
        return str(rows[0]["id"])

    def fetch_events(self, track_id: str) -> List[Event]:
        """Published track workouts joined to their workout, in track order."""
        rows = self._select(
            self.track_workouts_table,
            "id,workout_id,track_order,points_multiplier",
            [("track_id", "eq", track_id), ("event_status", "eq", PUBLISHED_STATUS)],
            order="track_order.asc,id.asc",
        )
        if not rows:
            return []

        workout_ids = sorted({str(row.get("workout_id")) for row in rows if row.get("workout_id")})
        workouts = {
            str(row["id"]): row
            for row in self._select_in(self.workouts_table, "id,name,scheme", "id", workout_ids)
        }

        events: List[Event] = []
        for row in rows:
            workout = workouts.get(str(row.get("workout_id")))
            if workout is None:
                logger.warning("Skipping track workout %s: workout %s not found", row.get("id"), row.get("workout_id"))
                continue
            events.append(Event.from_row(row, workout))
        return events

    def fetch_athletes(self, competition_id: str) -> List[Athlete]:
        """Active registrations for a competition joined to users and divisions."""
        registrations = self._select(
            self.registrations_table,
            "id,user_id,division_id,metadata,status",
            [("event_id", "eq", competition_id), ("status", "neq", REMOVED_STATUS)],
            order="id.asc",
        )
        if not registrations:
            return []

        user_ids = sorted({str(row["user_id"]) for row in registrations if row.get("user_id")})
        users = {
            str(row["id"]): row
            for row in self._select_in(self.users_table, "id,first_name,last_name", "id", user_ids)
        }

        division_ids = sorted({str(row["division_id"]) for row in registrations if row.get("division_id")})
        labels = {
            str(row["id"]): str(row.get("label") or "")
            for row in self._select_in(self.divisions_table, "id,label", "id", division_ids)
        }

        athletes: List[Athlete] = []
        for row in registrations:
            if not row.get("user_id"):
                continue
            division_id = row.get("division_id")
            athletes.append(
                Athlete.from_registration(
                    row,
                    users.get(str(row["user_id"])),
                    labels.get(str(division_id)) if division_id else None,
                )
            )
        return athletes

    def fetch_scores(self, event_ids: Sequence[str], user_ids: Sequence[str]) -> List[ScoreEntry]:
        if not event_ids or not user_ids:
            return []

        scores: List[ScoreEntry] = []
        unique_users = list(dict.fromkeys(user_ids))
        for chunk in _chunks(unique_users, IN_FILTER_CHUNK):
            rows = self._select(
                self.scores_table,
                "user_id,competition_event_id,score_value,status,sort_key",
                [("competition_event_id", "in", list(event_ids)), ("user_id", "in", chunk)],
                order="user_id.asc,competition_event_id.asc,id.asc",
            )
            scores.extend(ScoreEntry.from_row(row) for row in rows if row.get("user_id") and row.get("competition_event_id"))
        return scores

    # ---- internal query helpers ---------------------------------------------------

    def _select_in(self, table: str, columns: str, column: str, values: Sequence[str]) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for chunk in _chunks(list(values), IN_FILTER_CHUNK):
            rows.extend(self._select(table, columns, [(column, "in", chunk)]))
        return rows

    def _select(
        self,
        table: str,
        columns: str,
        filters: Sequence[Filter],
        order: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        if self.supabase_configured:
            return self._select_supabase(table, columns, filters, order=order, limit=limit)
        return self._select_local(table, columns, filters, order=order, limit=limit)

    def _select_supabase(
        self,
        table: str,
        columns: str,
        filters: Sequence[Filter],
        order: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        endpoint = self._supabase_endpoint(table)
        params: Dict[str, Any] = {"select": columns}
        for column, operator, value in filters:
            params[column] = _postgrest_filter(operator, value)
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit

        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.get(endpoint, params=params, headers=self._supabase_headers())
                response.raise_for_status()
                rows = response.json()
        except httpx.HTTPStatusError as exc:
            detail = self._extract_supabase_detail(exc.response)
            raise RuntimeError(f"Supabase query on {table} failed: {detail or exc}") from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Supabase query on {table} failed: {exc}") from exc

        if isinstance(rows, list):
            return [row for row in rows if isinstance(row, dict)]
        if isinstance(rows, dict):
            return [rows]
        logger.warning("Supabase query on %s returned unexpected payload: %s", table, type(rows))
        return []

    def _select_local(
        self,
        table: str,
        columns: str,
        filters: Sequence[Filter],
        order: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        rows = [row for row in self._load_snapshot().get(table, []) if isinstance(row, dict)]
        rows = [row for row in rows if _row_matches(row, filters)]

        # Apply "a.asc,b.desc" from the last column to the first; each sort is stable.
        for term in reversed([term.strip() for term in (order or "").split(",") if term.strip()]):
            column, _, direction = term.partition(".")
            rows.sort(
                key=lambda row: (row.get(column) is None, row.get(column)),
                reverse=direction == "desc",
            )
        if limit is not None:
            rows = rows[:limit]

        selected = [name.strip() for name in columns.split(",") if name.strip()]
        return [{name: row.get(name) for name in selected} for row in rows]

    def _load_snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        if self._snapshot is not None:
            return self._snapshot

        data = self._read_json_file(self.snapshot_path, {})
        if not isinstance(data, dict):
            logger.warning("Ignoring local snapshot %s: expected an object of tables", self.snapshot_path)
            data = {}
        self._snapshot = {str(table): rows for table, rows in data.items() if isinstance(rows, list)}
        return self._snapshot

    def _read_json_file(self, path: Path, default: Any) -> Any:
        try:
            if not path.exists():
                return default
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Falling back to default for %s due to read error: %s", path, exc)
            return default

    def _supabase_endpoint(self, table: str) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1/{table}"

    def _supabase_headers(self) -> Dict[str, str]:
        headers = {
            "apikey": self.supabase_key,
            "Authorization": f"Bearer {self.supabase_key}",
            "Accept": "application/json",
        }
        if self.supabase_schema and self.supabase_schema != "public":
            headers["Accept-Profile"] = self.supabase_schema
        return headers

    def _extract_supabase_detail(self, response: httpx.Response | None) -> str | None:
        if response is None:
            return None
        try:
            payload = response.json()
        except ValueError:
            text = (response.text or "").strip()
            return text or None

        if isinstance(payload, list) and payload:
            payload = payload[0]
        if isinstance(payload, dict):
            for key in ("message", "detail", "error", "hint", "code"):
                value = payload.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        return None


def _postgrest_filter(operator: str, value: Any) -> str:
    if operator == "in":
        quoted = ",".join('"{}"'.format(str(item).replace('"', '\\"')) for item in value)
        return f"in.({quoted})"
    return f"{operator}.{value}"


def _row_matches(row: Dict[str, Any], filters: Sequence[Filter]) -> bool:
    for column, operator, value in filters:
        current = row.get(column)
        if operator == "eq":
            if current is None or str(current) != str(value):
                return False
        elif operator == "neq":
            # SQL semantics: NULL never satisfies a comparison.
            if current is None or str(current) == str(value):
                return False
        elif operator == "in":
            if current is None or str(current) not in {str(item) for item in value}:
                return False
        else:
            raise ValueError(f"unsupported filter operator '{operator}'")
    return True


def _chunks(values: List[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(values), size):
        yield values[start:start + size]
