from __future__ import annotations

from typing import Any, Dict, Generator, List

import pytest  # type: ignore

from leaderboard_core import CompetitionNotFoundError, DataStore
from leaderboard_core import loader as loader_module

ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_SERVICE_KEY",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SCHEMA",
    "SUPABASE_SCORES_TABLE",
)

TABLES: Dict[str, List[Dict[str, Any]]] = {
    "programming_tracks": [{"id": "trk_1"}],
    "track_workouts": [
        {"id": "tw_1", "workout_id": "wod_1", "track_order": 1, "points_multiplier": None},
        {"id": "tw_2", "workout_id": "wod_2", "track_order": 2, "points_multiplier": 50},
    ],
    "workouts": [
        {"id": "wod_1", "name": "Fran", "scheme": "time"},
        {"id": "wod_2", "name": "Grace", "scheme": "time"},
    ],
    "competition_registrations": [
        {
            "id": "reg_1",
            "user_id": "usr_1",
            "division_id": "div_rx",
            "metadata": '{"affiliateName": "Iron Works"}',
            "status": "ACTIVE",
        },
        {
            "id": "reg_2",
            "user_id": "usr_2",
            "division_id": "div_rx",
            "metadata": {"affiliates": {"aff_9": "Iron Works"}},
            "status": "ACTIVE",
        },
    ],
    "users": [
        {"id": "usr_1", "first_name": "Alice", "last_name": "Adams"},
        {"id": "usr_2", "first_name": "Bea", "last_name": "Brown"},
    ],
    "scaling_levels": [{"id": "div_rx", "label": "RX"}],
    "scores": [
        {"user_id": "usr_1", "competition_event_id": "tw_1", "score_value": 300, "status": "scored", "sort_key": None},
        {"user_id": "usr_2", "competition_event_id": "tw_1", "score_value": 280, "status": "scored", "sort_key": None},
        {"user_id": "usr_1", "competition_event_id": "tw_2", "score_value": 120, "status": "scored", "sort_key": None},
        {"user_id": "usr_2", "competition_event_id": "tw_2", "score_value": None, "status": "dnf", "sort_key": None},
    ],
}


class _RecordingClient:
    calls: List[Dict[str, Any]] = []

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        pass

    def __enter__(self) -> "_RecordingClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - nothing to clean up
        return None

    def get(self, endpoint: str, params: Dict[str, Any], headers: Dict[str, str]):
        _RecordingClient.calls.append({"endpoint": endpoint, "params": params, "headers": headers})
        table = endpoint.rsplit("/", 1)[-1]
        if table == "competitions":
            if "slug" in params:
                rows = [{"id": "comp_1"}] if params["slug"] == "eq.spring-throwdown" else []
            else:
                rows = [{"id": "comp_1", "name": "Spring Throwdown"}] if params["id"] == "eq.comp_1" else []
        else:
            rows = TABLES[table]
        request = loader_module.httpx.Request("GET", endpoint)
        return loader_module.httpx.Response(200, request=request, json=rows)


def _params_for(table: str) -> List[Dict[str, Any]]:
    return [call["params"] for call in _RecordingClient.calls if call["endpoint"].endswith(f"/rest/v1/{table}")]


@pytest.fixture(autouse=True)
def reset_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "test-key")
    _RecordingClient.calls = []
    yield
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_fetch_leaderboard_from_supabase(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader_module.httpx, "Client", _RecordingClient)

    store = DataStore()
    result = store.fetch_leaderboard("spring-throwdown").to_dict()

    assert result["competition"] == {"id": "comp_1", "name": "Spring Throwdown"}
    division = result["divisions"][0]
    assert (division["id"], division["name"]) == ("div_rx", "RX")

    bea, alice = division["athletes"]
    assert (bea["name"], bea["rank"], bea["totalPoints"]) == ("Bea Brown", 1, 148)
    assert [e["points"] for e in bea["events"]] == [100, 48]
    assert [e["rank"] for e in bea["events"]] == [1, 2]
    assert (alice["name"], alice["rank"], alice["totalPoints"]) == ("Alice Adams", 2, 145)

    gym = result["gyms"][0]
    assert (gym["name"], gym["rank"], gym["athleteCount"], gym["totalScore"]) == ("Iron Works", 1, 2, 293)

    assert _params_for("competitions")[0]["slug"] == "eq.spring-throwdown"
    track_params = _params_for("track_workouts")[0]
    assert track_params["event_status"] == "eq.published"
    assert track_params["track_id"] == "eq.trk_1"
    assert track_params["order"] == "track_order.asc,id.asc"
    registration_params = _params_for("competition_registrations")[0]
    assert registration_params["status"] == "neq.REMOVED"
    assert registration_params["event_id"] == "eq.comp_1"
    score_params = _params_for("scores")[0]
    assert score_params["competition_event_id"] == 'in.("tw_1","tw_2")'
    assert score_params["user_id"] == 'in.("usr_1","usr_2")'

    headers = _RecordingClient.calls[0]["headers"]
    assert headers["apikey"] == "test-key"
    assert headers["Authorization"] == "Bearer test-key"
    assert "Accept-Profile" not in headers


def test_competition_ids_skip_slug_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader_module.httpx, "Client", _RecordingClient)

    assert DataStore().resolve_competition_id("comp_1") == "comp_1"
    assert _RecordingClient.calls == []


def test_unknown_slug_raises_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader_module.httpx, "Client", _RecordingClient)

    with pytest.raises(CompetitionNotFoundError, match="Competition not found"):
        DataStore().fetch_leaderboard("no-such-event")


def test_unknown_competition_id_raises_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader_module.httpx, "Client", _RecordingClient)

    with pytest.raises(CompetitionNotFoundError):
        DataStore().fetch_leaderboard("comp_missing")


def test_custom_schema_sets_profile_header(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_SCHEMA", "games")
    monkeypatch.setattr(loader_module.httpx, "Client", _RecordingClient)

    DataStore().fetch_competition("comp_1")

    assert _RecordingClient.calls[0]["headers"]["Accept-Profile"] == "games"


def test_table_names_follow_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_SCORES_TABLE", "scores")
    store = DataStore()
    assert store.scores_table == "scores"
    assert store.registrations_table == "competition_registrations"
    assert store.supabase_configured is True


def test_supabase_status_error_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    class _FailingClient(_RecordingClient):
        def get(self, endpoint: str, params: Dict[str, Any], headers: Dict[str, str]):
            request = loader_module.httpx.Request("GET", endpoint)
            return loader_module.httpx.Response(
                400,
                request=request,
                json={"message": "column competitions.slug does not exist"},
            )

    monkeypatch.setattr(loader_module.httpx, "Client", _FailingClient)

    with pytest.raises(RuntimeError, match="column competitions.slug does not exist"):
        DataStore().fetch_leaderboard("spring-throwdown")


def test_supabase_transport_error_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    class _OfflineClient(_RecordingClient):
        def get(self, endpoint: str, params: Dict[str, Any], headers: Dict[str, str]):
            raise loader_module.httpx.ConnectError("connection refused")

    monkeypatch.setattr(loader_module.httpx, "Client", _OfflineClient)

    with pytest.raises(RuntimeError, match="Supabase query on competitions failed"):
        DataStore().fetch_leaderboard("spring-throwdown")


def test_queries_request_a_fixed_row_order(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader_module.httpx, "Client", _RecordingClient)

    DataStore().fetch_leaderboard("comp_1")

    assert _params_for("track_workouts")[0]["order"] == "track_order.asc,id.asc"
    assert _params_for("competition_registrations")[0]["order"] == "id.asc"
    assert _params_for("scores")[0]["order"] == "user_id.asc,competition_event_id.asc,id.asc"
