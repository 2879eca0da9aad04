"""End-to-end tournament flow through the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from gallera.services.matchmaking_runner import is_running, matchmaking_slot


def _create(client: TestClient, **overrides) -> int:
    payload = {"name": "Copa Test", "tournament_days": 1}
    payload.update(overrides)
    response = client.post("/api/tournaments", json=payload)
    assert response.status_code == 201
    return response.json()["id"]


def _add_team(client: TestClient, tid: int, name: str, city: str = "Cali", front_count: int = 1) -> str:
    response = client.post(
        f"/api/tournaments/{tid}/teams",
        json={"name": name, "city": city, "front_count": front_count},
    )
    assert response.status_code == 201
    return response.json()[0]["id"]


def _add_rooster(client: TestClient, tid: int, ring: str, cuerda_id: str, weight: int = 50, age: int = 14):
    response = client.post(
        f"/api/tournaments/{tid}/roosters",
        json={
            "ring_id": ring,
            "color": "Giro",
            "cuerda_id": cuerda_id,
            "weight": weight,
            "age_months": age,
            "marca": 2,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def seeded(client: TestClient):
    """Tournament with 3 teams and 4 roosters: two fights expected."""
    tid = _create(client, tournament_days=2)
    t1 = _add_team(client, tid, "Uno")
    t2 = _add_team(client, tid, "Dos")
    t3 = _add_team(client, tid, "Tres", city="Pereira")
    _add_rooster(client, tid, "R-1", t1, weight=50)
    _add_rooster(client, tid, "R-2", t2, weight=50)
    _add_rooster(client, tid, "R-3", t1, weight=60)
    _add_rooster(client, tid, "R-4", t3, weight=61)
    return tid, (t1, t2, t3)


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_and_list_tournaments(client: TestClient):
    tid = _create(client, name="Torneo Norte", tournament_days=3)

    response = client.get("/api/tournaments")
    assert response.status_code == 200
    data = response.json()
    assert [t["id"] for t in data] == [tid]
    assert data[0]["name"] == "Torneo Norte"
    assert data[0]["stage"] == "SETUP"
    assert data[0]["tournament_days"] == 3
    assert data[0]["current_day"] == 1


def test_create_rejects_blank_name(client: TestClient):
    response = client.post("/api/tournaments", json={"name": "  "})
    assert response.status_code == 422


def test_unknown_tournament_404(client: TestClient):
    assert client.get("/api/tournaments/999").status_code == 404
    assert client.get("/api/tournaments/999/teams").status_code == 404
    assert client.post("/api/tournaments/999/matchmaking").status_code == 404


def test_delete_tournament(client: TestClient):
    tid = _create(client)
    assert client.delete(f"/api/tournaments/{tid}").status_code == 204
    assert client.get(f"/api/tournaments/{tid}").status_code == 404


def test_full_two_day_flow(client: TestClient, seeded):
    tid, (t1, t2, t3) = seeded

    response = client.post(f"/api/tournaments/{tid}/matchmaking")
    assert response.status_code == 200
    result = response.json()
    assert result["stats"]["fights_count"] == 2
    assert result["stats"]["unpaired_count"] == 0
    fight_ids = [f["id"] for f in result["main_fights"]]

    response = client.post(f"/api/tournaments/{tid}/matchmaking/start")
    assert response.status_code == 200
    assert response.json()["total_fights"] == 2

    live = client.get(f"/api/tournaments/{tid}/live").json()
    assert live["stage"] == "LIVE_FIGHT"
    assert live["current_fight"]["id"] == fight_ids[0]

    response = client.post(
        f"/api/tournaments/{tid}/live/fights/{fight_ids[0]}/result",
        json={"winner": "A", "minutes": 2, "seconds": 5},
    )
    assert response.status_code == 200
    assert response.json()["pending_fights"] == 1

    response = client.post(
        f"/api/tournaments/{tid}/live/fights/{fight_ids[1]}/result",
        json={"winner": "DRAW", "minutes": 0, "seconds": 0},
    )
    assert response.status_code == 200

    # day 1 closed automatically, day 2 is open and empty
    summary = client.get(f"/api/tournaments/{tid}").json()
    assert summary["current_day"] == 2
    assert summary["viewing_day"] == 2
    assert summary["stage"] == "SETUP"
    assert client.get(f"/api/tournaments/{tid}/roosters").json() == []
    assert client.get(f"/api/tournaments/{tid}/results/days").json() == [1]

    day1 = client.get(f"/api/tournaments/{tid}/results/days/1").json()
    assert day1["is_read_only"] is True
    assert [f["duration"] for f in day1["fights"]] == [125, 480]
    assert day1["standings"][0]["team_id"] == t1
    assert day1["standings"][0]["points"] == 4
    assert day1["standings"][0]["rank"] == 1
    assert day1["fastest"][0]["duration"] == 125
    assert day1["fastest"][0]["weight_label"] == "3.02 Lb.Oz"

    # the closed day is history: its roster can be viewed but not changed
    response = client.post(f"/api/tournaments/{tid}/select-day", json={"day": 1})
    assert response.json()["is_read_only"] is True
    assert response.json()["stage"] == "RESULTS"
    assert len(client.get(f"/api/tournaments/{tid}/roosters").json()) == 4
    response = client.post(
        f"/api/tournaments/{tid}/roosters",
        json={"ring_id": "R-9", "color": "Giro", "cuerda_id": t1, "weight": 50, "age_months": 14, "marca": 1},
    )
    assert response.status_code == 409

    # day 2
    client.post(f"/api/tournaments/{tid}/select-day", json={"day": 2})
    _add_rooster(client, tid, "R-21", t2, weight=55)
    _add_rooster(client, tid, "R-22", t3, weight=55)
    fight = client.post(f"/api/tournaments/{tid}/matchmaking").json()["main_fights"][0]
    client.post(f"/api/tournaments/{tid}/matchmaking/start")
    client.post(
        f"/api/tournaments/{tid}/live/fights/{fight['id']}/result",
        json={"winner": "B", "minutes": 1, "seconds": 0},
    )

    summary = client.get(f"/api/tournaments/{tid}").json()
    assert summary["is_finished"] is True
    assert summary["stage"] == "TOURNAMENT_RESULTS"

    final = client.get(f"/api/tournaments/{tid}/results").json()
    assert final["days_played"] == [1, 2]
    assert final["fastest"]["duration"] == 60
    assert final["fastest"]["day"] == 2
    # Tres and Uno tie on 4 points; Tres spent less time fighting
    assert [row["team_name"] for row in final["standings"]] == ["Tres", "Uno", "Dos"]


def test_state_survives_reload(client: TestClient, seeded):
    tid, _ = seeded
    client.post(f"/api/tournaments/{tid}/matchmaking")

    state = client.get(f"/api/tournaments/{tid}/state").json()
    assert state["stage"] == "MATCHMAKING"
    assert len(state["teams"]) == 3
    assert len(state["days"]["1"]["roosters"]) == 4
    assert len(state["days"]["1"]["matchmaking"]["main_fights"]) == 2

    stored = client.get(f"/api/tournaments/{tid}/matchmaking", params={"day": 1}).json()
    assert stored["stats"]["fights_count"] == 2


def test_fight_result_validation(client: TestClient, seeded):
    tid, _ = seeded
    fights = client.post(f"/api/tournaments/{tid}/matchmaking").json()["main_fights"]
    client.post(f"/api/tournaments/{tid}/matchmaking/start")

    response = client.post(
        f"/api/tournaments/{tid}/live/fights/{fights[0]['id']}/result",
        json={"winner": "A", "minutes": 0, "seconds": 0},
    )
    assert response.status_code == 422

    response = client.post(
        f"/api/tournaments/{tid}/live/fights/unknown/result",
        json={"winner": "A", "minutes": 1, "seconds": 0},
    )
    assert response.status_code == 200
    assert response.json()["pending_fights"] == 2

    response = client.post(
        f"/api/tournaments/{tid}/live/fights/{fights[0]['id']}/result",
        json={"winner": "X", "minutes": 1, "seconds": 0},
    )
    assert response.status_code == 422


def test_invalid_transitions_are_409(client: TestClient, seeded):
    tid, _ = seeded
    assert client.post(f"/api/tournaments/{tid}/matchmaking/start").status_code == 409
    assert client.post(f"/api/tournaments/{tid}/live/finish-tournament").status_code == 409
    assert client.post(f"/api/tournaments/{tid}/resume-live").status_code == 409
    assert client.post(f"/api/tournaments/{tid}/select-day", json={"day": 5}).status_code == 409
    assert client.post(f"/api/tournaments/{tid}/select-day", json={"day": 2}).status_code == 409


def test_finish_tournament_early(client: TestClient, seeded):
    tid, _ = seeded
    fights = client.post(f"/api/tournaments/{tid}/matchmaking").json()["main_fights"]
    client.post(f"/api/tournaments/{tid}/matchmaking/start")
    client.post(
        f"/api/tournaments/{tid}/live/fights/{fights[0]['id']}/result",
        json={"winner": "B", "minutes": 3, "seconds": 0},
    )

    response = client.post(f"/api/tournaments/{tid}/live/finish-tournament")
    assert response.status_code == 200
    assert response.json()["is_finished"] is True

    late = client.post(
        f"/api/tournaments/{tid}/live/fights/{fights[1]['id']}/result",
        json={"winner": "A", "minutes": 1, "seconds": 0},
    )
    assert late.status_code == 409
    assert client.get(f"/api/tournaments/{tid}").json()["stage"] == "TOURNAMENT_RESULTS"

    final = client.get(f"/api/tournaments/{tid}/results").json()
    assert final["days_played"] == [1]
    assert final["fastest"]["duration"] == 180


def test_manual_fight_endpoint(client: TestClient):
    tid = _create(client)
    t1 = _add_team(client, tid, "Uno")
    t2 = _add_team(client, tid, "Dos")
    a = _add_rooster(client, tid, "R-1", t1, weight=45)
    b = _add_rooster(client, tid, "R-2", t2, weight=80)

    result = client.post(f"/api/tournaments/{tid}/matchmaking").json()
    assert result["main_fights"] == []

    response = client.post(
        f"/api/tournaments/{tid}/matchmaking/manual-fights",
        json={"rooster_a_id": a, "rooster_b_id": b},
    )
    assert response.status_code == 200
    assert response.json()["main_fights"][0]["id"] == f"pelea-manual-{a}-{b}"

    response = client.post(
        f"/api/tournaments/{tid}/matchmaking/manual-fights",
        json={"rooster_a_id": a, "rooster_b_id": b},
    )
    assert response.status_code == 422


def test_matchmaking_busy_returns_409(client: TestClient, seeded):
    tid, _ = seeded
    with matchmaking_slot(tid, delay_ms=0):
        assert is_running(tid)
        response = client.post(f"/api/tournaments/{tid}/matchmaking")
        assert response.status_code == 409
    assert not is_running(tid)
    assert client.post(f"/api/tournaments/{tid}/matchmaking").status_code == 200


def test_new_tournament_and_reset(client: TestClient, seeded):
    tid, _ = seeded
    client.post(f"/api/tournaments/{tid}/matchmaking")

    preview = client.get(f"/api/tournaments/{tid}/new-tournament/preview").json()
    assert preview["teams_kept"] == 3
    assert preview["roosters_kept"] == 4
    assert preview["days_with_matchmaking"] == 1

    response = client.post(f"/api/tournaments/{tid}/new-tournament")
    assert response.status_code == 200
    assert response.json()["stage"] == "SETUP"
    assert len(client.get(f"/api/tournaments/{tid}/roosters").json()) == 4
    assert client.get(f"/api/tournaments/{tid}/matchmaking").status_code == 404

    assert client.get(f"/api/tournaments/{tid}/reset/preview").json()["teams_removed"] == 3
    client.post(f"/api/tournaments/{tid}/reset")
    assert client.get(f"/api/tournaments/{tid}/teams").json() == []


def test_demo_data(client: TestClient):
    tid = _create(client)
    response = client.post(f"/api/tournaments/{tid}/demo-data", json={"seed": 11})
    assert response.status_code == 200

    assert len(client.get(f"/api/tournaments/{tid}/teams").json()) == 13
    assert len(client.get(f"/api/tournaments/{tid}/roosters").json()) == 100
    result = client.post(f"/api/tournaments/{tid}/matchmaking").json()
    assert result["stats"]["eligible_roosters_count"] == 100
