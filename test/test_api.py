"""
HTTP adapter: happy path through a turn and error mapping.
"""

import pytest
from fastapi.testclient import TestClient

import balcony_wars.api.main as api_main
from balcony_wars.api.main import app, matches


@pytest.fixture
def client():
    matches.clear()
    with TestClient(app) as c:
        yield c
    matches.clear()


def _create(client, seed=17):
    response = client.post("/matches", json={"pigeon_class": "guttersnipe", "human_class": "uncle", "seed": seed})
    assert response.status_code == 200
    return response.json()["match_id"]


def test_classes_and_rulesets(client):
    classes = client.get("/classes").json()["classes"]
    assert set(classes) == {"guttersnipe", "chonk", "uncle", "student"}
    assert classes["chonk"]["cost_modifiers"] == {"nest": {"straw": -1}}
    rulesets = client.get("/rulesets").json()
    assert rulesets["default"] == "default"
    assert any(r["id"] == "default" for r in rulesets["rulesets"])


def test_unknown_class_is_400(client):
    response = client.post("/matches", json={"pigeon_class": "eagle", "human_class": "uncle"})
    assert response.status_code == 400


def test_unknown_match_is_404(client):
    assert client.get("/matches/nope").status_code == 404
    assert client.post("/matches/nope/roll").status_code == 404


def test_play_one_turn(client):
    match_id = _create(client)
    state = client.get(f"/matches/{match_id}").json()["state"]
    assert state["phase"] == "initiative"

    while state["phase"] == "initiative":
        state = client.post(f"/matches/{match_id}/initiative").json()["state"]
    assert state["phase"] == "roll"

    body = client.post(f"/matches/{match_id}/roll").json()
    assert body["events"][0]["type"] == "dice_rolled"
    if body["state"]["phase"] == "move":
        reachable = client.get(f"/matches/{match_id}/reachable").json()
        target = reachable["reachable"][0]
        assert target in reachable["previews"]
        body = client.post(f"/matches/{match_id}/move", json={"node_id": target}).json()
        assert body["state"]["phase"] == "action"

        available = client.get(f"/matches/{match_id}/available-actions").json()
        assert "end_turn" in available["action_types"]

        body = client.post(f"/matches/{match_id}/end-turn").json()
    assert body["state"]["phase"] == "roll"
    assert body["summary"]["active_faction"] != state["players"][state["active_player_index"]]["faction"]

    log = client.get(f"/matches/{match_id}/log").json()
    assert log["total"] == len(log["log"]) > 0


def test_rule_violation_is_400(client):
    match_id = _create(client)
    response = client.post(f"/matches/{match_id}/end-turn")
    assert response.status_code == 400
    assert response.json()["code"] == "illegal_transition"

    response = client.post(f"/matches/{match_id}/action", json={"kind": "gather"})
    assert response.status_code == 400

    log = client.get(f"/matches/{match_id}/log").json()["log"]
    assert [entry["type"] for entry in log] == ["action_rejected", "action_rejected"]


def test_delete_match(client):
    match_id = _create(client)
    assert client.delete(f"/matches/{match_id}").status_code == 200
    assert client.get(f"/matches/{match_id}").status_code == 404


def test_finished_matches_evicted_first(client, monkeypatch):
    monkeypatch.setattr(api_main, "MAX_MATCHES", 3)
    first, finished, third = _create(client, 1), _create(client, 2), _create(client, 3)
    matches[finished].state.phase = "game_over"

    fourth = _create(client, 4)
    assert set(matches) == {first, third, fourth}
    assert client.get(f"/matches/{finished}").status_code == 404

    fifth = _create(client, 5)
    assert list(matches) == [third, fourth, fifth]
    assert client.get(f"/matches/{first}").status_code == 404
    assert client.get("/").json()["matches"] == 3
