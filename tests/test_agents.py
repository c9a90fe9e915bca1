"""Tests for the scripted agents driving the server."""
import random

import pytest
from fastapi.testclient import TestClient

import server.app as server_app
from agents.random_agent import play_turn
from agents.run_match import found_nations, run_match
from server.app import WORLDS, app


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(server_app, "SAVE_DIR", tmp_path)
    WORLDS.clear()
    yield TestClient(app)
    WORLDS.clear()


@pytest.fixture
def created(client):
    resp = client.post("/worlds", json={"seed": 3})
    return resp.json()


class TestFoundNations:
    def test_nations_get_land(self, client, created):
        ids = found_nations(client, created["world_id"], 3, created["grid"],
                            created["grid_size"], random.Random(1), land=4)
        assert len(ids) == 3
        state = client.get(f"/worlds/{created['world_id']}/state").json()
        assert all(n["territories"] > 0 for n in state["nations"])


class TestPlayTurn:
    def test_turn_answers_proposals(self, client, created):
        world_id = created["world_id"]
        a, b = found_nations(client, world_id, 2, created["grid"], created["grid_size"],
                             random.Random(1), land=1)
        client.post(f"/worlds/{world_id}/diplomacy/proposals",
                    json={"sender": a, "recipient": b, "type": "ALLIANCE"})
        turn = play_turn(client, world_id, b, random.Random(5))
        assert turn["nation"] == b
        answered = [x for x in turn["actions"] if x["kind"] in ("accept", "reject")]
        assert len(answered) == 1 and answered[0]["status"] == 200

    def test_unknown_nation(self, client, created):
        turn = play_turn(client, created["world_id"], "n_42", random.Random(1))
        assert "error" in turn

    def test_unknown_world(self, client):
        assert "error" in play_turn(client, "nope", "n_1", random.Random(1))


class TestRunMatch:
    def test_short_match(self, client):
        summary = run_match(num_nations=3, seed=7, years=3, client=client, save=False)
        assert len(summary["nations"]) == 3
        assert [y["year"] for y in summary["years"]] == [2024, 2025, 2026]
        assert len(summary["rankings"]) == 3

    def test_match_saves_slot(self, client, tmp_path, monkeypatch):
        monkeypatch.setattr("agents.run_match.REPLAY_DIR", tmp_path / "replays")
        summary = run_match(num_nations=2, seed=1, years=1, client=client)
        assert (tmp_path / f"{summary['slot']['slot_id']}.json").exists()
        assert (tmp_path / "replays" / f"{summary['world_id']}.json").exists()
