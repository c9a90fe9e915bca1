"""Tests for the save/load codec."""
import json

import pytest

from conftest import QUIET, add_nation
from nationsim.config import SimConfig
from nationsim.persistence import CorruptSaveError, deserialize, serialize
from nationsim.types import ActionType, Resource
from nationsim.world import World


@pytest.fixture
def busy_world():
    world = World.create(SimConfig(map_width=100, map_height=80, **QUIET), seed=5)
    a = add_nation(world, "Avalon", cells=3)
    b = add_nation(world, "Borealis", cells=2)
    c = add_nation(world, "Cyrene", cells=1)
    world.create_trade_route(a.id, b.id, "minerals", 4)
    alliance = world.propose(a.id, c.id, ActionType.ALLIANCE)
    world.accept_action(c.id, alliance.id)
    world.propose(b.id, c.id, ActionType.TRADE_AGREEMENT, {"resource": "food", "amount": 3})
    world.declare_war(b.id, c.id)
    world.conduct_military_action(b.id, c.id, "BATTLE", 0.5)
    world.trade.market.prices[Resource.TECHNOLOGY] = 12.5
    world.tick()
    return world


def _payload(world) -> dict:
    return json.loads(serialize(world))


class TestRoundTrip:
    def test_world_survives_round_trip(self, busy_world):
        restored = deserialize(serialize(busy_world))
        assert restored.year == busy_world.year
        assert list(restored.nations) == list(busy_world.nations)
        for nid, nation in busy_world.nations.items():
            assert restored.nations[nid].to_dict() == nation.to_dict()
        assert restored.warfare.to_dict() == busy_world.warfare.to_dict()
        assert restored.trade.to_dict() == busy_world.trade.to_dict()
        assert restored.diplomacy.to_dict() == busy_world.diplomacy.to_dict()
        assert [n.to_dict() for n in restored.notifications] == \
            [n.to_dict() for n in busy_world.notifications]
        assert restored.terrain == busy_world.terrain

    def test_treaties_and_market(self, busy_world):
        restored = deserialize(serialize(busy_world))
        assert restored.nations["n_1"].has_alliance_with("n_3")
        assert restored.trade.market.to_dict() == busy_world.trade.market.to_dict()

    def test_global_routes_share_owner_records(self, busy_world):
        restored = deserialize(serialize(busy_world))
        route = restored.trade.routes[0]
        assert route is restored.nations[route.owner].route(route.id)

    def test_config_comes_from_save(self, busy_world):
        restored = deserialize(serialize(busy_world))
        assert restored.config.map_width == 100
        assert restored.config.war_declaration_chance == 0.0

    def test_explicit_config_wins(self, busy_world):
        restored = deserialize(serialize(busy_world), config=SimConfig(start_year=1))
        assert restored.config.map_width == 2000
        assert restored.year == busy_world.year

    def test_new_ids_do_not_collide(self, busy_world):
        payload = _payload(busy_world)
        del payload["counters"]
        restored = deserialize(json.dumps(payload).encode())
        assert restored.next_id("n") == "n_4"
        assert restored.next_id("tr") == "tr_2"
        assert restored.next_id("war") == "war_2"
        assert restored.next_id("da") == "da_3"

    def test_restored_world_keeps_ticking(self, busy_world):
        restored = deserialize(serialize(busy_world))
        year = restored.year
        restored.tick()
        assert restored.year == year + 1


class TestLoaderRepairs:
    def test_at_war_reconciled_with_war_list(self, busy_world):
        payload = _payload(busy_world)
        payload["nations"][0]["at_war"] = True
        payload["nations"][0]["war_with"] = []
        restored = deserialize(json.dumps(payload))
        assert restored.nations["n_1"].at_war is False

    def test_orphaned_route_is_dropped(self, busy_world, caplog):
        payload = _payload(busy_world)
        ghost = dict(payload["trade"]["trade_routes"][0], id="tr_50", owner="n_77")
        payload["trade"]["trade_routes"].append(ghost)
        restored = deserialize(json.dumps(payload))
        assert [r.id for r in restored.trade.routes] == ["tr_1"]
        assert "tr_50" in caplog.text


class TestCorruptSaves:
    @pytest.mark.parametrize("data", [b"not json", b"\x80\x81", b"[1, 2]", b'"text"'])
    def test_undecodable(self, data):
        with pytest.raises(CorruptSaveError):
            deserialize(data)

    @pytest.mark.parametrize("key", ["year", "nations", "diplomacy", "warfare", "trade", "terrain"])
    def test_missing_key(self, busy_world, key):
        payload = _payload(busy_world)
        del payload[key]
        with pytest.raises(CorruptSaveError, match=key):
            deserialize(json.dumps(payload))

    def test_malformed_nation(self, busy_world):
        payload = _payload(busy_world)
        payload["nations"][0] = {"id": "n_1"}
        with pytest.raises(CorruptSaveError):
            deserialize(json.dumps(payload))

    def test_malformed_terrain(self, busy_world):
        payload = _payload(busy_world)
        payload["terrain"] = "WWPP"
        with pytest.raises(CorruptSaveError):
            deserialize(json.dumps(payload))

    def test_market_price_for_untradable_resource(self, busy_world):
        payload = _payload(busy_world)
        payload["trade"]["global_market"]["gold"] = 1.0
        with pytest.raises(CorruptSaveError):
            deserialize(json.dumps(payload))

    def test_partial_market_still_ticks(self, busy_world):
        payload = _payload(busy_world)
        payload["trade"]["global_market"] = {"food": 2.0}
        restored = deserialize(json.dumps(payload))
        assert restored.trade.market.price("technology") == 10.0
        restored.tick()

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            deserialize(b"{}")
