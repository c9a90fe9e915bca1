"""Tests for trade routes, settlement and the global market."""
import pytest

from conftest import QUIET, ScriptedRandom, add_nation, make_world
from nationsim.trade import GlobalMarket, settle
from nationsim.types import NotificationType, Resource


# ─────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────

class TestRoutes:
    def test_route_is_mirrored(self, pair):
        world, a, b = pair
        route = world.create_trade_route(a.id, b.id, "food", 10)
        assert route.id == "tr_1"
        assert route.price == 1.0
        assert route.established == world.year
        mirror = b.route(route.id)
        assert mirror.owner == b.id and mirror.partner == a.id
        assert mirror.amount == -10
        assert world.trade.routes == [route]

    def test_existing_pair_is_resized(self, pair):
        world, a, b = pair
        first = world.create_trade_route(a.id, b.id, "food", 10)
        second = world.create_trade_route(a.id, b.id, "food", -4)
        assert second is first
        assert len(a.trade_routes) == 1
        assert first.amount == -4
        assert b.route(first.id).amount == 4

    def test_different_resources_are_separate_routes(self, pair):
        world, a, b = pair
        world.create_trade_route(a.id, b.id, "food", 10)
        world.create_trade_route(a.id, b.id, "minerals", 3)
        assert len(a.trade_routes) == 2
        assert len(world.trade.routes) == 2

    @pytest.mark.parametrize("resource,amount", [("food", 0), ("gold", 5), ("spice", 5)])
    def test_refused_routes(self, pair, resource, amount):
        world, a, b = pair
        assert world.create_trade_route(a.id, b.id, resource, amount) is None
        assert a.trade_routes == [] and b.trade_routes == []

    def test_no_route_with_self_or_stranger(self, pair):
        world, a, _ = pair
        assert world.create_trade_route(a.id, a.id, "food", 5) is None
        assert world.create_trade_route(a.id, "n_99", "food", 5) is None

    def test_cancel_removes_every_copy(self, pair):
        world, a, b = pair
        route = world.create_trade_route(a.id, b.id, "food", 10)
        assert world.cancel_trade_route(b.id, route.id)
        assert a.trade_routes == [] and b.trade_routes == []
        assert world.trade.routes == []

    def test_cancel_unknown_route_changes_nothing(self, pair):
        world, a, b = pair
        world.create_trade_route(a.id, b.id, "food", 10)
        assert not world.cancel_trade_route(a.id, "tr_77")
        assert len(a.trade_routes) == 1 and len(world.trade.routes) == 1


# ─────────────────────────────────────────────────────
# Settlement
# ─────────────────────────────────────────────────────

class TestSettle:
    def test_import_paid_in_gold(self, pair):
        world, a, b = pair
        world.create_trade_route(a.id, b.id, "minerals", 10)
        net = settle(world, a)
        assert net == -10
        assert a.resources.gold == 990
        assert a.resources.minerals == 110
        assert a.trade_deficit == 10 and a.trade_surplus == 0
        assert a.economic_growth == pytest.approx(0.01 - 10 * 0.0001)

    def test_export_earns_gold(self, pair):
        world, a, b = pair
        world.create_trade_route(a.id, b.id, "food", -10)
        net = settle(world, a)
        assert net == 10
        assert a.resources.gold == 1010
        assert a.resources.food == 90
        assert a.trade_surplus == 10
        assert a.economic_growth == pytest.approx(0.011)

    def test_unaffordable_import_is_cancelled(self, pair):
        world, a, b = pair
        world.trade.market.prices[Resource.FOOD] = 2.0
        world.create_trade_route(a.id, b.id, "food", 10)
        a.resources.gold = 15
        settle(world, a)
        assert a.resources.gold == 15
        assert a.resources.food == 100
        assert a.trade_routes == [] and b.trade_routes == []
        assert world.trade.routes == []
        note = world.notifications[-1]
        assert note.type == NotificationType.TRADE_CANCELED
        assert "insufficient gold" in note.message

    def test_export_without_stock_is_cancelled(self, pair):
        world, a, b = pair
        world.create_trade_route(a.id, b.id, "minerals", -10)
        a.resources.minerals = 4
        assert settle(world, a) == 0
        assert a.resources.minerals == 4
        assert a.trade_routes == []

    def test_no_routes_resets_balance(self, pair):
        world, a, _ = pair
        a.trade_surplus = 50
        assert settle(world, a) == 0
        assert a.trade_surplus == 0 and a.trade_deficit == 0
        assert a.economic_growth == 0.01


# ─────────────────────────────────────────────────────
# Market
# ─────────────────────────────────────────────────────

class TestMarket:
    def test_unknown_resource_price_defaults_to_one(self):
        assert GlobalMarket().price("gold") == 1.0

    def test_oversupplied_price_falls(self):
        world = make_world(0.5)
        n = add_nation(world, "A", population=1, cells=20)
        market = GlobalMarket()
        market.update([n], world.rng)
        # food: supply 10 vs demand 0.3, minerals: 6 vs 4
        assert market.prices[Resource.FOOD] == 0.95
        assert market.prices[Resource.MINERALS] == 0.95

    def test_price_respects_floor(self):
        world = make_world(0.99)
        n = add_nation(world, "A", population=1, cells=20)
        market = GlobalMarket()
        market.prices[Resource.FOOD] = 0.52
        market.update([n], world.rng)
        assert market.prices[Resource.FOOD] == 0.5

    def test_resource_without_supply_is_skipped(self):
        world = make_world(0.5)
        n = add_nation(world, "A", population=10)
        market = GlobalMarket()
        market.update([n], world.rng)
        assert market.prices[Resource.FOOD] == 1.0
        assert market.prices[Resource.MINERALS] == 1.0

    def test_technology_price_rises_under_demand(self):
        world = make_world(0.5, **QUIET)
        add_nation(world, "A", population=10)
        prices = [world.trade.market.price("technology")]
        for _ in range(5):
            world.tick()
            prices.append(world.trade.market.price("technology"))
        assert all(later > earlier for earlier, later in zip(prices, prices[1:]))
        assert max(prices) <= 20

    def test_tiny_draw_is_lost_to_rounding(self):
        world = make_world(0.004)
        n = add_nation(world, "A", population=10)
        market = GlobalMarket()
        market.update([n], world.rng)
        # 10.0 * 1.0004 rounds back to cents
        assert market.prices[Resource.TECHNOLOGY] == 10.0

    def test_unpriced_resource_in_save_is_refused(self):
        with pytest.raises(ValueError):
            GlobalMarket.from_dict({"food": 1.0, "gold": 1.0})

    def test_serialization(self):
        market = GlobalMarket()
        market.prices[Resource.TECHNOLOGY] = 12.5
        assert GlobalMarket.from_dict(market.to_dict()).prices == market.prices
