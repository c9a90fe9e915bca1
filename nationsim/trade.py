"""Bilateral trade routes, settlement, and the global market."""
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from .types import (
    Resource, TradeRoute, NotificationType, TRADABLE_RESOURCES,
    INITIAL_MARKET_PRICES, MARKET_PRICE_RANGE, MARKET_FACTORS,
)

if TYPE_CHECKING:
    from .nation import Nation
    from .world import World

logger = logging.getLogger(__name__)


# ── Global market ────────────────────────────────────────────────────────────

def _market_measure(nation: Nation, key: str) -> float:
    if key == "population":
        return nation.population
    if key == "territories":
        return len(nation.territories)
    return nation.resources.technology


@dataclass
class GlobalMarket:
    prices: dict[Resource, float] = field(default_factory=lambda: dict(INITIAL_MARKET_PRICES))

    def price(self, resource: Resource | str) -> float:
        return self.prices.get(Resource(resource), 1.0)

    def supply_and_demand(self, nations: Iterable[Nation]) -> dict[Resource, tuple[float, float]]:
        totals = {res: [0.0, 0.0] for res in MARKET_FACTORS}
        for nation in nations:
            for res in totals:
                demand_key, demand_factor, supply_key, supply_factor = MARKET_FACTORS[res]
                totals[res][0] += _market_measure(nation, supply_key) * supply_factor
                totals[res][1] += _market_measure(nation, demand_key) * demand_factor
        return {res: (s, d) for res, (s, d) in totals.items()}

    def update(self, nations: Iterable[Nation], rng: random.Random):
        for res, (supply, demand) in self.supply_and_demand(nations).items():
            if not supply or not demand:
                continue
            ratio = supply / demand
            price = self.price(res)
            if ratio < 0.8:
                price *= 1 + rng.random() * 0.1
            elif ratio > 1.2:
                price *= 1 - rng.random() * 0.1
            else:
                price *= 0.95 + rng.random() * 0.1
            lo, hi = MARKET_PRICE_RANGE[res]
            # Prices are kept to cents, so a move under half a cent is lost
            self.prices[res] = round(max(lo, min(hi, price)), 2)

    def to_dict(self) -> dict[str, float]:
        return {res.value: p for res, p in self.prices.items()}

    @classmethod
    def from_dict(cls, data: dict) -> GlobalMarket:
        market = cls()
        for key, value in data.items():
            res = Resource(key)
            if res not in TRADABLE_RESOURCES:
                raise ValueError(f"{res.value} has no market price")
            market.prices[res] = float(value)
        return market


# ── Route ledger ─────────────────────────────────────────────────────────────

@dataclass
class TradeLedger:
    routes: list[TradeRoute] = field(default_factory=list)
    market: GlobalMarket = field(default_factory=GlobalMarket)

    def find(self, route_id: str) -> TradeRoute | None:
        for r in self.routes:
            if r.id == route_id:
                return r
        return None

    def discard(self, route_id: str) -> bool:
        for i, r in enumerate(self.routes):
            if r.id == route_id:
                del self.routes[i]
                return True
        return False

    def to_dict(self) -> dict:
        return {
            "trade_routes": [r.to_dict() for r in self.routes],
            "global_market": self.market.to_dict(),
        }


def _discard_from(nation: Nation, route_id: str) -> TradeRoute | None:
    for i, r in enumerate(nation.trade_routes):
        if r.id == route_id:
            return nation.trade_routes.pop(i)
    return None


# ── Operations ───────────────────────────────────────────────────────────────

def create_route(world: World, nation: Nation, partner_id: str,
                 resource: Resource | str, amount: float) -> TradeRoute | None:
    """Open (or resize) a route; ``amount`` > 0 means ``nation`` imports."""
    partner = world.get_nation(partner_id)
    if partner is None or partner.id == nation.id or not amount:
        return None
    try:
        resource = Resource(resource)
    except ValueError:
        return None
    if resource not in TRADABLE_RESOURCES:
        return None

    for existing in nation.trade_routes:
        if existing.partner == partner.id and existing.resource == resource:
            existing.amount = amount
            mirror = partner.route(existing.id)
            if mirror is not None:
                mirror.amount = -amount
            logger.debug("Resized route %s to %s %s", existing.id, amount, resource.value)
            return existing

    route_id = world.next_id("tr")
    price = world.trade.market.price(resource)
    route = TradeRoute(id=route_id, owner=nation.id, partner=partner.id,
                       resource=resource, amount=amount, price=price,
                       established=world.year)
    nation.trade_routes.append(route)
    partner.trade_routes.append(TradeRoute(
        id=route_id, owner=partner.id, partner=nation.id,
        resource=resource, amount=-amount, price=price,
        established=world.year,
    ))
    world.trade.routes.append(route)
    logger.debug("Route %s: %s %s %s from %s at %.2f", route_id, nation.name,
                 "imports" if amount > 0 else "exports", abs(amount), partner.name, price)
    return route


def cancel_route(world: World, nation: Nation, route_id: str) -> bool:
    route = _discard_from(nation, route_id)
    if route is None:
        return False
    partner = world.get_nation(route.partner)
    if partner is not None:
        _discard_from(partner, route_id)
    world.trade.discard(route_id)
    logger.debug("Route %s cancelled by %s", route_id, nation.name)
    return True


def settle(world: World, nation: Nation) -> float:
    """Pay for imports and collect for exports. Returns the net gold flow."""
    net = 0.0
    for route in list(nation.trade_routes):
        qty = abs(route.amount)
        value = qty * route.price
        if route.is_import:
            if nation.resources.can_afford("gold", value):
                nation.resources.gold -= value
                nation.resources.add(route.resource, qty)
                net -= value
                continue
            reason = "insufficient gold"
        else:
            if nation.resources.can_afford(route.resource, qty):
                nation.resources.gold += value
                nation.resources.add(route.resource, -qty)
                net += value
                continue
            reason = f"insufficient {route.resource.value}"

        partner = world.get_nation(route.partner)
        cancel_route(world, nation, route.id)
        logger.info("%s dropped route %s (%s)", nation.name, route.id, reason)
        world.notify(
            NotificationType.TRADE_CANCELED,
            f"{nation.name} cancelled its {route.resource.value} trade with "
            f"{partner.name if partner else 'an unknown nation'}: {reason}",
        )

    if net > 0:
        nation.trade_surplus, nation.trade_deficit = net, 0.0
    else:
        nation.trade_surplus, nation.trade_deficit = 0.0, abs(net)
    nation.economic_growth = 0.01 + nation.trade_surplus * 0.0001 - nation.trade_deficit * 0.0001
    return net
