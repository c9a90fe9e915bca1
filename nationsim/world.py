"""World state and the yearly tick for Nationsim."""
from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, Optional

from .config import SimConfig
from .diplomacy import DiplomacyLedger
from .events import run_disasters, run_random_events
from .map_gen import generate_terrain, terrain_counts
from .nation import Nation
from .trade import TradeLedger
from .warfare import WarLedger
from .types import (
    ActionType, DiplomaticAction, MilitaryActionType, Notification,
    NotificationType, TickResult, TradeRoute, War, Battle, TRADABLE_RESOURCES,
)
from . import diplomacy, trade, warfare

logger = logging.getLogger(__name__)

NATION_COLORS = [
    "#e74c3c", "#3498db", "#2ecc71", "#f39c12", "#9b59b6",
    "#1abc9c", "#e67e22", "#34495e", "#d35400", "#16a085",
]


class TickInProgressError(RuntimeError):
    """Raised when a tick is requested while another is still running."""


@dataclass
class World:
    config: SimConfig = field(default_factory=SimConfig)
    rng: random.Random = field(default_factory=random.Random)
    year: Optional[int] = None
    nations: dict[str, Nation] = field(default_factory=dict)
    diplomacy: DiplomacyLedger = field(default_factory=DiplomacyLedger)
    warfare: WarLedger = field(default_factory=WarLedger)
    trade: TradeLedger = field(default_factory=TradeLedger)
    terrain: list[str] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
    counters: dict[str, int] = field(default_factory=dict)
    _ticking: bool = field(default=False, repr=False, compare=False)
    _tick_log: Optional[list[Notification]] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.year is None:
            self.year = self.config.start_year

    @classmethod
    def create(cls, config: SimConfig | None = None, seed: int | None = None) -> World:
        config = config or SimConfig()
        rng = random.Random(seed)
        world = cls(config=config, rng=rng)
        world.terrain = generate_terrain(config.grid_cols, config.grid_rows, rng)
        return world

    # ── Bookkeeping ──────────────────────────────────────────────────────

    def next_id(self, prefix: str) -> str:
        self.counters[prefix] = self.counters.get(prefix, 0) + 1
        return f"{prefix}_{self.counters[prefix]}"

    def notify(self, kind: NotificationType, message: str) -> Notification:
        note = Notification(type=kind, message=message, year=self.year)
        self.notifications.append(note)
        if self._tick_log is not None:
            self._tick_log.append(note)
        logger.info("[%d] %s: %s", self.year, kind.value, message)
        return note

    def _trim_notifications(self):
        limit = self.config.notification_limit
        if len(self.notifications) > limit:
            del self.notifications[:len(self.notifications) - limit]

    # ── Queries ──────────────────────────────────────────────────────────

    def get_nation(self, nation_id: str) -> Nation | None:
        return self.nations.get(nation_id)

    def owner_of(self, col: int, row: int) -> Nation | None:
        for nation in self.nations.values():
            if (col, row) in nation.territories:
                return nation
        return None

    # ── Setup ────────────────────────────────────────────────────────────

    def create_nation(self, name: str, government: str, economy: str,
                      population: float, military_strength: int,
                      color: str | None = None) -> Nation:
        if population <= 0:
            raise ValueError("population must be positive")
        if not 1 <= int(military_strength) <= 10:
            raise ValueError("military_strength must be between 1 and 10")
        nation = Nation(
            id=self.next_id("n"),
            name=name,
            color=color or NATION_COLORS[len(self.nations) % len(NATION_COLORS)],
            government=government,
            economy=economy,
            population=population,
            military_strength=military_strength,
        )
        self.nations[nation.id] = nation
        logger.info("Founded %s (%s, %s, %.1fM)", nation.name, nation.government.value,
                    nation.economy.value, nation.population)
        return nation

    def claim_territory(self, nation_id: str, x: float, y: float) -> bool:
        """Add the grid cell under world coordinates (x, y) to a nation."""
        nation = self.get_nation(nation_id)
        if nation is None:
            return False
        col = math.floor(x / self.config.grid_size)
        row = math.floor(y / self.config.grid_size)
        if not (0 <= col < self.config.grid_cols and 0 <= row < self.config.grid_rows):
            return False
        if self.owner_of(col, row) is not None:
            return False
        return nation.add_territory(col, row)

    # ── Delegated operations ─────────────────────────────────────────────

    def propose(self, sender_id: str, recipient_id: str, action_type: ActionType | str,
                terms: dict[str, Any] | None = None,
                announce: bool = False) -> DiplomaticAction | None:
        sender = self.get_nation(sender_id)
        if sender is None:
            return None
        action = diplomacy.propose(self, sender, recipient_id, action_type, terms)
        if action is not None and announce:
            recipient = self.nations[action.recipient]
            label = action.type.value.replace("_", " ").lower()
            self.notify(NotificationType.DIPLOMATIC_PROPOSAL,
                        f"{sender.name} proposed a {label} to {recipient.name}.")
        return action

    def accept_action(self, nation_id: str, action_id: str) -> bool:
        nation = self.get_nation(nation_id)
        return nation is not None and diplomacy.accept(self, nation, action_id)

    def reject_action(self, nation_id: str, action_id: str) -> bool:
        nation = self.get_nation(nation_id)
        return nation is not None and diplomacy.reject(self, nation, action_id)

    def create_trade_route(self, nation_id: str, partner_id: str, resource: str,
                           amount: float) -> TradeRoute | None:
        nation = self.get_nation(nation_id)
        if nation is None:
            return None
        return trade.create_route(self, nation, partner_id, resource, amount)

    def cancel_trade_route(self, nation_id: str, route_id: str) -> bool:
        nation = self.get_nation(nation_id)
        return nation is not None and trade.cancel_route(self, nation, route_id)

    def declare_war(self, attacker_id: str, defender_id: str) -> War | None:
        attacker = self.get_nation(attacker_id)
        if attacker is None:
            return None
        return warfare.declare_war(self, attacker, defender_id)

    def end_war(self, nation_id: str, other_id: str) -> bool:
        nation = self.get_nation(nation_id)
        return nation is not None and warfare.end_war(self, nation, other_id)

    def conduct_military_action(self, attacker_id: str, defender_id: str,
                                action_type: MilitaryActionType | str,
                                commitment: float) -> Battle | None:
        attacker = self.get_nation(attacker_id)
        if attacker is None:
            return None
        return warfare.conduct_military_action(self, attacker, defender_id, action_type, commitment)

    # ── Tick ─────────────────────────────────────────────────────────────

    def simulate_year(self) -> TickResult:
        if self._ticking:
            raise TickInProgressError(f"year {self.year} is still being simulated")
        self._ticking = True
        result = TickResult(year=self.year + 1)
        self._tick_log = result.notifications
        try:
            self.year += 1
            for nation in list(self.nations.values()):
                nation.update(self)
            self._simulate_interactions()
            run_disasters(self)
            run_random_events(self)
            self.update_market()
            self._trim_notifications()
        finally:
            self._ticking = False
            self._tick_log = None

        kinds = [n.type for n in result.notifications]
        result.battles = kinds.count(NotificationType.BATTLE_RESULT)
        result.wars_declared = kinds.count(NotificationType.WAR_DECLARATION)
        result.wars_ended = kinds.count(NotificationType.WAR_ENDED)
        logger.debug("Year %d simulated: %d notifications", self.year, len(kinds))
        return result

    tick = simulate_year

    def update_market(self):
        self.trade.market.update(self.nations.values(), self.rng)

    def _simulate_interactions(self):
        ids = list(self.nations)
        if len(ids) < 2:
            return
        cfg = self.config
        actor = self.nations[self.rng.choice(ids)]
        target = self.nations[self.rng.choice([nid for nid in ids if nid != actor.id])]
        relation = actor.relation_with(target.id)

        if relation <= cfg.hostile_threshold:
            if (not actor.at_war and target.id not in actor.war_with
                    and self.rng.random() < cfg.war_declaration_chance):
                warfare.declare_war(self, actor, target.id)
        elif relation >= cfg.friendly_threshold:
            if self.rng.random() < cfg.trade_proposal_chance:
                terms = {
                    "resource": self.rng.choice(TRADABLE_RESOURCES).value,
                    "amount": self.rng.randint(1, 10),
                }
                self.propose(actor.id, target.id, ActionType.TRADE_AGREEMENT, terms, announce=True)
            elif self.rng.random() < cfg.alliance_proposal_chance:
                self.propose(actor.id, target.id, ActionType.ALLIANCE, announce=True)
        else:
            drift = self.rng.randint(-cfg.relation_drift, cfg.relation_drift)
            actor.set_relation(target.id, relation + drift)

        self._resolve_wars()

    def _resolve_wars(self):
        cfg = self.config
        for war in list(self.warfare.active_wars):
            aggressor = self.get_nation(war.aggressor)
            defender = self.get_nation(war.defender)
            if aggressor is None or defender is None:
                continue

            if self.rng.random() < cfg.battle_chance:
                action = self.rng.choice(list(MilitaryActionType))
                commitment = self.rng.uniform(cfg.commitment_min, cfg.commitment_max)
                warfare.conduct_military_action(self, aggressor, defender.id, action, commitment)

            a_power = aggressor.calculate_power()
            d_power = defender.calculate_power()
            ratio = cfg.power_ratio_for_surrender
            if a_power > d_power * ratio and self.rng.random() < cfg.surrender_chance:
                if warfare.end_war(self, defender, aggressor.id):
                    self.notify(NotificationType.WAR_SURRENDER,
                                f"{defender.name} surrendered to {aggressor.name}.")
            elif d_power > a_power * ratio and self.rng.random() < cfg.surrender_chance:
                if warfare.end_war(self, aggressor, defender.id):
                    self.notify(NotificationType.WAR_RETREAT,
                                f"{aggressor.name} withdrew from its war with {defender.name}.")
            elif (len(war.battles) > cfg.long_war_battles
                    and self.rng.random() < cfg.negotiated_peace_chance):
                side, other = (aggressor, defender) if self.rng.random() < 0.5 else (defender, aggressor)
                if warfare.end_war(self, side, other.id):
                    self.notify(NotificationType.WAR_PEACE,
                                f"{aggressor.name} and {defender.name} signed a peace agreement.")

    # ── Views ────────────────────────────────────────────────────────────

    def rankings(self) -> list[dict[str, Any]]:
        ordered = sorted(self.nations.values(), key=lambda n: n.calculate_power(), reverse=True)
        return [
            {"rank": i, "id": n.id, "name": n.name, "power": round(n.calculate_power(), 1),
             "territories": len(n.territories), "population": round(n.population, 2)}
            for i, n in enumerate(ordered, 1)
        ]

    def world_stats(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "nations": len(self.nations),
            "total_population": round(sum(n.population for n in self.nations.values()), 1),
            "territories": sum(len(n.territories) for n in self.nations.values()),
            "active_wars": len(self.warfare.active_wars),
            "trade_routes": len(self.trade.routes),
        }

    def get_full_state(self) -> dict[str, Any]:
        """Read-only snapshot for rendering and the HTTP API."""
        return {
            "year": self.year,
            "nations": [n.snapshot() for n in self.nations.values()],
            "wars": [w.to_dict() for w in self.warfare.active_wars],
            "ended_wars": len(self.warfare.history),
            "trade_routes": [r.to_dict() for r in self.trade.routes],
            "market": self.trade.market.to_dict(),
            "pending_actions": [a.to_dict() for a in self.diplomacy.actions if a.pending],
            "notifications": [n.to_dict() for n in self.notifications],
            "terrain": terrain_counts(self.terrain),
            "stats": self.world_stats(),
        }
