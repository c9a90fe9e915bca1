"""Nation entity and its yearly self-update."""
from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .ledger import ResourceLedger
from .polities import get_economy_info, get_government_info
from .types import (
    Government, Economy, ActionType, MilitaryUnits, TradeRoute,
    RelationLevel, RELATION_VALUE, RELATION_MIN, RELATION_MAX,
    RECOVERY_RATE, UNIT_ORDER,
)
from . import trade, warfare

if TYPE_CHECKING:
    from .world import World

MIN_POPULATION = 0.1
RELATION_DECAY = 0.5


@dataclass
class Nation:
    id: str
    name: str
    color: str
    government: Government
    economy: Economy
    population: float  # millions
    military_strength: int  # 1-10
    territories: list[tuple[int, int]] = field(default_factory=list)
    resources: ResourceLedger = field(default_factory=ResourceLedger)
    growth_rate: float = 0.01
    stability: float = 0.8
    military_units: Optional[MilitaryUnits] = None
    casualties: int = 0
    relations: dict[str, float] = field(default_factory=dict)
    treaties: dict[str, str] = field(default_factory=dict)
    trade_routes: list[TradeRoute] = field(default_factory=list)
    at_war: bool = False
    war_with: list[str] = field(default_factory=list)
    trade_surplus: float = 0.0
    trade_deficit: float = 0.0
    economic_growth: float = 0.01
    diplomatic_actions: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.government = Government(self.government)
        self.economy = Economy(self.economy)
        self.population = float(self.population)
        self.military_strength = int(self.military_strength)
        if self.military_units is None:
            self.military_units = MilitaryUnits.for_strength(self.military_strength)

    # ── Queries ──────────────────────────────────────────────────────────

    def calculate_power(self) -> float:
        return (self.population * 0.5 + self.military_strength * 2
                + self.resources.technology * 3 + len(self.territories) * 0.2)

    def military_caps(self) -> dict[str, int]:
        max_infantry = math.floor(self.population * 0.1) + self.military_strength * 2
        return {
            "infantry": max_infantry,
            "cavalry": math.floor(max_infantry * 0.3),
            "artillery": math.floor(max_infantry * 0.1),
        }

    def relation_with(self, nation_id: str) -> float:
        return self.relations.get(nation_id, 0)

    def has_alliance_with(self, nation_id: str) -> bool:
        return self.treaties.get(nation_id) == ActionType.ALLIANCE.value

    def route(self, route_id: str) -> TradeRoute | None:
        for r in self.trade_routes:
            if r.id == route_id:
                return r
        return None

    # ── Mutators ─────────────────────────────────────────────────────────

    def add_territory(self, x: int, y: int) -> bool:
        cell = (int(x), int(y))
        if cell in self.territories:
            return False
        self.territories.append(cell)
        return True

    def remove_territory_at(self, index: int) -> tuple[int, int]:
        return self.territories.pop(index)

    def set_relation(self, nation_id: str, value: float):
        self.relations[nation_id] = max(RELATION_MIN, min(RELATION_MAX, value))

    # ── Yearly update ────────────────────────────────────────────────────

    def update(self, world: World):
        """Advance this nation by one year.

        Growth reads last year's food; stability reads this year's. Trade
        settles before war upkeep is charged.
        """
        self._grow_population()
        self._update_resources()
        self._update_stability(world)

        if world.rng.random() < 0.1 * (self.resources.minerals / 100):
            self.resources.technology += 0.1

        trade.settle(world, self)
        warfare.apply_war_upkeep(world, self)
        self._recover_military_units()
        self._update_diplomatic_relations()
        self.enforce_bounds()

    def _growth_modifier(self) -> float:
        modifier = get_economy_info(self.economy)["growth_factor"]
        modifier *= self.stability
        modifier *= self.resources.food / 100
        return modifier

    def _grow_population(self):
        self.population *= 1 + self.growth_rate * self._growth_modifier()
        self.population = round(self.population, 2)

    def _update_resources(self):
        n = len(self.territories)
        self.resources.food += n * 0.5 - self.population * 0.3
        self.resources.food = max(0.0, min(self.resources.food, 1000.0))
        self.resources.minerals += n * 0.3
        self.resources.minerals = max(0.0, min(self.resources.minerals, 1000.0))

    def _update_stability(self, world: World):
        if self.resources.food < self.population * 0.2:
            self.stability -= 0.05
        else:
            self.stability += 0.01

        info = get_government_info(self.government)
        self.stability += info["stability_bonus"]
        if info["coup_risk"] and world.rng.random() < world.config.coup_chance:
            self.stability -= 0.05

        self.stability = max(0.0, min(self.stability, 1.0))

    def _recover_military_units(self):
        for unit, cap in self.military_caps().items():
            current = self.military_units.get(unit)
            recovered = current + math.floor((cap - current) * RECOVERY_RATE)
            self.military_units.set(unit, max(0, min(recovered, cap)))

    def _update_diplomatic_relations(self):
        alliance = RELATION_VALUE[RelationLevel.ALLIANCE]
        war = RELATION_VALUE[RelationLevel.WAR]
        for nid, current in list(self.relations.items()):
            if current > 0:
                self.relations[nid] = max(0, current - RELATION_DECAY)
            elif current < 0:
                self.relations[nid] = min(0, current + RELATION_DECAY)

            # Alliances and wars don't drift
            if nid in self.war_with:
                self.relations[nid] = war
            elif self.has_alliance_with(nid):
                self.relations[nid] = alliance

    def enforce_bounds(self):
        self.population = max(MIN_POPULATION, self.population)
        self.stability = max(0.0, min(self.stability, 1.0))
        self.resources.clamp()

    # ── Views ────────────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """Read-only view for rendering and the HTTP API."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "government": self.government.value,
            "government_name": get_government_info(self.government)["name"],
            "economy": self.economy.value,
            "economy_name": get_economy_info(self.economy)["name"],
            "population": round(self.population, 2),
            "military_strength": self.military_strength,
            "military_units": self.military_units.to_dict(),
            "total_units": self.military_units.total(),
            "territories": len(self.territories),
            "stability": round(self.stability, 3),
            "power": round(self.calculate_power(), 1),
            "resources": self.resources.to_dict(),
            "at_war": self.at_war,
            "war_with": list(self.war_with),
            "allies": [nid for nid in self.treaties if self.has_alliance_with(nid)],
            "trade_routes": [r.to_dict() for r in self.trade_routes],
            "trade_surplus": self.trade_surplus,
            "trade_deficit": self.trade_deficit,
            "economic_growth": self.economic_growth,
            "casualties": self.casualties,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id, "name": self.name, "color": self.color,
            "government": self.government.value, "economy": self.economy.value,
            "population": self.population,
            "military_strength": self.military_strength,
            "territories": [list(t) for t in self.territories],
            "resources": self.resources.to_dict(),
            "growth_rate": self.growth_rate,
            "stability": self.stability,
            "military_units": self.military_units.to_dict(),
            "casualties": self.casualties,
            "relations": dict(self.relations),
            "treaties": dict(self.treaties),
            "trade_routes": [r.to_dict() for r in self.trade_routes],
            "at_war": self.at_war,
            "war_with": list(self.war_with),
            "trade_surplus": self.trade_surplus,
            "trade_deficit": self.trade_deficit,
            "economic_growth": self.economic_growth,
            "diplomatic_actions": list(self.diplomatic_actions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Nation:
        units = data.get("military_units")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            color=data.get("color", "#888888"),
            government=data["government"],
            economy=data["economy"],
            population=data["population"],
            military_strength=data["military_strength"],
            territories=[tuple(t) for t in data.get("territories", [])],
            resources=ResourceLedger.from_dict(data.get("resources", {})),
            growth_rate=data.get("growth_rate", 0.01),
            stability=data.get("stability", 0.8),
            military_units=MilitaryUnits(**{u: int(units[u]) for u in UNIT_ORDER}) if units else None,
            casualties=data.get("casualties", 0),
            relations={str(k): v for k, v in data.get("relations", {}).items()},
            treaties={str(k): v for k, v in data.get("treaties", {}).items()},
            trade_routes=[TradeRoute.from_dict(r) for r in data.get("trade_routes", [])],
            at_war=data.get("at_war", False),
            war_with=[str(w) for w in data.get("war_with", [])],
            trade_surplus=data.get("trade_surplus", 0.0),
            trade_deficit=data.get("trade_deficit", 0.0),
            economic_growth=data.get("economic_growth", 0.01),
            diplomatic_actions=list(data.get("diplomatic_actions", [])),
        )
