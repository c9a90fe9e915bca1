"""Core data types for Nationsim."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Government(str, Enum):
    MONARCHY = "monarchy"
    REPUBLIC = "republic"
    DICTATORSHIP = "dictatorship"
    DEMOCRACY = "democracy"


class Economy(str, Enum):
    CAPITALIST = "capitalist"
    SOCIALIST = "socialist"
    MIXED = "mixed"


class Resource(str, Enum):
    FOOD = "food"
    MINERALS = "minerals"
    TECHNOLOGY = "technology"
    GOLD = "gold"


# Resources that can be exchanged on trade routes and have a market price
TRADABLE_RESOURCES = [Resource.FOOD, Resource.MINERALS, Resource.TECHNOLOGY]

# Hard cap on stockpiles; technology and gold are unbounded above
RESOURCE_CAP = {
    Resource.FOOD: 1000.0,
    Resource.MINERALS: 1000.0,
    Resource.TECHNOLOGY: None,
    Resource.GOLD: None,
}

STARTING_RESOURCES = {
    Resource.FOOD: 100.0,
    Resource.MINERALS: 100.0,
    Resource.TECHNOLOGY: 1.0,
    Resource.GOLD: 1000.0,
}

INITIAL_MARKET_PRICES = {
    Resource.FOOD: 1.0,
    Resource.MINERALS: 1.0,
    Resource.TECHNOLOGY: 10.0,
}

MARKET_PRICE_RANGE = {
    Resource.FOOD: (0.5, 5.0),
    Resource.MINERALS: (0.5, 5.0),
    Resource.TECHNOLOGY: (5.0, 20.0),
}

#                       demand per unit     supply per unit
MARKET_FACTORS = {
    Resource.FOOD:       ("population", 0.3, "territories", 0.5),
    Resource.MINERALS:   ("territories", 0.2, "territories", 0.3),
    Resource.TECHNOLOGY: ("technology", 0.5, "technology", 0.1),
}


class RelationLevel(str, Enum):
    ALLIANCE = "alliance"
    FRIENDLY = "friendly"
    NEUTRAL = "neutral"
    TENSE = "tense"
    WAR = "war"


RELATION_VALUE = {
    RelationLevel.ALLIANCE: 80,
    RelationLevel.FRIENDLY: 50,
    RelationLevel.NEUTRAL: 0,
    RelationLevel.TENSE: -30,
    RelationLevel.WAR: -100,
}

RELATION_MIN = -100
RELATION_MAX = 100


class ActionType(str, Enum):
    ALLIANCE = "ALLIANCE"
    TRADE_AGREEMENT = "TRADE_AGREEMENT"
    PEACE_TREATY = "PEACE_TREATY"
    WAR_DECLARATION = "WAR_DECLARATION"


class ActionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class MilitaryActionType(str, Enum):
    TERRITORY = "TERRITORY"
    BATTLE = "BATTLE"
    RAID = "RAID"


class BattleOutcome(str, Enum):
    ATTACKER_VICTORY = "attacker_victory"
    DEFENDER_VICTORY = "defender_victory"


class WarStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"


class NotificationType(str, Enum):
    WAR_DECLARATION = "WAR_DECLARATION"
    WAR_ENDED = "WAR_ENDED"
    BATTLE_RESULT = "BATTLE_RESULT"
    FORCED_PEACE = "FORCED_PEACE"
    WAR_SURRENDER = "WAR_SURRENDER"
    WAR_RETREAT = "WAR_RETREAT"
    WAR_PEACE = "WAR_PEACE"
    DIPLOMATIC_PROPOSAL = "DIPLOMATIC_PROPOSAL"
    TRADE_ESTABLISHED = "TRADE_ESTABLISHED"
    TRADE_CANCELED = "TRADE_CANCELED"
    NATURAL_DISASTER = "NATURAL_DISASTER"
    RANDOM_EVENT = "RANDOM_EVENT"


# ── Military ─────────────────────────────────────────────────────────────────

UNIT_ORDER = ("infantry", "cavalry", "artillery")

#                    attack  defense
UNIT_POWER = {
    "infantry":  (1.0, 1.2),
    "cavalry":   (2.0, 1.5),
    "artillery": (3.0, 2.5),
}

# Casualty fraction of the engaged force per unit type, by battle role
CASUALTY_RATE = {
    "winner": {"infantry": 0.10, "cavalry": 0.15, "artillery": 0.05},
    "loser":  {"infantry": 0.30, "cavalry": 0.25, "artillery": 0.20},
}

# Secondary losses as a fraction of the side's total casualties
ATTRITION_RATE = {"cavalry": 0.2, "artillery": 0.1}

DEFENSE_FRACTION = 0.7
WAR_UPKEEP_PER_ENEMY = 5
WAR_STABILITY_DRAIN = 0.02
RECOVERY_RATE = 0.05


@dataclass
class MilitaryUnits:
    infantry: int = 0
    cavalry: int = 0
    artillery: int = 0

    @classmethod
    def for_strength(cls, military_strength: int) -> MilitaryUnits:
        return cls(
            infantry=int(military_strength * 2),
            cavalry=int(military_strength * 0.5),
            artillery=int(military_strength * 0.2),
        )

    def get(self, unit: str) -> int:
        return getattr(self, unit)

    def set(self, unit: str, value: int):
        setattr(self, unit, value)

    def total(self) -> int:
        return self.infantry + self.cavalry + self.artillery

    def to_dict(self) -> dict[str, int]:
        return {u: self.get(u) for u in UNIT_ORDER}


# ── Ledger records ───────────────────────────────────────────────────────────

@dataclass
class TradeRoute:
    id: str
    owner: str
    partner: str
    resource: Resource
    amount: float  # > 0 import, < 0 export
    price: float
    established: int

    @property
    def is_import(self) -> bool:
        return self.amount > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id, "owner": self.owner, "partner": self.partner,
            "resource": self.resource.value, "amount": self.amount,
            "price": self.price, "established": self.established,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TradeRoute:
        return cls(
            id=data["id"], owner=data["owner"], partner=data["partner"],
            resource=Resource(data["resource"]), amount=data["amount"],
            price=data["price"], established=data["established"],
        )


@dataclass
class DiplomaticAction:
    id: str
    sender: str
    recipient: str
    type: ActionType
    terms: dict[str, Any] = field(default_factory=dict)
    status: ActionStatus = ActionStatus.PENDING
    proposed_at: int = 0
    accepted_at: Optional[int] = None
    rejected_at: Optional[int] = None

    @property
    def pending(self) -> bool:
        return self.status == ActionStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id, "from": self.sender, "to": self.recipient,
            "type": self.type.value, "terms": dict(self.terms),
            "status": self.status.value, "proposed_at": self.proposed_at,
            "accepted_at": self.accepted_at, "rejected_at": self.rejected_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DiplomaticAction:
        return cls(
            id=data["id"], sender=data["from"], recipient=data["to"],
            type=ActionType(data["type"]), terms=dict(data.get("terms") or {}),
            status=ActionStatus(data.get("status", "pending")),
            proposed_at=data.get("proposed_at", 0),
            accepted_at=data.get("accepted_at"),
            rejected_at=data.get("rejected_at"),
        )


@dataclass
class Battle:
    id: str
    year: int
    attacker: str
    defender: str
    type: MilitaryActionType
    attacker_force: dict[str, int]
    defender_force: dict[str, int]
    attack_power: float
    defense_power: float
    random_factor: float
    outcome: BattleOutcome
    territories_changed: list[tuple[int, int]] = field(default_factory=list)
    attacker_casualties: int = 0
    defender_casualties: int = 0

    @property
    def attacker_won(self) -> bool:
        return self.outcome == BattleOutcome.ATTACKER_VICTORY

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id, "year": self.year,
            "attacker": self.attacker, "defender": self.defender,
            "type": self.type.value,
            "attacker_force": dict(self.attacker_force),
            "defender_force": dict(self.defender_force),
            "attack_power": self.attack_power, "defense_power": self.defense_power,
            "random_factor": self.random_factor, "outcome": self.outcome.value,
            "territories_changed": [list(t) for t in self.territories_changed],
            "attacker_casualties": self.attacker_casualties,
            "defender_casualties": self.defender_casualties,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Battle:
        return cls(
            id=data["id"], year=data["year"],
            attacker=data["attacker"], defender=data["defender"],
            type=MilitaryActionType(data["type"]),
            attacker_force=dict(data["attacker_force"]),
            defender_force=dict(data["defender_force"]),
            attack_power=data["attack_power"], defense_power=data["defense_power"],
            random_factor=data["random_factor"],
            outcome=BattleOutcome(data["outcome"]),
            territories_changed=[tuple(t) for t in data.get("territories_changed", [])],
            attacker_casualties=data.get("attacker_casualties", 0),
            defender_casualties=data.get("defender_casualties", 0),
        )


@dataclass
class War:
    id: str
    aggressor: str
    defender: str
    start_year: int
    status: WarStatus = WarStatus.ACTIVE
    end_year: Optional[int] = None
    battles: list[Battle] = field(default_factory=list)
    casualties: dict[str, int] = field(default_factory=dict)

    def involves(self, a: str, b: str) -> bool:
        return {self.aggressor, self.defender} == {a, b}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id, "aggressor": self.aggressor, "defender": self.defender,
            "start_year": self.start_year, "end_year": self.end_year,
            "status": self.status.value,
            "battles": [b.to_dict() for b in self.battles],
            "casualties": dict(self.casualties),
        }

    @classmethod
    def from_dict(cls, data: dict) -> War:
        return cls(
            id=data["id"], aggressor=data["aggressor"], defender=data["defender"],
            start_year=data["start_year"], end_year=data.get("end_year"),
            status=WarStatus(data.get("status", "active")),
            battles=[Battle.from_dict(b) for b in data.get("battles", [])],
            casualties=dict(data.get("casualties", {})),
        )


@dataclass
class Notification:
    type: NotificationType
    message: str
    year: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "message": self.message, "year": self.year}

    @classmethod
    def from_dict(cls, data: dict) -> Notification:
        return cls(type=NotificationType(data["type"]), message=data["message"],
                   year=data["year"])


@dataclass
class TickResult:
    year: int
    notifications: list[Notification] = field(default_factory=list)
    battles: int = 0
    wars_declared: int = 0
    wars_ended: int = 0
