"""Natural disasters and random national events."""
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .types import NotificationType

if TYPE_CHECKING:
    from .nation import Nation
    from .world import World

logger = logging.getLogger(__name__)

MIN_POPULATION = 0.1


class DisasterKind(str, Enum):
    EARTHQUAKE = "earthquake"
    FLOOD = "flood"
    DROUGHT = "drought"
    PLAGUE = "plague"
    FIRE = "fire"


class EventKind(str, Enum):
    TECH_BREAKTHROUGH = "tech_breakthrough"
    ECONOMIC_BOOM = "economic_boom"
    BUMPER_HARVEST = "bumper_harvest"
    UPRISING = "uprising"
    IMMIGRATION = "immigration"
    MINERAL_DISCOVERY = "mineral_discovery"
    POLITICAL_REFORM = "political_reform"


# Rolled in this order; the first hit wins. Losses are per point of severity,
# "population" is a fraction of the current population.
DISASTERS = {
    DisasterKind.EARTHQUAKE: {
        "name": "earthquake", "probability": 0.05,
        "population": 0.02, "minerals": 10, "gold": 50, "stability": 0.05,
    },
    DisasterKind.FLOOD: {
        "name": "flood", "probability": 0.08,
        "population": 0.01, "food": 20, "stability": 0.03,
    },
    DisasterKind.DROUGHT: {
        "name": "drought", "probability": 0.06,
        "food": 30, "stability": 0.08,
    },
    DisasterKind.PLAGUE: {
        "name": "plague", "probability": 0.04,
        "population": 0.04, "stability": 0.1,
    },
    DisasterKind.FIRE: {
        "name": "fire", "probability": 0.07,
        "minerals": 15, "gold": 30, "stability": 0.04,
    },
}

EVENTS = {
    EventKind.TECH_BREAKTHROUGH: {"name": "Technology breakthrough", "probability": 0.05},
    EventKind.ECONOMIC_BOOM:     {"name": "Economic boom", "probability": 0.06},
    EventKind.BUMPER_HARVEST:    {"name": "Bumper harvest", "probability": 0.08},
    EventKind.UPRISING:          {"name": "Popular uprising", "probability": 0.03},
    EventKind.IMMIGRATION:       {"name": "Immigration wave", "probability": 0.07},
    EventKind.MINERAL_DISCOVERY: {"name": "Mineral discovery", "probability": 0.04},
    EventKind.POLITICAL_REFORM:  {"name": "Political reform", "probability": 0.03},
}

SECONDARY_DISASTERS = (DisasterKind.FIRE, DisasterKind.FLOOD)


@dataclass
class EffectResult:
    kind: str
    message: str
    population: float = 0.0
    resources: dict[str, float] = field(default_factory=dict)
    stability: float = 0.0


def clamp_after_effect(nation: Nation):
    nation.population = max(MIN_POPULATION, nation.population)
    nation.stability = max(0.0, min(1.0, nation.stability))
    nation.resources.floor_at_zero()


# ── Dispatch ─────────────────────────────────────────────────────────────────

def apply_disaster(nation: Nation, kind: DisasterKind | str, severity: int = 1) -> EffectResult:
    kind = DisasterKind(kind)
    info = DISASTERS[kind]
    result = EffectResult(kind=kind.value, message="")

    pop_loss = nation.population * info.get("population", 0) * severity
    nation.population -= pop_loss
    result.population = -pop_loss
    for res in ("food", "minerals", "gold"):
        if res in info:
            loss = info[res] * severity
            nation.resources.add(res, -loss)
            result.resources[res] = -loss
    result.stability = -info["stability"] * severity
    nation.stability += result.stability
    clamp_after_effect(nation)

    result.message = f"was hit by a {'severe' if severity > 1 else 'minor'} {info['name']}"
    if pop_loss:
        result.message += f", losing {pop_loss:.1f} million people"
    result.message += "."
    return result


def apply_event(nation: Nation, kind: EventKind | str, rng: random.Random) -> EffectResult:
    kind = EventKind(kind)
    result = EffectResult(kind=kind.value, message="")

    if kind == EventKind.TECH_BREAKTHROUGH:
        result.resources["technology"] = 1
        result.stability = 0.02
        result.message = "made a major technology breakthrough!"
    elif kind == EventKind.ECONOMIC_BOOM:
        result.resources["gold"] = rng.randint(50, 149)
        result.stability = 0.03
        result.message = f"is booming; the treasury gained {result.resources['gold']} gold."
    elif kind == EventKind.BUMPER_HARVEST:
        result.resources["food"] = rng.randint(50, 149)
        result.stability = 0.04
        result.message = f"brought in a bumper harvest of {result.resources['food']} food."
    elif kind == EventKind.UPRISING:
        result.resources["gold"] = -50
        result.stability = -0.15
        result.message = "put down a popular uprising at great cost."
    elif kind == EventKind.IMMIGRATION:
        result.population = rng.uniform(1, 3)
        result.message = f"welcomed {result.population:.1f} million immigrants."
    elif kind == EventKind.MINERAL_DISCOVERY:
        result.resources["minerals"] = rng.randint(50, 149)
        result.message = f"discovered new deposits worth {result.resources['minerals']} minerals."
    elif kind == EventKind.POLITICAL_REFORM:
        result.stability = 0.1
        result.message = "carried out a popular political reform."

    nation.population += result.population
    for res, delta in result.resources.items():
        nation.resources.add(res, delta)
    nation.stability += result.stability
    clamp_after_effect(nation)
    return result


# ── Per-tick rolls ───────────────────────────────────────────────────────────

def run_disasters(world: World) -> list[EffectResult]:
    results = []
    rng = world.rng
    for nation in world.nations.values():
        if not nation.territories:
            continue
        for kind, info in DISASTERS.items():
            if rng.random() >= info["probability"]:
                continue
            severity = 2 if rng.random() < world.config.severe_disaster_chance else 1
            result = apply_disaster(nation, kind, severity)
            results.append(result)
            world.notify(NotificationType.NATURAL_DISASTER, f"{nation.name} {result.message}")

            if severity == 2 and rng.random() < world.config.secondary_disaster_chance:
                secondary = SECONDARY_DISASTERS[0] if rng.random() > 0.5 else SECONDARY_DISASTERS[1]
                follow_up = apply_disaster(nation, secondary, 1)
                results.append(follow_up)
                world.notify(NotificationType.NATURAL_DISASTER,
                             f"{nation.name} (aftermath) {follow_up.message}")
            break
    return results


def run_random_events(world: World) -> list[EffectResult]:
    results = []
    rng = world.rng
    for nation in world.nations.values():
        if not nation.territories:
            continue
        for kind, info in EVENTS.items():
            if rng.random() < info["probability"]:
                result = apply_event(nation, kind, rng)
                results.append(result)
                world.notify(NotificationType.RANDOM_EVENT, f"{nation.name} {result.message}")
                break
    return results
