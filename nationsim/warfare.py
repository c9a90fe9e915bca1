"""War lifecycle and battle resolution."""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .types import (
    War, WarStatus, Battle, BattleOutcome, MilitaryActionType, NotificationType,
    RelationLevel, RELATION_VALUE, UNIT_ORDER, UNIT_POWER, CASUALTY_RATE,
    ATTRITION_RATE, DEFENSE_FRACTION, WAR_UPKEEP_PER_ENEMY, WAR_STABILITY_DRAIN,
)

if TYPE_CHECKING:
    from .nation import Nation
    from .world import World

logger = logging.getLogger(__name__)


@dataclass
class WarLedger:
    active_wars: list[War] = field(default_factory=list)
    history: list[War] = field(default_factory=list)

    def find_active(self, a: str, b: str) -> War | None:
        for war in self.active_wars:
            if war.involves(a, b):
                return war
        return None

    def to_dict(self) -> dict:
        return {
            "active_wars": [w.to_dict() for w in self.active_wars],
            "war_history": [w.to_dict() for w in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> WarLedger:
        return cls(
            active_wars=[War.from_dict(w) for w in data.get("active_wars", [])],
            history=[War.from_dict(w) for w in data.get("war_history", [])],
        )


# ── War lifecycle ────────────────────────────────────────────────────────────

def declare_war(world: World, attacker: Nation, defender_id: str) -> War | None:
    defender = world.get_nation(defender_id)
    if defender is None or defender.id == attacker.id:
        return None
    if world.warfare.find_active(attacker.id, defender.id):
        return None

    war = War(
        id=world.next_id("war"),
        aggressor=attacker.id,
        defender=defender.id,
        start_year=world.year,
        casualties={attacker.id: 0, defender.id: 0},
    )
    world.warfare.active_wars.append(war)

    hostile = RELATION_VALUE[RelationLevel.WAR]
    for side, other in ((attacker, defender), (defender, attacker)):
        side.at_war = True
        if other.id not in side.war_with:
            side.war_with.append(other.id)
        side.set_relation(other.id, hostile)
        if side.has_alliance_with(other.id):
            del side.treaties[other.id]

    world.notify(NotificationType.WAR_DECLARATION,
                 f"{attacker.name} declared war on {defender.name}!")
    return war


def end_war(world: World, nation: Nation, other_id: str) -> bool:
    war = world.warfare.find_active(nation.id, other_id)
    if war is None:
        return False

    war.status = WarStatus.ENDED
    war.end_year = world.year
    world.warfare.active_wars.remove(war)
    world.warfare.history.append(war)

    tense = RELATION_VALUE[RelationLevel.TENSE]
    other = world.get_nation(other_id)
    nation.war_with = [nid for nid in nation.war_with if nid != other_id]
    nation.at_war = bool(nation.war_with)
    if other is not None:
        other.war_with = [nid for nid in other.war_with if nid != nation.id]
        other.at_war = bool(other.war_with)
        nation.set_relation(other_id, tense)
        other.set_relation(nation.id, tense)

    world.notify(NotificationType.WAR_ENDED,
                 f"The war between {nation.name} and "
                 f"{other.name if other else 'an unknown nation'} has ended.")
    return True


# ── Battles ──────────────────────────────────────────────────────────────────

def _force_power(force: dict[str, int], column: int) -> float:
    return sum(force[u] * UNIT_POWER[u][column] for u in UNIT_ORDER)


def _casualties(force: dict[str, int], role: str) -> int:
    return sum(math.floor(force[u] * CASUALTY_RATE[role][u]) for u in UNIT_ORDER)


def _apply_losses(nation: Nation, casualties: int):
    units = nation.military_units
    units.infantry = max(0, units.infantry - casualties)
    units.cavalry = max(0, units.cavalry - math.floor(casualties * ATTRITION_RATE["cavalry"]))
    units.artillery = max(0, units.artillery - math.floor(casualties * ATTRITION_RATE["artillery"]))
    nation.casualties += casualties


def conduct_military_action(world: World, attacker: Nation, defender_id: str,
                            action_type: MilitaryActionType | str,
                            commitment: float) -> Battle | None:
    """Resolve one engagement between two nations already at war."""
    defender = world.get_nation(defender_id)
    if defender is None or defender.id == attacker.id:
        return None
    if defender.id not in attacker.war_with or attacker.id not in defender.war_with:
        return None
    try:
        action_type = MilitaryActionType(action_type)
    except ValueError:
        return None

    commitment = max(0.0, min(1.0, commitment))
    committed = {u: math.floor(attacker.military_units.get(u) * commitment) for u in UNIT_ORDER}
    defending = {u: math.floor(defender.military_units.get(u) * DEFENSE_FRACTION) for u in UNIT_ORDER}

    attack_power = _force_power(committed, 0)
    defense_power = _force_power(defending, 1)
    factor = world.rng.uniform(0.8, 1.2)
    attacker_won = attack_power * factor > defense_power

    if attacker_won:
        att_cas = _casualties(committed, "winner")
        def_cas = _casualties(defending, "loser")
    else:
        att_cas = _casualties(committed, "loser")
        def_cas = _casualties(defending, "winner")

    battle = Battle(
        id=world.next_id("b"),
        year=world.year,
        attacker=attacker.id,
        defender=defender.id,
        type=action_type,
        attacker_force=committed,
        defender_force=defending,
        attack_power=attack_power,
        defense_power=defense_power,
        random_factor=factor,
        outcome=BattleOutcome.ATTACKER_VICTORY if attacker_won else BattleOutcome.DEFENDER_VICTORY,
        attacker_casualties=att_cas,
        defender_casualties=def_cas,
    )

    _apply_losses(attacker, att_cas)
    _apply_losses(defender, def_cas)

    if attacker_won and action_type == MilitaryActionType.TERRITORY and defender.territories:
        cell = defender.remove_territory_at(world.rng.randrange(len(defender.territories)))
        attacker.add_territory(*cell)
        battle.territories_changed.append(cell)

    war = world.warfare.find_active(attacker.id, defender.id)
    if war is not None:
        war.battles.append(battle)
        war.casualties[attacker.id] = war.casualties.get(attacker.id, 0) + att_cas
        war.casualties[defender.id] = war.casualties.get(defender.id, 0) + def_cas

    logger.debug("Battle %s: %s (%.1f x %.2f) vs %s (%.1f) -> %s",
                 battle.id, attacker.name, attack_power, factor,
                 defender.name, defense_power, battle.outcome.value)
    if attacker_won:
        msg = f"{attacker.name} defeated {defender.name} in a {action_type.value.lower()} action"
        if battle.territories_changed:
            msg += " and seized territory"
    else:
        msg = f"{defender.name} repelled an attack by {attacker.name}"
    world.notify(NotificationType.BATTLE_RESULT, msg + ".")
    return battle


# ── Upkeep ───────────────────────────────────────────────────────────────────

def apply_war_upkeep(world: World, nation: Nation):
    if not nation.at_war:
        return
    nation.stability = max(0.0, nation.stability - WAR_STABILITY_DRAIN)
    nation.resources.gold -= WAR_UPKEEP_PER_ENEMY * len(nation.war_with)
    if nation.resources.gold >= 0:
        return

    nation.resources.gold = 0.0
    if nation.war_with and world.rng.random() < world.config.forced_peace_chance:
        enemy_id = world.rng.choice(nation.war_with)
        enemy = world.get_nation(enemy_id)
        if end_war(world, nation, enemy_id):
            logger.info("%s is bankrupt and sued for peace", nation.name)
            world.notify(NotificationType.FORCED_PEACE,
                         f"{nation.name} ran out of gold and was forced to make peace with "
                         f"{enemy.name if enemy else 'an unknown nation'}.")
