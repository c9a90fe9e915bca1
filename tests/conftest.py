"""Shared fixtures for the Nationsim test suite."""
import random

import pytest

from nationsim.config import SimConfig
from nationsim.world import World


class ScriptedRandom(random.Random):
    """random() always returns ``value``.

    Everything built on random() follows from it: uniform(a, b) returns
    a + (b - a) * value, and with value 0.0 choice() picks the first item
    and randint(a, b) returns a.
    """

    def __init__(self, value: float = 0.0):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


# Probabilities that would otherwise fire under ScriptedRandom(0.0)
QUIET = dict(
    war_declaration_chance=0.0, trade_proposal_chance=0.0, alliance_proposal_chance=0.0,
    battle_chance=0.0, surrender_chance=0.0, negotiated_peace_chance=0.0,
    forced_peace_chance=0.0, coup_chance=0.0,
)


def make_world(value: float | None = None, seed: int = 1, **config) -> World:
    rng = ScriptedRandom(value) if value is not None else random.Random(seed)
    return World(config=SimConfig(**config), rng=rng)


def add_nation(world: World, name: str, population: float = 10.0,
               military_strength: int = 5, government: str = "monarchy",
               economy: str = "mixed", cells: int = 0):
    nation = world.create_nation(name, government, economy, population, military_strength)
    row = len(world.nations)
    for col in range(cells):
        nation.add_territory(col, row)
    return nation


@pytest.fixture
def world():
    return make_world(seed=1)


@pytest.fixture
def pair(world):
    """A world with two nations, returned as (world, a, b)."""
    a = add_nation(world, "Avalon")
    b = add_nation(world, "Borealis")
    return world, a, b
