"""Tests for natural disasters and random events."""
import random

import pytest

from conftest import add_nation, make_world
from nationsim.events import (
    DisasterKind, EventKind, apply_disaster, apply_event, run_disasters, run_random_events,
)
from nationsim.types import NotificationType


class TestApplyDisaster:
    def test_severe_earthquake(self):
        world = make_world(seed=1)
        n = add_nation(world, "A", population=100)
        result = apply_disaster(n, DisasterKind.EARTHQUAKE, severity=2)
        assert n.population == pytest.approx(96)
        assert n.resources.minerals == 80
        assert n.resources.gold == 900
        assert n.stability == pytest.approx(0.7)
        assert result.resources == {"minerals": -20, "gold": -100}
        assert "severe earthquake" in result.message
        assert "4.0 million" in result.message

    def test_drought_floors_food(self):
        world = make_world(seed=1)
        n = add_nation(world, "A")
        n.resources.food = 20
        apply_disaster(n, "drought")
        assert n.resources.food == 0
        assert n.stability == pytest.approx(0.72)

    def test_plague_keeps_minimum_population(self):
        world = make_world(seed=1)
        n = add_nation(world, "A", population=0.1)
        n.stability = 0.05
        apply_disaster(n, DisasterKind.PLAGUE, severity=2)
        assert n.population == 0.1
        assert n.stability == 0

    def test_fire_has_no_casualties(self):
        world = make_world(seed=1)
        n = add_nation(world, "A")
        result = apply_disaster(n, DisasterKind.FIRE)
        assert result.population == 0
        assert "minor fire." in result.message


class TestApplyEvent:
    def test_tech_breakthrough(self):
        world = make_world(seed=1)
        n = add_nation(world, "A")
        apply_event(n, EventKind.TECH_BREAKTHROUGH, world.rng)
        assert n.resources.technology == 2
        assert n.stability == pytest.approx(0.82)

    def test_economic_boom_range(self):
        world = make_world(seed=1)
        n = add_nation(world, "A")
        result = apply_event(n, EventKind.ECONOMIC_BOOM, random.Random(3))
        assert 50 <= result.resources["gold"] <= 149
        assert n.resources.gold == 1000 + result.resources["gold"]

    def test_uprising_cannot_bankrupt_below_zero(self):
        world = make_world(seed=1)
        n = add_nation(world, "A")
        n.resources.gold = 20
        apply_event(n, "uprising", world.rng)
        assert n.resources.gold == 0
        assert n.stability == pytest.approx(0.65)

    def test_immigration(self):
        world = make_world(0.0)
        n = add_nation(world, "A", population=10)
        apply_event(n, EventKind.IMMIGRATION, world.rng)
        assert n.population == 11

    def test_reform_caps_stability(self):
        world = make_world(seed=1)
        n = add_nation(world, "A")
        n.stability = 0.95
        apply_event(n, EventKind.POLITICAL_REFORM, world.rng)
        assert n.stability == 1.0


class TestRolls:
    def test_disaster_with_aftermath(self):
        world = make_world(0.0)
        n = add_nation(world, "A", population=100, cells=1)
        results = run_disasters(world)
        assert [r.kind for r in results] == ["earthquake", "flood"]
        notes = world.notifications
        assert [x.type for x in notes] == [NotificationType.NATURAL_DISASTER] * 2
        assert notes[1].message.startswith(f"{n.name} (aftermath)")

    def test_one_disaster_per_nation(self):
        world = make_world(0.0, secondary_disaster_chance=0.0)
        add_nation(world, "A", cells=1)
        add_nation(world, "B", cells=1)
        results = run_disasters(world)
        assert [r.kind for r in results] == ["earthquake", "earthquake"]

    def test_nothing_fires_on_high_rolls(self):
        world = make_world(0.99)
        add_nation(world, "A", cells=1)
        assert run_disasters(world) == []
        assert run_random_events(world) == []
        assert world.notifications == []

    def test_landless_nations_are_skipped(self):
        world = make_world(0.0)
        add_nation(world, "A")
        assert run_disasters(world) == []
        assert run_random_events(world) == []

    def test_first_event_wins(self):
        world = make_world(0.0)
        n = add_nation(world, "A", cells=1)
        results = run_random_events(world)
        assert [r.kind for r in results] == ["tech_breakthrough"]
        assert n.resources.technology == 2
        assert world.notifications[-1].type == NotificationType.RANDOM_EVENT
