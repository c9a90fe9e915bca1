"""Run a headless Nationsim world locally (no server needed)."""
import argparse
import logging
import random
from pathlib import Path

from nationsim.config import SimConfig
from nationsim.logging_config import setup_logging
from nationsim.persistence import serialize
from nationsim.types import Government, Economy
from nationsim.world import World

logger = logging.getLogger("run_game")

NAMES = ["Avalon", "Borealis", "Cyrene", "Dunmark", "Elara", "Fenwick"]


def populate(world: World, num_nations: int, rng: random.Random, land: int = 9):
    """Found nations with random traits and a square block of land each."""
    cfg = world.config
    for i in range(num_nations):
        nation = world.create_nation(
            name=NAMES[i % len(NAMES)],
            government=rng.choice(list(Government)),
            economy=rng.choice(list(Economy)),
            population=round(rng.uniform(5, 50), 1),
            military_strength=rng.randint(1, 10),
        )
        side = max(1, int(land ** 0.5))
        cx = rng.randrange(0, cfg.grid_cols - side)
        cy = rng.randrange(0, cfg.grid_rows - side)
        for dx in range(side):
            for dy in range(side):
                world.claim_territory(nation.id, (cx + dx) * cfg.grid_size, (cy + dy) * cfg.grid_size)

    # Seed a few starting attitudes so the interaction step has something to do
    ids = list(world.nations)
    for a in ids:
        for b in ids:
            if a != b:
                world.nations[a].set_relation(b, rng.randint(-70, 70))


def main():
    parser = argparse.ArgumentParser(description="Simulate a Nationsim world")
    parser.add_argument("--nations", type=int, default=4)
    parser.add_argument("--years", type=int, default=50)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--save", type=Path, default=None, help="Write the final world to this file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    setup_logging(args.verbose)
    world = World.create(config=SimConfig.from_env(), seed=args.seed)
    populate(world, args.nations, random.Random(args.seed))

    print(f"=== NATIONSIM — {args.nations} nations, {args.years} years ===")
    for _ in range(args.years):
        result = world.tick()
        stats = world.world_stats()
        print(f"Y{result.year} | pop={stats['total_population']:8.1f} wars={stats['active_wars']} "
              f"routes={stats['trade_routes']} battles={result.battles}")

    print("\n=== FINAL RANKINGS ===")
    for row in world.rankings():
        print(f"  {row['rank']}. {row['name']:10s} power={row['power']:7.1f} "
              f"territories={row['territories']} pop={row['population']}")
    print(f"\nMarket: {world.trade.market.to_dict()}")

    if args.save:
        args.save.write_bytes(serialize(world))
        logger.info("World saved to %s", args.save)


if __name__ == "__main__":
    main()
