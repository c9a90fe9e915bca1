"""Run a scripted session against the world server.
Founds nations, claims land for them, then alternates random agent turns with ticks.
"""
import httpx
import random
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from agents.random_agent import play_turn

REPLAY_DIR = Path(__file__).resolve().parent.parent / "replays"

NATION_NAMES = ["Avalon", "Borealis", "Cyrene", "Dunmark", "Elara", "Fenwick", "Galt", "Hesper"]
GOVERNMENTS = ["monarchy", "republic", "dictatorship", "democracy"]
ECONOMIES = ["capitalist", "socialist", "mixed"]


def found_nations(client: httpx.Client, world_id: str, num_nations: int, grid: list[int], cell: int,
                  rng: random.Random, land: int = 12) -> list[str]:
    """Create nations and give each a square block of cells around a random centre."""
    cols, rows = grid
    ids = []
    for i in range(num_nations):
        resp = client.post(f"/worlds/{world_id}/nations", json={
            "name": NATION_NAMES[i % len(NATION_NAMES)],
            "government": rng.choice(GOVERNMENTS),
            "economy": rng.choice(ECONOMIES),
            "population": round(rng.uniform(5, 50), 1),
            "military_strength": rng.randint(1, 10),
        })
        resp.raise_for_status()
        nid = resp.json()["id"]
        ids.append(nid)

        cx, cy = rng.randrange(2, cols - 2), rng.randrange(2, rows - 2)
        side = max(1, int(land ** 0.5))
        for dx in range(side):
            for dy in range(side):
                client.post(f"/worlds/{world_id}/nations/{nid}/territory",
                            json={"x": (cx + dx) * cell, "y": (cy + dy) * cell})
    return ids


def run_match(
    base_url: str = "http://localhost:8000",
    num_nations: int = 4,
    seed: int = 42,
    years: int = 50,
    client: httpx.Client | None = None,
    save: bool = True,
) -> dict:
    client = client or httpx.Client(base_url=base_url)
    rng = random.Random(seed)

    resp = client.post("/worlds", json={"seed": seed})
    resp.raise_for_status()
    created = resp.json()
    world_id = created["world_id"]
    nation_ids = found_nations(client, world_id, num_nations, created["grid"],
                               created["grid_size"], rng)
    print(f"🌍 Created world {world_id} with {len(nation_ids)} nations")

    rngs = {nid: random.Random(seed + i) for i, nid in enumerate(nation_ids)}
    log = []
    for _ in range(years):
        turns = {nid: play_turn(client, world_id, nid, rngs[nid]) for nid in nation_ids}
        resp = client.post(f"/worlds/{world_id}/tick", json={"years": 1})
        if resp.status_code != 200:
            print(f"  Error: {resp.text}")
            break
        result = resp.json()
        log.append({"year": result["year"], "agents": turns, "notifications": result["notifications"]})
        print(f"  Year {result['year']} | battles={result['battles']} | "
              f"wars +{result['wars_declared']}/-{result['wars_ended']}")
        for note in result["notifications"]:
            if note["type"] in ("WAR_DECLARATION", "WAR_SURRENDER", "WAR_PEACE", "FORCED_PEACE"):
                print(f"    {note['message']}")

    rankings = client.get(f"/worlds/{world_id}/rankings").json()
    print("\n=== RANKINGS ===")
    for row in rankings:
        print(f"  {row['rank']}. {row['name']} power={row['power']} territories={row['territories']}")

    summary = {"world_id": world_id, "nations": nation_ids, "rankings": rankings, "years": log}
    if save:
        slot = client.post(f"/worlds/{world_id}/save", json={"name": f"match {world_id}"}).json()
        summary["slot"] = slot
        save_replay(summary)
    return summary


def save_replay(summary: dict):
    try:
        REPLAY_DIR.mkdir(exist_ok=True)
        path = REPLAY_DIR / f"{summary['world_id']}.json"
        path.write_text(json.dumps(summary, indent=2))
        print(f"💾 Replay saved to {path}")
    except OSError as e:
        print(f"⚠️ Failed to save replay: {e}")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Run a Nationsim session")
    parser.add_argument("--server", default="http://localhost:8000")
    parser.add_argument("--nations", type=int, default=4)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--years", type=int, default=50)
    args = parser.parse_args()

    run_match(base_url=args.server, num_nations=args.nations, seed=args.seed, years=args.years)
